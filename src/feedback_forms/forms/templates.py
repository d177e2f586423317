from __future__ import annotations

from typing import List, Optional

from .schema import FieldTemplate


_DEFAULT_OPTIONS = ["Option 1", "Option 2", "Option 3"]

# Adding a field type means a new entry here plus a handler in responses.HANDLERS
# and, if it needs structural checks, a branch in validation.field_errors.
_TEMPLATES: tuple[FieldTemplate, ...] = (
    FieldTemplate(
        id="text",
        name="Text Input",
        type="TEXT",
        default_config={"label": "Text Field", "placeholder": "Enter text...", "required": False},
        icon="Type",
        category="basic",
    ),
    FieldTemplate(
        id="textarea",
        name="Long Text",
        type="TEXTAREA",
        default_config={
            "label": "Long Text Field",
            "placeholder": "Enter detailed response...",
            "required": False,
        },
        icon="FileText",
        category="basic",
    ),
    FieldTemplate(
        id="radio",
        name="Multiple Choice",
        type="RADIO",
        default_config={"label": "Multiple Choice", "options": _DEFAULT_OPTIONS, "required": False},
        icon="Circle",
        category="basic",
    ),
    FieldTemplate(
        id="checkbox",
        name="Checkboxes",
        type="CHECKBOX",
        default_config={"label": "Select Multiple", "options": _DEFAULT_OPTIONS, "required": False},
        icon="CheckSquare",
        category="basic",
    ),
    FieldTemplate(
        id="select",
        name="Dropdown",
        type="SELECT",
        default_config={"label": "Select Option", "options": _DEFAULT_OPTIONS, "required": False},
        icon="ChevronDown",
        category="advanced",
    ),
    FieldTemplate(
        id="rating",
        name="Rating Scale",
        type="RATING",
        default_config={"label": "Rate this event", "maxRating": 5, "required": False},
        icon="Star",
        category="rating",
    ),
)


def templates() -> List[FieldTemplate]:
    return list(_TEMPLATES)


def find_template(key: str) -> Optional[FieldTemplate]:
    """Look a template up by its id ("rating") or field type ("RATING")."""
    if not isinstance(key, str):
        return None
    needle = key.strip().lower()
    for template in _TEMPLATES:
        if template.id == needle or template.type.lower() == needle:
            return template
    return None


def template_name(field_type: str) -> str:
    template = find_template(field_type)
    return template.name if template else field_type
