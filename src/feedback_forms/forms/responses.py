"""Answer shapes per field type.

Every place that needs to know how a field type is answered (HTML preview,
chat bot, submission checks) goes through ``HANDLERS``:

    TEXT / TEXTAREA   str               required: non-blank
    RADIO / SELECT    str in options    required: non-blank
    CHECKBOX          list[str] subset  required: non-empty
    RATING            int in 1..max     required: > 0
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Literal, Mapping, NamedTuple, Optional, Sequence

from pydantic import BaseModel, Field

from .schema import FieldType, FormField, FormResponse, ResponseValue, ValidationResult


ControlKind = Literal["input", "textarea", "radio", "checkbox", "select", "rating"]

REQUIRED_MESSAGE = "This field is required"


class Control(BaseModel):
    """What a renderer needs to draw one field; built only by the handlers below."""

    kind: ControlKind
    field_id: str
    label: str
    required: bool = False
    description: Optional[str] = None
    placeholder: Optional[str] = None
    options: List[str] = Field(default_factory=list)
    max_rating: Optional[int] = None
    value: ResponseValue = None


class FieldHandler(NamedTuple):
    render: Callable[[FormField, ResponseValue], Control]
    validate: Callable[[FormField, ResponseValue], List[str]]
    default_value: Callable[[FormField], ResponseValue]
    is_empty: Callable[[ResponseValue], bool]


def _renderer(kind: ControlKind, default: Callable[[FormField], ResponseValue]):
    def render(field: FormField, value: ResponseValue = None) -> Control:
        return Control(
            kind=kind,
            field_id=field.id,
            label=field.label,
            required=field.required,
            description=field.description,
            placeholder=field.placeholder,
            options=list(field.options or []),
            max_rating=field.rating_scale if kind == "rating" else None,
            value=default(field) if value is None else value,
        )

    return render


def _blank_text(value: ResponseValue) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _empty_selection(value: ResponseValue) -> bool:
    return value is None or (isinstance(value, (list, tuple)) and len(value) == 0)


def _unset_rating(value: ResponseValue) -> bool:
    return value is None or (isinstance(value, int) and not isinstance(value, bool) and value == 0)


def _validate_text(field: FormField, value: ResponseValue) -> List[str]:
    if value is not None and not isinstance(value, str):
        return ["Answer must be text"]
    if _blank_text(value):
        return [REQUIRED_MESSAGE] if field.required else []
    return []


def _validate_single_choice(field: FormField, value: ResponseValue) -> List[str]:
    if value is not None and not isinstance(value, str):
        return ["Answer must be a single option"]
    if _blank_text(value):
        return [REQUIRED_MESSAGE] if field.required else []
    if value not in (field.options or []):
        return ["Please select one of the available options"]
    return []


def _validate_multi_choice(field: FormField, value: ResponseValue) -> List[str]:
    if value is not None and (
        not isinstance(value, (list, tuple)) or any(not isinstance(item, str) for item in value)
    ):
        return ["Answer must be a list of options"]
    if _empty_selection(value):
        return [REQUIRED_MESSAGE] if field.required else []
    errors: List[str] = []
    options = field.options or []
    for item in value:  # type: ignore[union-attr]
        if item not in options:
            errors.append(f"Invalid option: {item}")
    if len(set(value)) != len(value):  # type: ignore[arg-type]
        errors.append("Each option can only be selected once")
    return errors


def _validate_rating(field: FormField, value: ResponseValue) -> List[str]:
    if value is not None and (isinstance(value, bool) or not isinstance(value, int)):
        return ["Rating must be a whole number"]
    if _unset_rating(value):
        return [REQUIRED_MESSAGE] if field.required else []
    scale = field.rating_scale
    if not 1 <= value <= scale:  # type: ignore[operator]
        return [f"Rating must be between 1 and {scale}"]
    return []


def _empty_text(field: FormField) -> str:
    return ""


def _empty_list(field: FormField) -> List[str]:
    return []


def _no_rating(field: FormField) -> None:
    return None


_TEXT = FieldHandler(_renderer("input", _empty_text), _validate_text, _empty_text, _blank_text)

HANDLERS: Dict[str, FieldHandler] = {
    "TEXT": _TEXT,
    "TEXTAREA": _TEXT._replace(render=_renderer("textarea", _empty_text)),
    "RADIO": FieldHandler(_renderer("radio", _empty_text), _validate_single_choice, _empty_text, _blank_text),
    "SELECT": FieldHandler(_renderer("select", _empty_text), _validate_single_choice, _empty_text, _blank_text),
    "CHECKBOX": FieldHandler(_renderer("checkbox", _empty_list), _validate_multi_choice, _empty_list, _empty_selection),
    "RATING": FieldHandler(_renderer("rating", _no_rating), _validate_rating, _no_rating, _unset_rating),
}


def handler_for(field_type: FieldType) -> FieldHandler:
    return HANDLERS[field_type]


def default_value(field: FormField) -> ResponseValue:
    return handler_for(field.type).default_value(field)


def default_responses(fields: Sequence[FormField]) -> FormResponse:
    return {field.id: default_value(field) for field in fields}


def render_field(field: FormField, value: ResponseValue = None) -> Control:
    return handler_for(field.type).render(field, value)


def render_form(fields: Sequence[FormField], responses: Optional[Mapping[str, Any]] = None) -> List[Control]:
    responses = responses or {}
    return [render_field(field, responses.get(field.id)) for field in fields]


def validate_response(field: FormField, value: ResponseValue) -> List[str]:
    return handler_for(field.type).validate(field, value)


def is_answered(field: FormField, value: ResponseValue) -> bool:
    return not handler_for(field.type).is_empty(value)


def validate_responses(fields: Sequence[FormField], responses: Optional[Mapping[str, Any]]) -> ValidationResult:
    responses = responses or {}
    errors: List[str] = []
    known = {field.id for field in fields}
    for field_id in responses:
        if field_id not in known:
            errors.append(f"Unknown field: {field_id}")
    for field in fields:
        errors.extend(f"{field.label}: {message}" for message in validate_response(field, responses.get(field.id)))
    return ValidationResult.from_errors(errors)


def clean_responses(fields: Sequence[FormField], responses: Optional[Mapping[str, Any]]) -> FormResponse:
    """Keep answered fields only, with text trimmed, in form order."""
    responses = responses or {}
    cleaned: FormResponse = {}
    for field in fields:
        value = responses.get(field.id)
        if not is_answered(field, value):
            continue
        if isinstance(value, str):
            value = value.strip()
        elif isinstance(value, tuple):
            value = list(value)
        cleaned[field.id] = value
    return cleaned
