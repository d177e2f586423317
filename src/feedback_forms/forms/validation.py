from __future__ import annotations

from typing import List, Optional, Sequence

from ..config import Settings
from .schema import MAX_RATING_SCALE, MIN_RATING_SCALE, FormField, ValidationResult


EMPTY_FORM_ERROR = "Form must have at least one field"

MAX_LABEL_LENGTH = 200
MAX_PLACEHOLDER_LENGTH = 100
MAX_DESCRIPTION_LENGTH = 500
MIN_TITLE_LENGTH = 3
MAX_TITLE_LENGTH = 100

_settings = Settings()


def field_errors(field: FormField) -> List[str]:
    errors: List[str] = []

    if not (field.label or "").strip():
        errors.append("Field label is required")
    elif len(field.label) > MAX_LABEL_LENGTH:
        errors.append(f"Label must be less than {MAX_LABEL_LENGTH} characters")

    if field.placeholder and len(field.placeholder) > MAX_PLACEHOLDER_LENGTH:
        errors.append(f"Placeholder must be less than {MAX_PLACEHOLDER_LENGTH} characters")
    if field.description and len(field.description) > MAX_DESCRIPTION_LENGTH:
        errors.append(f"Description must be less than {MAX_DESCRIPTION_LENGTH} characters")

    if field.is_choice:
        if not field.options or len(field.options) < 2:
            errors.append("Choice fields must have at least 2 options")
        if field.options and any(not option.strip() for option in field.options):
            errors.append("All options must have text")

    if field.type == "RATING":
        if not MIN_RATING_SCALE <= field.rating_scale <= MAX_RATING_SCALE:
            errors.append(f"Rating scale must be between {MIN_RATING_SCALE} and {MAX_RATING_SCALE}")

    return errors


def validate_field(field: FormField) -> ValidationResult:
    """Structural check of a single field, used before committing an edit."""
    return ValidationResult.from_errors(field_errors(field))


def validate_form(fields: Sequence[FormField], *, max_fields: Optional[int] = None) -> ValidationResult:
    """Whole-form gate applied before a form is stored or exported.

    An empty form short-circuits with a single error; otherwise every field is
    checked in order and its messages are prefixed with its 1-based position.
    """
    if not fields:
        return ValidationResult.from_errors([EMPTY_FORM_ERROR])

    limit = max_fields if max_fields is not None else _settings.max_fields
    errors: List[str] = []
    if len(fields) > limit:
        errors.append(f"Form cannot have more than {limit} fields")

    seen: set[str] = set()
    for number, field in enumerate(fields, start=1):
        if field.id in seen:
            errors.append(f"Field {number}: Field ID must be unique")
        seen.add(field.id)
        errors.extend(f"Field {number}: {message}" for message in field_errors(field))

    return ValidationResult.from_errors(errors)


def title_errors(title: Optional[str]) -> List[str]:
    """Checks a form title; an absent title is allowed."""
    if title is None:
        return []
    length = len(title.strip())
    if length < MIN_TITLE_LENGTH:
        return [f"Title must be at least {MIN_TITLE_LENGTH} characters"]
    if length > MAX_TITLE_LENGTH:
        return [f"Title must be less than {MAX_TITLE_LENGTH} characters"]
    return []
