from __future__ import annotations

from typing import Any, Dict, List

from .builder import FormBuilder
from .schema import FormField, ValidationResult
from .validation import validate_field


class FieldEditor:
    """Edit buffer for a single field of a builder session.

    Changes accumulate in a local copy; nothing reaches the builder until
    ``save()`` passes field validation. ``cancel()`` simply drops the copy.
    """

    def __init__(self, builder: FormBuilder, field_id: str) -> None:
        field = builder.get(field_id)
        if field is None:
            raise LookupError(f"Field not found: {field_id}")
        self._builder = builder
        self.field_id = field_id
        self._buffer: Dict[str, Any] = field.model_dump()
        self.errors: List[str] = []
        self.closed = False

    def set(self, **updates: Any) -> None:
        updates.pop("id", None)
        if "maxRating" in updates:
            updates["max_rating"] = updates.pop("maxRating")
        self._buffer.update(updates)
        self.errors = []

    @property
    def options(self) -> List[str]:
        return list(self._buffer.get("options") or [])

    def add_option(self) -> None:
        options = self.options
        options.append(f"Option {len(options) + 1}")
        self.set(options=options)

    def remove_option(self, index: int) -> None:
        self.set(options=[opt for i, opt in enumerate(self.options) if i != index])

    def update_option(self, index: int, value: str) -> None:
        options = self.options
        options[index] = value
        self.set(options=options)

    def candidate(self) -> FormField:
        return FormField.model_validate(self._buffer)

    def save(self) -> ValidationResult:
        result = validate_field(self.candidate())
        if not result.is_valid:
            self.errors = result.errors
            return result
        changes = {k: v for k, v in self._buffer.items() if k != "id"}
        self._builder.update_field(self.field_id, changes)
        self.errors = []
        self.closed = True
        return result

    def cancel(self) -> None:
        self._buffer = {}
        self.errors = []
        self.closed = True
