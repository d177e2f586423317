from __future__ import annotations

import copy
import logging
import secrets
import string
import time
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .schema import FormField, ValidationResult
from .templates import find_template
from .validation import validate_form


logger = logging.getLogger(__name__)

_ID_ALPHABET = string.ascii_lowercase + string.digits
# updates may use either the python attribute or its JSON alias
_UPDATE_KEYS = {"maxRating": "max_rating"}


class FormBuilder:
    """Editing session for one form.

    Fields live in an arena keyed by id, with a separate order vector. Lookups
    of unknown ids and unknown field types are tolerated as no-ops.
    """

    def __init__(self, fields: Optional[Iterable[FormField]] = None) -> None:
        self._fields: Dict[str, FormField] = {}
        self._order: List[str] = []
        self._issued: set[str] = set()
        self.is_preview_mode: bool = False
        self.active_field_id: Optional[str] = None
        if fields is not None:
            self.load(fields)

    @property
    def fields(self) -> List[FormField]:
        # copies: option lists are mutable even on frozen fields
        return [self._fields[field_id].model_copy(deep=True) for field_id in self._order]

    def __len__(self) -> int:
        return len(self._order)

    def __contains__(self, field_id: object) -> bool:
        return field_id in self._fields

    def get(self, field_id: str) -> Optional[FormField]:
        field = self._fields.get(field_id)
        return field.model_copy(deep=True) if field is not None else None

    def index_of(self, field_id: str) -> int:
        return self._order.index(field_id)

    def _new_id(self) -> str:
        while True:
            suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
            field_id = f"field_{int(time.time() * 1000)}_{suffix}"
            if field_id not in self._issued:
                self._issued.add(field_id)
                return field_id

    def load(self, fields: Iterable[FormField]) -> None:
        """Replace the session content with an existing field sequence."""
        loaded = [f.model_copy(deep=True) for f in fields]
        ids = [f.id for f in loaded]
        if len(ids) != len(set(ids)):
            raise ValueError("Field IDs must be unique")
        self._fields = {f.id: f for f in loaded}
        self._order = ids
        self._issued.update(ids)
        self.active_field_id = None

    def add_field(self, field_type: str) -> Optional[FormField]:
        template = find_template(field_type)
        if template is None:
            logger.debug("add_field: no template for %r", field_type)
            return None

        config = copy.deepcopy(template.default_config)
        config.setdefault("label", "New Field")
        config.setdefault("required", False)
        config["id"] = self._new_id()
        config["type"] = template.type
        field = FormField.model_validate(config)

        self._fields[field.id] = field
        self._order.append(field.id)
        return field.model_copy(deep=True)

    def update_field(self, field_id: str, updates: Mapping[str, Any]) -> Optional[FormField]:
        current = self._fields.get(field_id)
        if current is None:
            logger.debug("update_field: unknown field %s", field_id)
            return None

        data = current.model_dump()
        for key, value in updates.items():
            key = _UPDATE_KEYS.get(key, key)
            if key == "id":
                continue
            data[key] = value
        updated = FormField.model_validate(data)
        self._fields[field_id] = updated
        return updated.model_copy(deep=True)

    def remove_field(self, field_id: str) -> bool:
        if field_id not in self._fields:
            logger.debug("remove_field: unknown field %s", field_id)
            return False
        del self._fields[field_id]
        self._order.remove(field_id)
        if self.active_field_id == field_id:
            self.active_field_id = None
        return True

    def duplicate_field(self, field_id: str) -> Optional[FormField]:
        source = self._fields.get(field_id)
        if source is None:
            logger.debug("duplicate_field: unknown field %s", field_id)
            return None

        data = copy.deepcopy(source.model_dump())
        data["id"] = self._new_id()
        data["label"] = f"{source.label} (Copy)"
        duplicate = FormField.model_validate(data)

        self._fields[duplicate.id] = duplicate
        self._order.insert(self._order.index(field_id) + 1, duplicate.id)
        return duplicate.model_copy(deep=True)

    def reorder_fields(self, from_index: int, to_index: int) -> None:
        size = len(self._order)
        if not (0 <= from_index < size and 0 <= to_index < size):
            logger.debug("reorder_fields: index out of range (%s -> %s, size %s)", from_index, to_index, size)
            return
        # build the new order aside so the swap is a single assignment
        order = list(self._order)
        moved = order.pop(from_index)
        order.insert(to_index, moved)
        self._order = order

    def clear_form(self) -> None:
        self._fields = {}
        self._order = []
        self.active_field_id = None

    def set_active_field(self, field_id: Optional[str]) -> Optional[str]:
        if field_id is not None and field_id not in self._fields:
            logger.debug("set_active_field: unknown field %s", field_id)
            field_id = None
        self.active_field_id = field_id
        return field_id

    def set_preview_mode(self, enabled: bool) -> None:
        self.is_preview_mode = bool(enabled)

    def validate_form(self) -> ValidationResult:
        return validate_form(self.fields)
