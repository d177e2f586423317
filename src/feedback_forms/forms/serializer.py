from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from pydantic import ValidationError

from .schema import FormField, FormMetadata, FormSchema


SCHEMA_VERSION = "1.0.0"


class SchemaImportError(ValueError):
    def __init__(self, message: str, errors: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.errors = errors or [message]


def export_schema(fields: Sequence[FormField], now: Optional[datetime] = None) -> FormSchema:
    # counts are derived here on every export, never kept on the builder
    created = (now or datetime.now(timezone.utc)).isoformat()
    metadata = FormMetadata(
        created_at=created,
        version=SCHEMA_VERSION,
        field_count=len(fields),
        required_fields=sum(1 for f in fields if f.required),
    )
    return FormSchema(fields=list(fields), metadata=metadata)


def export_dict(fields: Sequence[FormField], now: Optional[datetime] = None) -> Dict[str, Any]:
    return export_schema(fields, now).model_dump(by_alias=True, exclude_none=True)


def dumps(fields: Sequence[FormField], now: Optional[datetime] = None) -> str:
    return json.dumps(export_dict(fields, now), ensure_ascii=False, indent=2)


def _error_lines(exc: ValidationError) -> List[str]:
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()))
        lines.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return lines


def import_schema(data: Union[str, bytes, Mapping[str, Any]]) -> List[FormField]:
    """Parse an exported document back into its ordered field list."""
    try:
        if isinstance(data, (str, bytes)):
            schema = FormSchema.model_validate_json(data)
        else:
            schema = FormSchema.model_validate(dict(data))
    except ValidationError as e:
        raise SchemaImportError("Invalid form schema", _error_lines(e)) from e
    return list(schema.fields)
