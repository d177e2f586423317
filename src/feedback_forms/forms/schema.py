from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union, get_args

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


FieldType = Literal["TEXT", "TEXTAREA", "RADIO", "CHECKBOX", "SELECT", "RATING"]
TemplateCategory = Literal["basic", "advanced", "rating"]

FIELD_TYPES: tuple[str, ...] = get_args(FieldType)
CHOICE_TYPES: frozenset[str] = frozenset({"RADIO", "CHECKBOX", "SELECT"})

DEFAULT_MAX_RATING = 5
MIN_RATING_SCALE = 2
MAX_RATING_SCALE = 10

# Answer shapes: text / single choice -> str, multi choice -> list, rating -> int
ResponseValue = Union[str, List[str], int, None]
FormResponse = Dict[str, ResponseValue]


class FormField(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    label: str
    type: FieldType
    required: bool = False
    options: Optional[List[str]] = None  # for choice types
    placeholder: Optional[str] = None
    description: Optional[str] = None
    max_rating: Optional[int] = Field(default=None, alias="maxRating")  # for type="RATING"

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @property
    def is_choice(self) -> bool:
        return self.type in CHOICE_TYPES

    @property
    def rating_scale(self) -> int:
        return self.max_rating if self.max_rating is not None else DEFAULT_MAX_RATING

    def to_json_dict(self) -> Dict[str, Any]:
        """Attribute names and optionality as exchanged with persistence."""
        return self.model_dump(by_alias=True, exclude_none=True)


class FieldTemplate(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    type: FieldType
    default_config: Dict[str, Any] = Field(default_factory=dict, alias="defaultConfig")
    icon: str
    category: TemplateCategory


class FormMetadata(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    created_at: str = Field(alias="createdAt")
    version: str
    field_count: int = Field(alias="fieldCount")
    required_fields: int = Field(alias="requiredFields")


class FormSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    fields: List[FormField] = Field(default_factory=list)
    metadata: Optional[FormMetadata] = None

    @model_validator(mode="after")
    def _unique_ids(self) -> "FormSchema":
        ids = [f.id for f in self.fields]
        if len(ids) != len(set(ids)):
            raise ValueError("Field IDs must be unique")
        return self


class ValidationResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(alias="isValid")
    errors: List[str] = Field(default_factory=list)

    @classmethod
    def from_errors(cls, errors: List[str]) -> "ValidationResult":
        return cls(is_valid=not errors, errors=list(errors))
