from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, UniqueConstraint
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class FeedbackForm(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)

    event_key: str = Field(index=True)
    title: Optional[str] = None
    # exported field list, same attribute names as the JSON schema
    fields_json: str = Field(default="[]")
    is_active: bool = Field(default=True)


class FeedbackResponse(SQLModel, table=True):
    __table_args__ = (UniqueConstraint("form_id", "respondent", name="uq_feedbackresponse_form_respondent"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    submitted_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)

    form_id: int = Field(foreign_key="feedbackform.id", index=True)
    respondent: str = Field(index=True)
    payload_json: str


class FeedbackRun(SQLModel, table=True):
    """Chat-side progress of one respondent through one form."""

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=DateTime(timezone=True), nullable=False)
    form_id: int = Field(foreign_key="feedbackform.id", index=True)
    tg_id: int = Field(index=True)
    respondent: str
    current_index: int = Field(default=0)
    answers_json: str = Field(default="{}")
    completed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
