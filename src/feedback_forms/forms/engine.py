from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from ..db import get_session
from ..models import FeedbackForm, FeedbackResponse, FeedbackRun, utcnow
from .responses import clean_responses, validate_responses
from .schema import FormField, ResponseValue
from .statistics import FormStatistics, compute_statistics
from .validation import title_errors, validate_form


logger = logging.getLogger(__name__)


class FormNotFoundError(LookupError):
    pass


class FormInactiveError(RuntimeError):
    pass


class DuplicateResponseError(RuntimeError):
    pass


class FormValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


class ResponseValidationError(ValueError):
    def __init__(self, errors: List[str]) -> None:
        super().__init__("; ".join(errors))
        self.errors = list(errors)


def _dump_fields(fields: Sequence[FormField]) -> str:
    return json.dumps([f.to_json_dict() for f in fields], ensure_ascii=False)


def form_fields(form: FeedbackForm) -> List[FormField]:
    return [FormField.model_validate(item) for item in json.loads(form.fields_json or "[]")]


def _checked(fields: Sequence[FormField]) -> List[FormField]:
    fields = list(fields)
    result = validate_form(fields)
    if not result.is_valid:
        raise FormValidationError(result.errors)
    return fields


def _check_title(title: Optional[str]) -> None:
    errors = title_errors(title)
    if errors:
        raise FormValidationError(errors)


def create_form(event_key: str, fields: Sequence[FormField], *, title: Optional[str] = None) -> FeedbackForm:
    _check_title(title)
    fields = _checked(fields)
    with get_session() as session:
        form = FeedbackForm(event_key=event_key, title=title, fields_json=_dump_fields(fields))
        session.add(form)
        session.commit()
        session.refresh(form)
    logger.info("created feedback form %s for %s (%d fields)", form.id, event_key, len(fields))
    return form


def get_form(form_id: int) -> FeedbackForm:
    with get_session() as session:
        form = session.get(FeedbackForm, form_id)
        if not form:
            raise FormNotFoundError(f"Form not found: {form_id}")
        return form


def list_forms(event_key: Optional[str] = None) -> List[FeedbackForm]:
    with get_session() as session:
        stmt = select(FeedbackForm)
        if event_key:
            stmt = stmt.where(FeedbackForm.event_key == event_key)
        return list(session.exec(stmt.order_by(FeedbackForm.id)).all())


def update_form(
    form_id: int,
    *,
    fields: Optional[Sequence[FormField]] = None,
    title: Optional[str] = None,
    is_active: Optional[bool] = None,
) -> FeedbackForm:
    _check_title(title)
    if fields is not None:
        fields = _checked(fields)
    with get_session() as session:
        form = session.get(FeedbackForm, form_id)
        if not form:
            raise FormNotFoundError(f"Form not found: {form_id}")
        if fields is not None:
            form.fields_json = _dump_fields(fields)
        if title is not None:
            form.title = title
        if is_active is not None:
            form.is_active = is_active
        form.updated_at = utcnow()
        session.add(form)
        session.commit()
        session.refresh(form)
    logger.info("updated feedback form %s", form_id)
    return form


def set_form_active(form_id: int, active: bool) -> FeedbackForm:
    return update_form(form_id, is_active=active)


def response_payload(response: FeedbackResponse) -> Dict[str, Any]:
    return json.loads(response.payload_json or "{}")


def _has_response(session, form_id: int, respondent: str) -> bool:
    stmt = select(FeedbackResponse.id).where(
        (FeedbackResponse.form_id == form_id) & (FeedbackResponse.respondent == respondent)
    )
    return session.exec(stmt).first() is not None


def submit_response(form_id: int, respondent: str, responses: Optional[Mapping[str, Any]]) -> FeedbackResponse:
    """Validate answers against the stored form and keep one submission per respondent."""
    with get_session() as session:
        form = session.get(FeedbackForm, form_id)
        if not form:
            raise FormNotFoundError(f"Form not found: {form_id}")
        if not form.is_active:
            raise FormInactiveError("Feedback form is not active")

        if _has_response(session, form_id, respondent):
            raise DuplicateResponseError("Feedback has already been submitted for this form")

        fields = form_fields(form)
        result = validate_responses(fields, responses)
        if not result.is_valid:
            logger.warning("rejected response to form %s from %s: %s", form_id, respondent, result.errors)
            raise ResponseValidationError(result.errors)

        payload = clean_responses(fields, responses)
        response = FeedbackResponse(
            form_id=form_id,
            respondent=respondent,
            payload_json=json.dumps(payload, ensure_ascii=False),
        )
        session.add(response)
        try:
            session.commit()
        except IntegrityError:
            # a concurrent submission won the unique (form_id, respondent) slot
            session.rollback()
            raise DuplicateResponseError("Feedback has already been submitted for this form")
        session.refresh(response)
    logger.info("stored response %s to form %s", response.id, form_id)
    return response


def list_responses(form_id: int) -> List[FeedbackResponse]:
    with get_session() as session:
        stmt = (
            select(FeedbackResponse)
            .where(FeedbackResponse.form_id == form_id)
            .order_by(FeedbackResponse.submitted_at, FeedbackResponse.id)
        )
        return list(session.exec(stmt).all())


def form_statistics(form_id: int, total_attendees: Optional[int] = None) -> FormStatistics:
    form = get_form(form_id)
    payloads = [response_payload(r) for r in list_responses(form_id)]
    return compute_statistics(form_fields(form), payloads, total_attendees=total_attendees)


# Chat runs


def start_run(form_id: int, tg_id: int, respondent: str) -> FeedbackRun:
    form = get_form(form_id)
    if not form.is_active:
        raise FormInactiveError("Feedback form is not active")
    with get_session() as session:
        # If an unfinished run exists, reuse it
        stmt = select(FeedbackRun).where(
            (FeedbackRun.tg_id == tg_id)
            & (FeedbackRun.form_id == form_id)
            & (FeedbackRun.completed_at.is_(None))
        )
        run = session.exec(stmt).first()
        if run:
            return run
        run = FeedbackRun(form_id=form_id, tg_id=tg_id, respondent=respondent)
        session.add(run)
        session.commit()
        session.refresh(run)
        logger.info("started run %s on form %s for %s", run.id, form_id, respondent)
        return run


def get_run(run_id: int) -> Optional[FeedbackRun]:
    with get_session() as session:
        return session.get(FeedbackRun, run_id)


def get_active_run(tg_id: int) -> Optional[FeedbackRun]:
    with get_session() as session:
        stmt = (
            select(FeedbackRun)
            .where((FeedbackRun.tg_id == tg_id) & (FeedbackRun.completed_at.is_(None)))
            .order_by(FeedbackRun.id.desc())
        )
        return session.exec(stmt).first()


def run_answers(run: FeedbackRun) -> Dict[str, Any]:
    return json.loads(run.answers_json or "{}")


def current_field(run: FeedbackRun, fields: Sequence[FormField]) -> Optional[FormField]:
    if run.current_index >= len(fields):
        return None
    return fields[run.current_index]


def record_answer(run_id: int, field_id: str, value: ResponseValue, *, advance: bool = True) -> FeedbackRun:
    with get_session() as session:
        run = session.get(FeedbackRun, run_id)
        if not run:
            raise ValueError("run not found")
        answers = run_answers(run)
        if value is None:
            answers.pop(field_id, None)
        else:
            answers[field_id] = value
        run.answers_json = json.dumps(answers, ensure_ascii=False)
        if advance:
            run.current_index += 1
        session.add(run)
        session.commit()
        session.refresh(run)
        return run


def close_run(run_id: int) -> None:
    with get_session() as session:
        run = session.get(FeedbackRun, run_id)
        if not run or run.completed_at is not None:
            return
        run.completed_at = utcnow()
        session.add(run)
        session.commit()


def finish_run(run_id: int) -> FeedbackResponse:
    """Submit the collected answers; the run stays open if submission fails."""
    run = get_run(run_id)
    if not run:
        raise ValueError("run not found")
    response = submit_response(run.form_id, run.respondent, run_answers(run))
    close_run(run_id)
    return response
