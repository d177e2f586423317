from __future__ import annotations

from html import escape
from typing import Annotated, Any, Callable, Dict, List, Optional

import uvicorn
from fastapi import Body, Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel, ConfigDict, Field

from .config import Settings
from .db import init_db
from .forms.engine import (
    DuplicateResponseError,
    FormInactiveError,
    FormNotFoundError,
    FormValidationError,
    ResponseValidationError,
    create_form,
    form_fields,
    form_statistics,
    get_form,
    list_forms,
    list_responses,
    response_payload,
    set_form_active,
    submit_response,
    update_form,
)
from .forms.responses import Control, default_responses, render_form
from .forms.schema import FormField
from .forms.serializer import SchemaImportError, export_dict, import_schema
from .forms.templates import template_name, templates
from .forms.validation import validate_form
from .models import FeedbackForm


def _auth_dependency(
    request: Request,
    token: Optional[str] = Query(default=None),
) -> None:
    settings = Settings()
    required = settings.admin_token.strip()
    if not required:
        # No token configured — allow access (dev mode)
        return
    supplied = token or request.headers.get("X-Admin-Token")
    if supplied != required:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


Auth = Annotated[None, Depends(_auth_dependency)]


class FieldsPayload(BaseModel):
    fields: List[FormField] = Field(default_factory=list)


class FormPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event_key: str = Field(alias="eventKey")
    title: Optional[str] = None
    fields: List[FormField] = Field(default_factory=list)


class FormUpdatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    fields: Optional[List[FormField]] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")


class ActivePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    is_active: bool = Field(alias="isActive")


class ResponsePayload(BaseModel):
    respondent: str = Field(min_length=1)
    responses: Dict[str, Any] = Field(default_factory=dict)


def _http_error(e: Exception) -> HTTPException:
    if isinstance(e, FormNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, (FormValidationError, ResponseValidationError, SchemaImportError)):
        return HTTPException(status_code=422, detail=e.errors)
    if isinstance(e, (DuplicateResponseError, FormInactiveError)):
        return HTTPException(status_code=409, detail=str(e))
    raise e


def _form_out(form: FeedbackForm) -> Dict[str, Any]:
    return {
        "id": form.id,
        "eventKey": form.event_key,
        "title": form.title,
        "isActive": form.is_active,
        "fields": [f.to_json_dict() for f in form_fields(form)],
        "createdAt": form.created_at.isoformat(),
        "updatedAt": form.updated_at.isoformat(),
    }


def _options_html(c: Control, input_type: str) -> str:
    selected = c.value if isinstance(c.value, list) else [c.value]
    return "".join(
        f"<label><input type='{input_type}' name='{escape(c.field_id)}' value='{escape(opt)}'"
        f"{' checked' if opt in selected else ''} disabled /> {escape(opt)}</label><br/>"
        for opt in c.options
    )


def _html_input(c: Control) -> str:
    return (
        f"<input type='text' name='{escape(c.field_id)}' value='{escape(str(c.value or ''))}'"
        f" placeholder='{escape(c.placeholder or '')}' disabled />"
    )


def _html_textarea(c: Control) -> str:
    return (
        f"<textarea name='{escape(c.field_id)}' rows='4' placeholder='{escape(c.placeholder or '')}'"
        f" disabled>{escape(str(c.value or ''))}</textarea>"
    )


def _html_select(c: Control) -> str:
    opts = "".join(
        f"<option{' selected' if opt == c.value else ''}>{escape(opt)}</option>" for opt in c.options
    )
    return f"<select name='{escape(c.field_id)}' disabled><option value=''>Select…</option>{opts}</select>"


def _html_rating(c: Control) -> str:
    stars = "".join(
        f"<span class='star{' on' if isinstance(c.value, int) and n <= c.value else ''}'>★</span>"
        for n in range(1, (c.max_rating or 0) + 1)
    )
    return f"<div class='rating' data-max='{c.max_rating}'>{stars}</div>"


_CONTROL_HTML: Dict[str, Callable[[Control], str]] = {
    "input": _html_input,
    "textarea": _html_textarea,
    "radio": lambda c: _options_html(c, "radio"),
    "checkbox": lambda c: _options_html(c, "checkbox"),
    "select": _html_select,
    "rating": _html_rating,
}


def render_controls_html(controls: List[Control]) -> str:
    parts = []
    for c in controls:
        mark = " <span style='color:#b00;'>*</span>" if c.required else ""
        desc = f"<p class='muted'>{escape(c.description)}</p>" if c.description else ""
        parts.append(
            f"<section class='field' data-kind='{c.kind}'>"
            f"<h3>{escape(c.label)}{mark}</h3>{desc}{_CONTROL_HTML[c.kind](c)}"
            f"</section>"
        )
    return "".join(parts)


def create_app() -> FastAPI:
    app = FastAPI(title="Feedback Forms Admin", version="0.1.0")

    @app.on_event("startup")
    def _startup() -> None:
        init_db()

    @app.get("/", response_class=RedirectResponse, include_in_schema=False)
    def root(_: Auth):  # type: ignore[no-untyped-def]
        return RedirectResponse(url="/admin/forms")

    @app.get("/admin/health")
    def health() -> dict[str, str]:  # type: ignore[no-untyped-def]
        return {"status": "ok"}

    @app.get("/api/templates")
    def api_templates() -> List[Dict[str, Any]]:  # type: ignore[no-untyped-def]
        return [t.model_dump(by_alias=True) for t in templates()]

    @app.post("/api/forms/validate")
    def api_validate(payload: FieldsPayload) -> Dict[str, Any]:  # type: ignore[no-untyped-def]
        return validate_form(payload.fields).model_dump(by_alias=True)

    @app.post("/api/forms/export")
    def api_export(payload: FieldsPayload) -> Dict[str, Any]:  # type: ignore[no-untyped-def]
        result = validate_form(payload.fields)
        if not result.is_valid:
            raise HTTPException(status_code=422, detail=result.errors)
        return export_dict(payload.fields)

    @app.post("/api/forms/import")
    def api_import(document: Dict[str, Any] = Body(...)) -> Dict[str, Any]:  # type: ignore[no-untyped-def]
        try:
            fields = import_schema(document)
        except SchemaImportError as e:
            raise _http_error(e)
        return {"fields": [f.to_json_dict() for f in fields]}

    @app.get("/api/forms")
    def api_list_forms(_: Auth, event_key: Optional[str] = Query(default=None, alias="eventKey")):  # type: ignore[no-untyped-def]
        return [_form_out(f) for f in list_forms(event_key)]

    @app.post("/api/forms", status_code=201)
    def api_create_form(payload: FormPayload, _: Auth):  # type: ignore[no-untyped-def]
        try:
            form = create_form(payload.event_key, payload.fields, title=payload.title)
        except FormValidationError as e:
            raise _http_error(e)
        return _form_out(form)

    @app.get("/api/forms/{form_id}")
    def api_get_form(form_id: int):  # type: ignore[no-untyped-def]
        try:
            return _form_out(get_form(form_id))
        except FormNotFoundError as e:
            raise _http_error(e)

    @app.put("/api/forms/{form_id}")
    def api_update_form(form_id: int, payload: FormUpdatePayload, _: Auth):  # type: ignore[no-untyped-def]
        try:
            form = update_form(form_id, fields=payload.fields, title=payload.title, is_active=payload.is_active)
        except (FormNotFoundError, FormValidationError) as e:
            raise _http_error(e)
        return _form_out(form)

    @app.post("/api/forms/{form_id}/active")
    def api_set_active(form_id: int, payload: ActivePayload, _: Auth):  # type: ignore[no-untyped-def]
        try:
            return _form_out(set_form_active(form_id, payload.is_active))
        except FormNotFoundError as e:
            raise _http_error(e)

    @app.post("/api/forms/{form_id}/responses", status_code=201)
    def api_submit_response(form_id: int, payload: ResponsePayload):  # type: ignore[no-untyped-def]
        try:
            response = submit_response(form_id, payload.respondent, payload.responses)
        except (FormNotFoundError, FormInactiveError, DuplicateResponseError, ResponseValidationError) as e:
            raise _http_error(e)
        return {
            "id": response.id,
            "formId": response.form_id,
            "respondent": response.respondent,
            "responses": response_payload(response),
            "submittedAt": response.submitted_at.isoformat(),
            "message": "Feedback submitted successfully",
        }

    @app.get("/api/forms/{form_id}/responses")
    def api_list_responses(form_id: int, _: Auth):  # type: ignore[no-untyped-def]
        try:
            get_form(form_id)
        except FormNotFoundError as e:
            raise _http_error(e)
        return [
            {
                "id": r.id,
                "respondent": r.respondent,
                "responses": response_payload(r),
                "submittedAt": r.submitted_at.isoformat(),
            }
            for r in list_responses(form_id)
        ]

    @app.get("/api/forms/{form_id}/statistics")
    def api_statistics(  # type: ignore[no-untyped-def]
        form_id: int,
        _: Auth,
        total_attendees: Optional[int] = Query(default=None, alias="totalAttendees", ge=0),
    ):
        try:
            return form_statistics(form_id, total_attendees=total_attendees).model_dump()
        except FormNotFoundError as e:
            raise _http_error(e)

    @app.get("/admin/forms", response_class=HTMLResponse)
    def admin_forms(_: Auth) -> str:  # type: ignore[no-untyped-def]
        rows = []
        for form in list_forms():
            fields = form_fields(form)
            kinds = ", ".join(sorted({template_name(f.type) for f in fields})) or "-"
            rows.append(
                f"<tr>"
                f"<td>{form.id}</td>"
                f"<td>{escape(form.event_key)}</td>"
                f"<td>{escape(form.title or '-')}</td>"
                f"<td>{len(fields)} ({sum(1 for f in fields if f.required)} required)</td>"
                f"<td>{escape(kinds)}</td>"
                f"<td>{'✓' if form.is_active else '✗'}</td>"
                f"<td><a href='/forms/{form.id}'>Preview</a></td>"
                f"</tr>"
            )
        body = "".join(rows) or "<tr><td colspan='7'>No forms yet</td></tr>"
        return f"""
        <html>
          <head>
            <meta charset='utf-8' />
            <title>Feedback Forms</title>
            <style>
              body {{ font-family: system-ui, sans-serif; padding: 20px; }}
              table {{ border-collapse: collapse; width: 100%; }}
              th, td {{ border: 1px solid #ddd; padding: 8px; }}
              th {{ background: #f6f6f6; text-align: left; }}
            </style>
          </head>
          <body>
            <h1>Feedback Forms</h1>
            <table>
              <thead>
                <tr>
                  <th>ID</th>
                  <th>Event</th>
                  <th>Title</th>
                  <th>Fields</th>
                  <th>Types</th>
                  <th>Active</th>
                  <th>Actions</th>
                </tr>
              </thead>
              <tbody>
                {body}
              </tbody>
            </table>
          </body>
        </html>
        """

    @app.get("/forms/{form_id}", response_class=HTMLResponse)
    def preview_form(form_id: int) -> str:  # type: ignore[no-untyped-def]
        try:
            form = get_form(form_id)
        except FormNotFoundError as e:
            raise _http_error(e)
        fields = form_fields(form)
        controls = render_form(fields, default_responses(fields))
        return f"""
        <html>
          <head>
            <meta charset='utf-8' />
            <title>{escape(form.title or 'Feedback')}</title>
            <style>
              body {{ font-family: system-ui, sans-serif; padding: 20px; max-width: 720px; }}
              .field {{ margin-bottom: 18px; }}
              .muted {{ color: #666; font-size: 14px; }}
              .star {{ font-size: 22px; color: #ccc; }}
              .star.on {{ color: #f5a623; }}
            </style>
          </head>
          <body>
            <h1>{escape(form.title or 'Feedback')}</h1>
            <p class='muted'>Preview — {len(fields)} field{'s' if len(fields) != 1 else ''}</p>
            {render_controls_html(controls)}
          </body>
        </html>
        """

    return app


async def run_admin() -> None:
    settings = Settings()
    app = create_app()
    config = uvicorn.Config(
        app,
        host=settings.admin_host,
        port=settings.admin_port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    await server.serve()
