from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

import httpx

from .forms.schema import FormField


class FormsClient:
    """Async client for the forms API.

    Fields are sent verbatim in their exported JSON shape.
    """

    def __init__(
        self,
        base_url: str,
        *,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        headers = {"X-Admin-Token": self.token} if self.token else None
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self._timeout,
            transport=self._transport,
        )

    async def list_templates(self) -> List[Dict[str, Any]]:
        async with self._client() as client:
            resp = await client.get("/api/templates")
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, list):
                raise ValueError("Unexpected templates response")
            return data

    async def validate(self, fields: Sequence[FormField]) -> Dict[str, Any]:
        payload = {"fields": [f.to_json_dict() for f in fields]}
        async with self._client() as client:
            resp = await client.post("/api/forms/validate", json=payload)
            resp.raise_for_status()
            return resp.json()

    async def create_form(
        self,
        *,
        event_key: str,
        fields: Sequence[FormField],
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"eventKey": event_key, "fields": [f.to_json_dict() for f in fields]}
        if title is not None:
            payload["title"] = title
        async with self._client() as client:
            resp = await client.post("/api/forms", json=payload)
            resp.raise_for_status()
            return resp.json()

    async def update_form(
        self,
        form_id: int,
        *,
        fields: Optional[Sequence[FormField]] = None,
        title: Optional[str] = None,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = {}
        if fields is not None:
            payload["fields"] = [f.to_json_dict() for f in fields]
        if title is not None:
            payload["title"] = title
        async with self._client() as client:
            resp = await client.put(f"/api/forms/{form_id}", json=payload)
            resp.raise_for_status()
            return resp.json()

    async def submit_response(self, form_id: int, *, respondent: str, responses: Dict[str, Any]) -> Dict[str, Any]:
        payload = {"respondent": respondent, "responses": responses}
        async with self._client() as client:
            resp = await client.post(f"/api/forms/{form_id}/responses", json=payload)
            resp.raise_for_status()
            return resp.json()
