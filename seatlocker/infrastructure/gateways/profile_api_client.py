from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError as PydanticValidationError

from seatlocker.core.entities.identity import Profile
from seatlocker.core.errors import BackendError, extract_error_message
from seatlocker.core.repositories.profile_repository import ProfileRepository
from seatlocker.schemas.models import ProfilePayload


class HttpProfileRepository(ProfileRepository):
    """
    Backend user profiles at {base_url}/api/users/{external_id}.
    """

    def __init__(
            self,
            *,
            base_url: str,
            timeout_seconds: float = 10.0,
            client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_seconds
        self._client = client

    def _url(self, external_id: str) -> str:
        return f"{self._base_url}/api/users/{quote(external_id, safe='')}"

    async def get_profile(self, external_id: str) -> Profile:
        resp = await self._request("GET", self._url(external_id))
        try:
            body = resp.json()
        except ValueError as e:
            raise BackendError("The profile service returned an unreadable response.") from e

        # either the bare document or the {success, data} envelope
        if isinstance(body, dict) and isinstance(body.get("data"), dict):
            body = body["data"]
        try:
            payload = ProfilePayload.model_validate(body)
        except PydanticValidationError as e:
            raise BackendError("The profile service returned an unreadable response.") from e

        return Profile(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            extra=dict(payload.model_extra or {}),
        )

    async def update_profile(self, external_id: str, patch: dict[str, Any]) -> None:
        await self._request("PUT", self._url(external_id), json=patch)

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            if self._client is not None:
                resp = await self._client.request(method, url, timeout=self._timeout, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise BackendError() from e

        if not resp.is_success:
            try:
                message = extract_error_message(resp.json())
            except ValueError:
                message = None
            raise BackendError(message)
        return resp
