from __future__ import annotations

import logging
from typing import Any

import httpx

from seatlocker.core.errors import MalformedResponseError, TransportError, extract_error_message
from seatlocker.core.repositories.locker_gateway import LockerAssignmentGateway
from seatlocker.schemas.models import AssignLockerRequest

logger = logging.getLogger(__name__)

ASSIGN_PATH = "/api/lockers/assign"


class HttpLockerAssignmentGateway(LockerAssignmentGateway):
    """
    POST {base_url}/api/lockers/assign over httpx.

    Pass a shared AsyncClient to reuse connections; without one each call
    opens and closes its own client.
    """

    def __init__(
            self,
            *,
            base_url: str,
            timeout_seconds: float = 10.0,
            client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + ASSIGN_PATH
        self._timeout = timeout_seconds
        self._client = client

    async def assign(self, *, seat_block: str, user_id: str | None) -> Any:
        body = AssignLockerRequest(seat_block=seat_block, user_id=user_id).model_dump(
            by_alias=True, exclude_none=True
        )

        try:
            if self._client is not None:
                resp = await self._client.post(self._url, json=body, timeout=self._timeout)
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    resp = await client.post(self._url, json=body)
        except httpx.HTTPError as e:
            logger.warning("Locker API unreachable: %s", e)
            raise TransportError() from e

        if not resp.is_success:
            try:
                message = extract_error_message(resp.json())
            except ValueError:
                message = None
            raise TransportError(message, status_code=resp.status_code)

        try:
            return resp.json()
        except ValueError as e:
            raise MalformedResponseError() from e
