from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class LockerAssignmentGateway(ABC):
    @abstractmethod
    async def assign(self, *, seat_block: str, user_id: str | None) -> Any:
        """
        Issue one assignment request and return the decoded 2xx JSON body.

        Raises TransportError on network failures and non-2xx responses and
        MalformedResponseError when a 2xx body is not valid JSON.
        """
        raise NotImplementedError
