from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from seatlocker.core.entities.identity import Profile


class ProfileRepository(ABC):
    """
    Backend profile boundary. Implementations raise BackendError on any
    transport or server failure.
    """

    @abstractmethod
    async def get_profile(self, external_id: str) -> Profile:
        raise NotImplementedError

    @abstractmethod
    async def update_profile(self, external_id: str, patch: dict[str, Any]) -> None:
        raise NotImplementedError
