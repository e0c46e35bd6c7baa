from __future__ import annotations

import asyncio
from typing import Any

from seatlocker.core.entities.identity import Profile
from seatlocker.core.errors import BackendError
from seatlocker.core.repositories.locker_gateway import LockerAssignmentGateway
from seatlocker.core.repositories.profile_repository import ProfileRepository

NAMESPACE = "food-locker-seat-storage"


class FakeLockerGateway(LockerAssignmentGateway):
    """
    Scripted locker API. Each call pops the next outcome: a body to return,
    an exception to raise, or an asyncio.Future the test resolves later.
    """

    def __init__(self) -> None:
        self.outcomes: list[Any] = []
        self.calls: list[dict[str, Any]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def will_return(self, *outcomes: Any) -> None:
        self.outcomes.extend(outcomes)

    async def assign(self, *, seat_block: str, user_id: str | None) -> Any:
        self.calls.append({"seat_block": seat_block, "user_id": user_id})
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            outcome = self.outcomes.pop(0)
            if isinstance(outcome, asyncio.Future):
                outcome = await outcome
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


class FakeProfileRepository(ProfileRepository):
    """
    Profiles keyed by external id. A queued asyncio.Future for an id makes
    the next get_profile for that id wait until the test resolves it.
    """

    def __init__(self) -> None:
        self.profiles: dict[str, Profile] = {}
        self.gates: dict[str, list[asyncio.Future]] = {}
        self.failures: dict[str, BackendError] = {}
        self.get_calls: list[str] = []
        self.updates: list[tuple[str, dict[str, Any]]] = []

    def gate(self, external_id: str) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.gates.setdefault(external_id, []).append(future)
        return future

    async def get_profile(self, external_id: str) -> Profile:
        self.get_calls.append(external_id)
        gates = self.gates.get(external_id)
        if gates:
            result = await gates.pop(0)
            if isinstance(result, BaseException):
                raise result
            return result
        if external_id in self.failures:
            raise self.failures[external_id]
        return self.profiles.get(external_id, Profile())

    async def update_profile(self, external_id: str, patch: dict[str, Any]) -> None:
        if external_id in self.failures:
            raise self.failures[external_id]
        self.updates.append((external_id, patch))
        current = self.profiles.get(external_id, Profile())
        self.profiles[external_id] = Profile(
            name=patch.get("name", current.name),
            email=patch.get("email", current.email),
            phone=patch.get("phone", current.phone),
        )


async def drain() -> None:
    """Let callbacks and woken tasks run."""
    for _ in range(5):
        await asyncio.sleep(0)
