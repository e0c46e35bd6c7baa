from __future__ import annotations

import asyncio
import logging
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Any

from seatlocker.core.entities.identity import Identity, Profile
from seatlocker.core.errors import BackendError, NoIdentityError
from seatlocker.core.repositories.profile_repository import ProfileRepository

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED_NO_PROFILE = "authenticated-no-profile"
    AUTHENTICATED_WITH_PROFILE = "authenticated-with-profile"
    PROFILE_ERROR = "profile-error"


@dataclass(frozen=True, slots=True)
class CurrentUser:
    """
    Read-only view of the session at one point in time
    """
    state: SessionState
    is_authenticated: bool
    is_loading: bool
    user_id: str | None
    display_name: str | None
    contact_email: str | None
    phone: str | None
    identity: Identity | None
    profile: Profile | None
    error: str | None


class IdentitySessionManager:
    """
    Reconciles the live identity-provider stream with the backend profile.

    Every identity transition bumps a generation counter. A profile result is
    applied only when the generation and external id it was requested for
    are still current; anything else is dropped on arrival.
    """

    def __init__(self, *, profile_repo: ProfileRepository, auto_fetch: bool = True) -> None:
        self._profile_repo = profile_repo
        self._auto_fetch = auto_fetch

        self._identity: Identity | None = None
        self._profile: Profile | None = None
        self._state = SessionState.UNAUTHENTICATED
        self._error: str | None = None
        self._generation = 0
        self._pending: Counter[int] = Counter()
        self._tasks: set[asyncio.Task] = set()

    # -----------------------------
    # Provider events
    # -----------------------------
    def on_identity_changed(self, identity: Identity | None, *, resolving: bool = False) -> None:
        previous_id = self._identity.external_id if self._identity else None
        next_id = identity.external_id if identity else None

        if next_id != previous_id:
            self._invalidate()
        self._identity = identity

        if resolving:
            self._state = SessionState.AUTHENTICATING
            return

        if identity is None:
            self._state = SessionState.UNAUTHENTICATED
            logger.info("Signed out; profile cleared")
            return

        if next_id == previous_id and self._state is not SessionState.AUTHENTICATING:
            # Same user re-emitted with fresh claims; the profile is still theirs.
            return

        # A token refresh for the same user keeps the profile already loaded.
        if self._profile is not None:
            self._state = SessionState.AUTHENTICATED_WITH_PROFILE
        else:
            self._state = SessionState.AUTHENTICATED_NO_PROFILE
        logger.info("Signed in as %s", identity.external_id)
        if self._auto_fetch:
            self._spawn_fetch()

    # -----------------------------
    # Public operations
    # -----------------------------
    async def refresh_profile(self) -> Profile | None:
        """
        Force a new fetch for the current identity. Returns None when the
        identity changed while the request was in flight.
        """
        identity = self._require_identity()
        return await self._load_profile(self._generation, identity.external_id)

    async def update_profile(self, patch: dict[str, Any]) -> Profile | None:
        """
        Write through to the backend, then re-fetch the canonical profile.
        """
        identity = self._require_identity()
        generation = self._generation

        self._pending[generation] += 1
        try:
            await self._profile_repo.update_profile(identity.external_id, patch)
        except BackendError as e:
            if self._is_current(generation, identity.external_id):
                self._state = SessionState.PROFILE_ERROR
                self._error = e.message
            raise
        finally:
            self._release(generation)

        return await self._load_profile(generation, identity.external_id)

    async def join(self) -> None:
        """Wait for background profile fetches started by identity events."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # -----------------------------
    # Derived view, recomputed on every access
    # -----------------------------
    @property
    def identity(self) -> Identity | None:
        return self._identity

    @property
    def profile(self) -> Profile | None:
        return self._profile

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def is_authenticated(self) -> bool:
        return self._identity is not None and self._state is not SessionState.AUTHENTICATING

    @property
    def is_loading(self) -> bool:
        return self._state is SessionState.AUTHENTICATING or self._pending[self._generation] > 0

    @property
    def user_id(self) -> str | None:
        return self._identity.external_id if self._identity else None

    @property
    def display_name(self) -> str | None:
        if self._profile and self._profile.name:
            return self._profile.name
        return self._identity.display_name if self._identity else None

    @property
    def contact_email(self) -> str | None:
        if self._profile and self._profile.email:
            return self._profile.email
        return self._identity.email if self._identity else None

    @property
    def phone(self) -> str | None:
        return self._profile.phone if self._profile else None

    def get_identity(self) -> Identity | None:
        return self._identity

    def get_profile(self) -> Profile | None:
        return self._profile

    def snapshot(self) -> CurrentUser:
        return CurrentUser(
            state=self._state,
            is_authenticated=self.is_authenticated,
            is_loading=self.is_loading,
            user_id=self.user_id,
            display_name=self.display_name,
            contact_email=self.contact_email,
            phone=self.phone,
            identity=self._identity,
            profile=self._profile,
            error=self._error,
        )

    # -----------------------------
    # Internal helpers
    # -----------------------------
    def _invalidate(self) -> None:
        self._generation += 1
        self._profile = None
        self._error = None

    def _release(self, generation: int) -> None:
        self._pending[generation] -= 1
        if self._pending[generation] <= 0:
            del self._pending[generation]

    def _is_current(self, generation: int, external_id: str) -> bool:
        return (
            generation == self._generation
            and self._identity is not None
            and self._identity.external_id == external_id
        )

    def _require_identity(self) -> Identity:
        if self._identity is None or self._state is SessionState.AUTHENTICATING:
            raise NoIdentityError()
        return self._identity

    def _spawn_fetch(self) -> None:
        task = asyncio.get_running_loop().create_task(
            self._background_fetch(self._generation, self._identity.external_id)
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _background_fetch(self, generation: int, external_id: str) -> None:
        try:
            await self._load_profile(generation, external_id)
        except BackendError as e:
            logger.warning("Profile fetch for %s failed: %s", external_id, e.message)

    async def _load_profile(self, generation: int, external_id: str) -> Profile | None:
        self._pending[generation] += 1
        try:
            profile = await self._profile_repo.get_profile(external_id)
        except BackendError as e:
            if self._is_current(generation, external_id):
                self._profile = None
                self._state = SessionState.PROFILE_ERROR
                self._error = e.message
            raise
        finally:
            self._release(generation)

        if not self._is_current(generation, external_id):
            logger.info("Discarding stale profile result for %s", external_id)
            return None

        self._profile = profile
        self._error = None
        self._state = SessionState.AUTHENTICATED_WITH_PROFILE
        return profile
