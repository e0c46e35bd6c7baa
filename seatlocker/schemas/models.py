from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# -----------------------------
# Locker API wire format
# -----------------------------
class AssignLockerRequest(_CamelModel):
    seat_block: str = Field(alias="seatBlock")
    user_id: Optional[str] = Field(default=None, alias="userId")


# -----------------------------
# Persisted storage record
# -----------------------------
class PersistedSeatRecord(_CamelModel):
    seat_block: Optional[str] = Field(default=None, alias="seatBlock")
    seat_number: Optional[str] = Field(default=None, alias="seatNumber")
    zone: Optional[str] = None
    locker_name: Optional[str] = Field(default=None, alias="lockerName")
    locker_location: Optional[str] = Field(default=None, alias="lockerLocation")


# -----------------------------
# Profile API wire format
# -----------------------------
class ProfilePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None


# -----------------------------
# Presentation API
# -----------------------------
class SubmitSeatBlock(_CamelModel):
    seat_block: str = Field(default="", alias="seatBlock")


class SeatAssignmentOut(_CamelModel):
    seat_block: str = Field(alias="seatBlock")
    locker_id: str = Field(alias="lockerId")
    location: str
    zone: Optional[str] = None
    seat_number: Optional[str] = Field(default=None, alias="seatNumber")


class SeatStatus(_CamelModel):
    assignment: Optional[SeatAssignmentOut] = None
    has_locker: bool = Field(alias="hasLocker")


class WorkflowState(Enum):
    idle = "idle"
    validating = "validating"
    requesting = "requesting"
    succeeded = "succeeded"


class WorkflowStatus(_CamelModel):
    state: WorkflowState
    field_error: Optional[str] = Field(default=None, alias="fieldError")
    required: bool
    can_dismiss: bool = Field(alias="canDismiss")
    assigned: Optional[SeatAssignmentOut] = None


class NotificationKind(Enum):
    success = "success"
    error = "error"
    info = "info"


class NotificationOut(_CamelModel):
    id: str
    message: str
    kind: NotificationKind
    duration_ms: int = Field(alias="durationMs")
    created_at: datetime = Field(alias="createdAt")


class IdentityIn(_CamelModel):
    external_id: str = Field(alias="externalId", min_length=1)
    display_name: Optional[str] = Field(default=None, alias="displayName")
    email: Optional[str] = None


class IdentityEvent(_CamelModel):
    identity: Optional[IdentityIn] = None
    resolving: bool = False


class SessionState(Enum):
    unauthenticated = "unauthenticated"
    authenticating = "authenticating"
    authenticated_no_profile = "authenticated-no-profile"
    authenticated_with_profile = "authenticated-with-profile"
    profile_error = "profile-error"


class CurrentUserOut(_CamelModel):
    state: SessionState
    is_authenticated: bool = Field(alias="isAuthenticated")
    is_loading: bool = Field(alias="isLoading")
    user_id: Optional[str] = Field(default=None, alias="userId")
    display_name: Optional[str] = Field(default=None, alias="displayName")
    contact_email: Optional[str] = Field(default=None, alias="contactEmail")
    phone: Optional[str] = None
    profile: Optional[ProfilePayload] = None
    error: Optional[str] = None


class ProfilePatch(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None

    def to_patch(self) -> dict[str, Any]:
        return self.model_dump(exclude_unset=True)
