from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx

from seatlocker.core.entities.identity import Identity, Profile
from seatlocker.core.entities.notification import Notification
from seatlocker.core.entities.seat_assignment import SeatAssignment
from seatlocker.core.repositories.assignment_repository import AssignmentRepository
from seatlocker.core.repositories.locker_gateway import LockerAssignmentGateway
from seatlocker.core.repositories.profile_repository import ProfileRepository
from seatlocker.core.use_cases.assign_locker import LockerAssignmentWorkflow
from seatlocker.core.use_cases.identity_session import CurrentUser, IdentitySessionManager
from seatlocker.core.use_cases.notification_queue import NotificationQueue
from seatlocker.infrastructure.config import Settings
from seatlocker.infrastructure.database import make_engine, make_session_factory
from seatlocker.infrastructure.gateways.locker_api_client import HttpLockerAssignmentGateway
from seatlocker.infrastructure.gateways.profile_api_client import HttpProfileRepository
from seatlocker.infrastructure.repositories.assignment_repository_sql_impl import SqlAssignmentRepositoryImpl
from seatlocker.schemas.models import (
    CurrentUserOut,
    IdentityEvent,
    NotificationOut,
    ProfilePatch,
    ProfilePayload,
    SeatAssignmentOut,
    SeatStatus,
    SubmitSeatBlock,
    WorkflowStatus,
)


@dataclass(slots=True)
class SeatLockerServices:
    """
    Everything one process needs, owned for the process lifetime.
    """
    assignments: AssignmentRepository
    notifications: NotificationQueue
    identity: IdentitySessionManager
    workflow: LockerAssignmentWorkflow
    http_client: httpx.AsyncClient | None = field(default=None)

    async def aclose(self) -> None:
        self.workflow.dispose()
        if self.http_client is not None:
            await self.http_client.aclose()


def build_services(
        settings: Settings,
        *,
        assignments: AssignmentRepository | None = None,
        gateway: LockerAssignmentGateway | None = None,
        profile_repo: ProfileRepository | None = None,
) -> SeatLockerServices:
    """
    Wire the core to its infrastructure. Any collaborator passed in replaces
    the default built from settings.
    """
    http_client: httpx.AsyncClient | None = None
    if gateway is None or profile_repo is None:
        http_client = httpx.AsyncClient(timeout=settings.request_timeout_seconds)

    if assignments is None:
        session_factory = make_session_factory(make_engine(settings.database_url))
        assignments = SqlAssignmentRepositoryImpl(session_factory, namespace=settings.storage_namespace)
    if gateway is None:
        gateway = HttpLockerAssignmentGateway(
            base_url=settings.locker_api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            client=http_client,
        )
    if profile_repo is None:
        profile_repo = HttpProfileRepository(
            base_url=settings.profile_api_base_url,
            timeout_seconds=settings.request_timeout_seconds,
            client=http_client,
        )

    notifications = NotificationQueue(default_duration_ms=settings.notification_duration_ms)
    identity = IdentitySessionManager(profile_repo=profile_repo)
    workflow = LockerAssignmentWorkflow(
        gateway=gateway,
        assignment_repo=assignments,
        notifications=notifications,
        identity=identity,
        identity_required=settings.identity_required,
        required=settings.modal_required,
        close_delay_ms=settings.close_delay_ms,
        notification_duration_ms=settings.notification_duration_ms,
    )

    return SeatLockerServices(
        assignments=assignments,
        notifications=notifications,
        identity=identity,
        workflow=workflow,
        http_client=http_client,
    )


# -----------------------------
# Translation core -> API schema
# -----------------------------
def _assignment_out(assignment: SeatAssignment | None) -> SeatAssignmentOut | None:
    if assignment is None:
        return None
    return SeatAssignmentOut(
        seat_block=assignment.seat_block,
        locker_id=assignment.locker_id,
        location=assignment.location,
        zone=assignment.zone,
        seat_number=assignment.seat_number,
    )


def _profile_out(profile: Profile | None) -> ProfilePayload | None:
    if profile is None:
        return None
    return ProfilePayload(name=profile.name, email=profile.email, phone=profile.phone, **profile.extra)


def _current_user_out(user: CurrentUser) -> CurrentUserOut:
    return CurrentUserOut(
        state=user.state.value,
        is_authenticated=user.is_authenticated,
        is_loading=user.is_loading,
        user_id=user.user_id,
        display_name=user.display_name,
        contact_email=user.contact_email,
        phone=user.phone,
        profile=_profile_out(user.profile),
        error=user.error,
    )


def _notification_out(notification: Notification | None) -> NotificationOut | None:
    if notification is None:
        return None
    return NotificationOut(
        id=notification.notification_id,
        message=notification.message,
        kind=notification.kind.value,
        duration_ms=notification.duration_ms,
        created_at=notification.created_at,
    )


# -----------------------------
# Seat / locker
# -----------------------------
def get_seat_status_service(services: SeatLockerServices) -> SeatStatus:
    assignment = services.assignments.get()
    return SeatStatus(
        assignment=_assignment_out(assignment),
        has_locker=assignment is not None and assignment.has_locker(),
    )


def clear_seat_service(services: SeatLockerServices) -> None:
    services.assignments.clear()


async def submit_seat_block_service(body: SubmitSeatBlock, services: SeatLockerServices) -> SeatAssignmentOut:
    assignment = await services.workflow.submit(body.seat_block)
    return _assignment_out(assignment)


def dismiss_workflow_service(services: SeatLockerServices) -> None:
    services.workflow.dismiss()


def get_workflow_status_service(services: SeatLockerServices) -> WorkflowStatus:
    workflow = services.workflow
    return WorkflowStatus(
        state=workflow.state.value,
        field_error=workflow.field_error,
        required=workflow.required,
        can_dismiss=workflow.can_dismiss,
        assigned=_assignment_out(workflow.assigned),
    )


# -----------------------------
# Notifications
# -----------------------------
def get_current_notification_service(services: SeatLockerServices) -> NotificationOut | None:
    return _notification_out(services.notifications.current)


def dismiss_notification_service(services: SeatLockerServices) -> None:
    services.notifications.dismiss()


# -----------------------------
# Identity / profile
# -----------------------------
def apply_identity_event_service(body: IdentityEvent, services: SeatLockerServices) -> CurrentUserOut:
    identity = None
    if body.identity is not None:
        identity = Identity(
            external_id=body.identity.external_id,
            display_name=body.identity.display_name,
            email=body.identity.email,
        )
    services.identity.on_identity_changed(identity, resolving=body.resolving)
    return _current_user_out(services.identity.snapshot())


def get_current_user_service(services: SeatLockerServices) -> CurrentUserOut:
    return _current_user_out(services.identity.snapshot())


async def refresh_profile_service(services: SeatLockerServices) -> CurrentUserOut:
    await services.identity.refresh_profile()
    return _current_user_out(services.identity.snapshot())


async def update_profile_service(body: ProfilePatch, services: SeatLockerServices) -> CurrentUserOut:
    patch: dict[str, Any] = body.to_patch()
    await services.identity.update_profile(patch)
    return _current_user_out(services.identity.snapshot())
