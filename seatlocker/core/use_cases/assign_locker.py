from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from seatlocker.core.entities.notification import NotificationKind
from seatlocker.core.entities.seat_assignment import SeatAssignment
from seatlocker.core.errors import (
    AlreadyInProgressError,
    AuthRequiredError,
    DismissNotAllowedError,
    MalformedResponseError,
    SeatLockerError,
    TransportError,
    ValidationError,
    WorkflowDisposedError,
    extract_error_message,
)
from seatlocker.core.repositories.assignment_repository import AssignmentRepository
from seatlocker.core.repositories.locker_gateway import LockerAssignmentGateway
from seatlocker.core.use_cases.identity_session import IdentitySessionManager
from seatlocker.core.use_cases.notification_queue import NotificationQueue

logger = logging.getLogger(__name__)


class WorkflowState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    REQUESTING = "requesting"
    SUCCEEDED = "succeeded"


class LockerAssignmentWorkflow:
    """
    Seat-block -> locker assignment for one modal session.

    idle -> validating -> requesting -> succeeded -> (close) -> idle
    idle -> validating -> idle                      (rejected input / no identity)
    requesting -> idle                              (transport or payload failure)

    Only one request may be outstanding per instance. Failed submissions can be
    retried freely; each submit issues its own backend request.
    """

    def __init__(
            self,
            *,
            gateway: LockerAssignmentGateway,
            assignment_repo: AssignmentRepository,
            notifications: NotificationQueue,
            identity: IdentitySessionManager,
            identity_required: bool = True,
            required: bool = False,
            close_delay_ms: int = 2000,
            notification_duration_ms: int = 3000,
            on_close: Callable[[], None] | None = None,
            sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._assignment_repo = assignment_repo
        self._notifications = notifications
        self._identity = identity
        self._identity_required = identity_required
        self._required = required
        self._close_delay_ms = close_delay_ms
        self._notification_duration_ms = notification_duration_ms
        self._on_close = on_close
        self._sleep = sleep

        self._state = WorkflowState.IDLE
        self._input = ""
        self._field_error: str | None = None
        self._assigned: SeatAssignment | None = None
        self._close_task: asyncio.Task | None = None
        self._disposed = False

    @property
    def state(self) -> WorkflowState:
        return self._state

    @property
    def field_error(self) -> str | None:
        return self._field_error

    @property
    def input(self) -> str:
        return self._input

    @property
    def required(self) -> bool:
        return self._required

    @property
    def assigned(self) -> SeatAssignment | None:
        """Assignment shown as confirmation until the close signal fires."""
        return self._assigned

    @property
    def can_dismiss(self) -> bool:
        if self._disposed or self._state is WorkflowState.REQUESTING:
            return False
        return not self._required or self._state is WorkflowState.SUCCEEDED

    def edit(self, value: str) -> None:
        self._ensure_alive()
        self._input = value
        self._field_error = None

    async def submit(self, seat_block_input: str | None = None) -> SeatAssignment:
        self._ensure_alive()
        if self._state is WorkflowState.REQUESTING:
            raise AlreadyInProgressError()

        self._cancel_close()
        self._assigned = None
        if seat_block_input is not None:
            self._input = seat_block_input
        self._field_error = None
        self._state = WorkflowState.VALIDATING

        seat_block = self._input.strip()
        if not seat_block:
            self._reject(ValidationError("empty seat block"))

        user_id = self._identity.user_id if self._identity.is_authenticated else None
        if self._identity_required and user_id is None:
            self._reject(AuthRequiredError())

        self._state = WorkflowState.REQUESTING
        logger.info("Requesting locker for seat block %r", seat_block)
        try:
            body = await self._gateway.assign(seat_block=seat_block, user_id=user_id)
            self._ensure_alive()
            assignment = self._parse_assignment(seat_block, body)
            self._assignment_repo.set(assignment)
        except WorkflowDisposedError:
            raise
        except (TransportError, MalformedResponseError) as e:
            if self._disposed:
                raise WorkflowDisposedError() from e
            self._fail(e)
            raise
        except asyncio.CancelledError:
            self._state = WorkflowState.IDLE
            raise
        except Exception as e:
            logger.exception("Locker assignment for seat block %r failed", seat_block)
            if self._disposed:
                raise WorkflowDisposedError() from e
            error = TransportError()
            self._fail(error)
            raise error from e

        self._assigned = assignment
        self._notifications.enqueue(
            f"Locker assigned!\n{assignment.locker_id} - {assignment.location}",
            NotificationKind.SUCCESS,
            self._notification_duration_ms,
        )
        self._state = WorkflowState.SUCCEEDED
        logger.info("Seat block %r assigned locker %s", seat_block, assignment.locker_id)

        self._close_task = asyncio.get_running_loop().create_task(self._close_after_delay())
        self._close_task.add_done_callback(self._log_close_failure)
        return assignment

    def dismiss(self) -> None:
        """Close the modal without touching the stored assignment."""
        self._ensure_alive()
        if self._state is WorkflowState.REQUESTING:
            raise DismissNotAllowedError("A locker request is still in progress.")
        if self._required and self._state is not WorkflowState.SUCCEEDED:
            raise DismissNotAllowedError("A seat block is required before continuing.")

        self._cancel_close()
        self._reset()
        self._signal_close()

    def dispose(self) -> None:
        """Tear down; later responses and timers no longer change anything."""
        self._disposed = True
        self._cancel_close()

    async def wait_closed(self) -> None:
        task = self._close_task
        if task is not None and not task.cancelled():
            await asyncio.shield(task)

    # -----------------------------
    # Internal helpers
    # -----------------------------
    def _ensure_alive(self) -> None:
        if self._disposed:
            raise WorkflowDisposedError()

    def _reject(self, error: SeatLockerError) -> None:
        self._field_error = error.message
        self._state = WorkflowState.IDLE
        raise error

    def _fail(self, error: SeatLockerError) -> None:
        logger.warning("Locker request failed: %s", error.message)
        self._field_error = error.message
        self._notifications.enqueue(error.message, NotificationKind.ERROR, self._notification_duration_ms)
        self._state = WorkflowState.IDLE

    @staticmethod
    def _parse_assignment(seat_block: str, body: Any) -> SeatAssignment:
        if not isinstance(body, dict):
            raise MalformedResponseError()

        if body.get("success") is False:
            raise TransportError(extract_error_message(body))

        data = body.get("data")
        if isinstance(data, dict):
            locker_id = data.get("lockerId")
            location = data.get("location")
            zone = data.get("zone")
        else:
            # flat shape from older backends
            locker_id = body.get("lockerName") or body.get("name")
            location = body.get("lockerLocation") or body.get("location")
            zone = body.get("zone")

        if not isinstance(locker_id, str) or not locker_id:
            raise MalformedResponseError()
        if not isinstance(location, str) or not location:
            raise MalformedResponseError()

        return SeatAssignment(
            seat_block=seat_block,
            locker_id=locker_id,
            location=location,
            zone=zone if isinstance(zone, str) and zone else None,
        )

    async def _close_after_delay(self) -> None:
        await self._sleep(self._close_delay_ms / 1000)
        if self._disposed:
            return
        self._close_task = None
        self._reset()
        self._signal_close()

    @staticmethod
    def _log_close_failure(task: asyncio.Task) -> None:
        if not task.cancelled() and task.exception() is not None:
            logger.error("Closing the assignment workflow failed", exc_info=task.exception())

    def _cancel_close(self) -> None:
        if self._close_task is not None and not self._close_task.done():
            self._close_task.cancel()
        self._close_task = None

    def _reset(self) -> None:
        self._state = WorkflowState.IDLE
        self._input = ""
        self._field_error = None
        self._assigned = None

    def _signal_close(self) -> None:
        if self._on_close is not None:
            self._on_close()

