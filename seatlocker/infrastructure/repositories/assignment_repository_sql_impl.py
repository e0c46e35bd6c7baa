from __future__ import annotations

import logging

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import sessionmaker

from seatlocker.core.entities.seat_assignment import SeatAssignment
from seatlocker.core.repositories.assignment_repository import AssignmentRepository
from seatlocker.infrastructure.models.models import KeyValueModel
from seatlocker.schemas.models import PersistedSeatRecord

logger = logging.getLogger(__name__)


class SqlAssignmentRepositoryImpl(AssignmentRepository):
    """
    Assignment store backed by a single row of the key/value table.

    Responsibilities:
      - translate between SeatAssignment and the persisted JSON record
      - whole-record replacement, committed before set()/clear() return

    An unreadable, incomplete or missing record reads as "no assignment".
    """

    def __init__(self, session_factory: sessionmaker, *, namespace: str) -> None:
        self._session_factory = session_factory
        self._namespace = namespace

    def get(self) -> SeatAssignment | None:
        with self._session_factory() as db:
            row = db.get(KeyValueModel, self._namespace)
            raw = row.value if row is not None else None

        if raw is None:
            return None
        try:
            record = PersistedSeatRecord.model_validate_json(raw)
        except PydanticValidationError:
            logger.warning("Ignoring malformed seat record under %r", self._namespace)
            return None

        return self._record_to_assignment(record)

    def set(self, assignment: SeatAssignment) -> None:
        self._write(self._assignment_to_record(assignment))

    def clear(self) -> None:
        self._write(PersistedSeatRecord())

    def _write(self, record: PersistedSeatRecord) -> None:
        value = record.model_dump_json(by_alias=True)
        with self._session_factory() as db:
            row = db.get(KeyValueModel, self._namespace)
            if row is None:
                row = KeyValueModel(key=self._namespace, value=value)
            else:
                row.value = value
            db.add(row)
            db.commit()

    @staticmethod
    def _assignment_to_record(assignment: SeatAssignment) -> PersistedSeatRecord:
        return PersistedSeatRecord(
            seat_block=assignment.seat_block,
            seat_number=assignment.seat_number,
            zone=assignment.zone,
            locker_name=assignment.locker_id,
            locker_location=assignment.location,
        )

    @staticmethod
    def _record_to_assignment(record: PersistedSeatRecord) -> SeatAssignment | None:
        # all three or nothing; a half-written record is not an assignment
        if not (record.seat_block and record.locker_name and record.locker_location):
            return None

        return SeatAssignment(
            seat_block=record.seat_block,
            locker_id=record.locker_name,
            location=record.locker_location,
            zone=record.zone,
            seat_number=record.seat_number,
        )
