from __future__ import annotations

from abc import ABC, abstractmethod

from seatlocker.core.entities.seat_assignment import SeatAssignment


class AssignmentRepository(ABC):
    @abstractmethod
    def get(self) -> SeatAssignment | None:
        """Current assignment, or None when nothing (valid) is stored."""
        raise NotImplementedError

    @abstractmethod
    def set(self, assignment: SeatAssignment) -> None:
        """Replace the whole stored record and persist before returning."""
        raise NotImplementedError

    @abstractmethod
    def clear(self) -> None:
        raise NotImplementedError

    def has_locker(self) -> bool:
        assignment = self.get()
        return assignment is not None and assignment.has_locker()
