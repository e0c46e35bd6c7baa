from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class SeatAssignment:
    """
    Pairing of a guest's seat block with the locker the backend picked for it.

    Only ever built from one successful assignment response, so locker_id and
    location always belong to the same seat_block.
    """
    seat_block: str
    locker_id: str
    location: str
    zone: str | None = None
    seat_number: str | None = None

    def has_locker(self) -> bool:
        return bool(self.locker_id and self.location)
