from datetime import datetime
from enum import StrEnum
from typing import Optional

import attrs

from src.platform.exception.exceptions import ConflictError, ExpiredHoldError, ForbiddenError


class SeatStatus(StrEnum):
    AVAILABLE = 'AVAILABLE'
    HOLDING = 'HOLDING'
    BOOKED = 'BOOKED'
    DISABLED = 'DISABLED'


@attrs.define
class Seat:
    """
    One seat of one showtime.

    `status` is what is stored; a HOLDING seat whose `hold_expires_at` has
    passed reads as AVAILABLE everywhere (see `effective_status`) whether or
    not the sweep has reset the row yet. `version` is bumped on every write
    and used for compare-and-set by the repository.
    """

    id: int
    show_time_id: int
    code: str
    price: int = attrs.field(validator=attrs.validators.ge(0))
    seat_type: str = 'STANDARD'
    status: SeatStatus = SeatStatus.AVAILABLE
    hold_session_id: Optional[str] = None
    hold_expires_at: Optional[datetime] = None
    invoice_id: Optional[str] = None
    version: int = 0

    def is_hold_expired(self, *, now: datetime) -> bool:
        return (
            self.status == SeatStatus.HOLDING
            and self.hold_expires_at is not None
            and self.hold_expires_at <= now
        )

    def effective_status(self, *, now: datetime) -> SeatStatus:
        if self.is_hold_expired(now=now):
            return SeatStatus.AVAILABLE
        return self.status

    def is_held_by(self, session_id: str, *, now: datetime) -> bool:
        return (
            self.effective_status(now=now) == SeatStatus.HOLDING
            and self.hold_session_id == session_id
        )

    def snapshot(self, *, now: datetime) -> 'Seat':
        """The seat as every reader should see it at `now`."""
        if self.is_hold_expired(now=now):
            return attrs.evolve(
                self, status=SeatStatus.AVAILABLE, hold_session_id=None, hold_expires_at=None
            )
        return self

    def hold(self, *, session_id: str, expires_at: datetime, now: datetime) -> 'Seat':
        if self.effective_status(now=now) != SeatStatus.AVAILABLE:
            raise ConflictError(f'Seat {self.code} is not available', seat_ids=[self.id])
        return attrs.evolve(
            self,
            status=SeatStatus.HOLDING,
            hold_session_id=session_id,
            hold_expires_at=expires_at,
        )

    def release(self, *, session_id: str, now: datetime) -> 'Seat':
        """
        Give a hold back. Releasing a seat that already reads AVAILABLE is a
        no-op, including an expired hold of another session.
        """
        effective = self.effective_status(now=now)
        if self.status == SeatStatus.HOLDING and self.hold_session_id == session_id:
            return attrs.evolve(
                self, status=SeatStatus.AVAILABLE, hold_session_id=None, hold_expires_at=None
            )
        if effective == SeatStatus.AVAILABLE:
            return self
        if effective == SeatStatus.HOLDING:
            raise ForbiddenError(
                f'Seat {self.code} is held by another session', result={'seat_ids': [self.id]}
            )
        raise ConflictError(f'Seat {self.code} is {effective}', seat_ids=[self.id])

    def confirm(self, *, session_id: str, invoice_id: str, now: datetime) -> 'Seat':
        if self.status == SeatStatus.BOOKED and self.invoice_id == invoice_id:
            return self
        if self.is_hold_expired(now=now) and self.hold_session_id == session_id:
            raise ExpiredHoldError(f'Hold on seat {self.code} expired', seat_ids=[self.id])
        if not self.is_held_by(session_id, now=now):
            raise ConflictError(
                f'Seat {self.code} is not held by this session', seat_ids=[self.id]
            )
        return attrs.evolve(
            self,
            status=SeatStatus.BOOKED,
            invoice_id=invoice_id,
            hold_session_id=None,
            hold_expires_at=None,
        )

    def disable(self, *, now: datetime) -> 'Seat':
        if self.status == SeatStatus.DISABLED:
            return self
        if self.effective_status(now=now) != SeatStatus.AVAILABLE:
            raise ConflictError(
                f'Seat {self.code} must be AVAILABLE to disable', seat_ids=[self.id]
            )
        return attrs.evolve(
            self, status=SeatStatus.DISABLED, hold_session_id=None, hold_expires_at=None
        )
