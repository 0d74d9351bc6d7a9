from datetime import datetime
from typing import Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import ConflictError, ValidationError
from src.service.booking.domain.entity.seat_entity import Seat, SeatStatus


def new_session_id() -> str:
    return uuid_utils.uuid7().hex


@attrs.define
class ReservationSession:
    """
    A buyer's in-progress selection for one showtime.

    Lives on the client between requests and is never persisted; the
    server-side truth is the hold recorded on each seat. `amount` is always
    derived from the selected seats so it cannot drift from their prices.
    """

    show_time_id: int
    session_id: str = attrs.field(factory=new_session_id)
    seat_prices: dict[int, int] = attrs.field(factory=dict)
    seat_codes: dict[int, str] = attrs.field(factory=dict)
    hold_expiry: Optional[datetime] = None

    @classmethod
    def begin(cls, *, show_time_id: int, session_id: Optional[str] = None) -> 'ReservationSession':
        if show_time_id <= 0:
            raise ValidationError('show_time_id must be positive')
        return cls(show_time_id=show_time_id, session_id=session_id or new_session_id())

    @property
    def selected_seat_ids(self) -> list[int]:
        return sorted(self.seat_prices)

    @property
    def amount(self) -> int:
        return sum(self.seat_prices.values())

    def select(self, seat: Seat, *, now: datetime) -> 'ReservationSession':
        if seat.show_time_id != self.show_time_id:
            raise ValidationError(f'Seat {seat.code} belongs to another showtime')
        if seat.id in self.seat_prices:
            return self
        if seat.effective_status(now=now) != SeatStatus.AVAILABLE and not seat.is_held_by(
            self.session_id, now=now
        ):
            raise ConflictError(f'Seat {seat.code} is not available', seat_ids=[seat.id])
        return attrs.evolve(
            self,
            seat_prices={**self.seat_prices, seat.id: seat.price},
            seat_codes={**self.seat_codes, seat.id: seat.code},
        )

    def deselect(self, seat_id: int) -> 'ReservationSession':
        if seat_id not in self.seat_prices:
            return self
        return attrs.evolve(
            self,
            seat_prices={k: v for k, v in self.seat_prices.items() if k != seat_id},
            seat_codes={k: v for k, v in self.seat_codes.items() if k != seat_id},
        )

    def with_hold(self, *, expires_at: datetime) -> 'ReservationSession':
        return attrs.evolve(self, hold_expiry=expires_at)

    def is_expired(self, *, now: datetime) -> bool:
        return self.hold_expiry is not None and self.hold_expiry <= now
