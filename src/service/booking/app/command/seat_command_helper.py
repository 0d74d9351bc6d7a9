from datetime import datetime
from typing import Iterable, List, Optional

from src.platform.exception.exceptions import (
    ConflictError,
    ExpiredHoldError,
    NotFoundError,
    ValidationError,
)
from src.service.booking.domain.entity.seat_entity import Seat


def seat_lock_keys(*, show_time_id: int, seat_ids: Iterable[int]) -> List[str]:
    return [f'seat:{show_time_id}:{seat_id}' for seat_id in seat_ids]


def txn_lock_key(txn_ref: str) -> str:
    return f'txn:{txn_ref}'


def validate_seat_ids(seat_ids: List[int], *, max_seats: Optional[int] = None) -> List[int]:
    if not seat_ids:
        raise ValidationError('seat_ids must not be empty')
    if len(set(seat_ids)) != len(seat_ids):
        raise ValidationError('seat_ids must not contain duplicates')
    if any(seat_id <= 0 for seat_id in seat_ids):
        raise ValidationError('seat_ids must be positive integers')
    if max_seats is not None and len(seat_ids) > max_seats:
        raise ValidationError(f'At most {max_seats} seats can be held at once')
    return sorted(seat_ids)


def ensure_all_found(*, show_time_id: int, seat_ids: List[int], seats: List[Seat]) -> None:
    missing = sorted(set(seat_ids) - {seat.id for seat in seats})
    if missing:
        raise NotFoundError(f'Seats {missing} not found in showtime {show_time_id}')


def resolve_hold_session(*, seats: List[Seat], session_id: Optional[str], now: datetime) -> str:
    """
    The session holding every seat. Without an explicit session id the
    seats must all carry the same one.
    """
    if session_id is None:
        holders = {seat.hold_session_id for seat in seats}
        if len(holders) != 1 or None in holders:
            raise ConflictError(
                'Seats are not held by a single session', seat_ids=[seat.id for seat in seats]
            )
        session_id = holders.pop()
        assert session_id is not None

    expired = [
        seat.id
        for seat in seats
        if seat.is_hold_expired(now=now) and seat.hold_session_id == session_id
    ]
    if expired:
        raise ExpiredHoldError(f'Holds on seats {expired} expired', seat_ids=expired)

    not_held = [seat.id for seat in seats if not seat.is_held_by(session_id, now=now)]
    if not_held:
        raise ConflictError(f'Seats {not_held} are not held by this session', seat_ids=not_held)
    return session_id
