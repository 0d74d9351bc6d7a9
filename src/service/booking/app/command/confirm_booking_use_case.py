"""
Confirm Booking Use Case - HOLDING (own session) → BOOKED
"""

from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError, ExpiredHoldError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.seat_command_helper import (
    ensure_all_found,
    seat_lock_keys,
    validate_seat_ids,
)
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.domain.entity.seat_entity import Seat


class ConfirmBookingUseCase:
    """
    Turn a session's holds into bookings tagged with the invoice.

    All-or-nothing. Seats already BOOKED for the same invoice count as
    confirmed, so a retried confirmation is harmless.

    Raises:
        ExpiredHoldError: at least one hold of this session lapsed
        ConflictError: at least one seat is not held by this session
    """

    def __init__(
        self, *, seat_command_repo: ISeatCommandRepo, keyed_lock: KeyedLock, clock: Clock
    ) -> None:
        self.seat_command_repo = seat_command_repo
        self.keyed_lock = keyed_lock
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(seat_command_repo=seat_command_repo, keyed_lock=keyed_lock, clock=clock)

    @Logger.io
    async def execute(
        self, *, show_time_id: int, seat_ids: List[int], invoice_id: str, session_id: str
    ) -> List[Seat]:
        if not invoice_id or not session_id:
            raise ValidationError('invoice_id and session_id are required')
        seat_ids = validate_seat_ids(seat_ids)

        with self.tracer.start_as_current_span(
            'use_case.confirm_booking',
            attributes={'show_time.id': show_time_id, 'invoice.id': invoice_id},
        ):
            async with self.keyed_lock.hold(
                *seat_lock_keys(show_time_id=show_time_id, seat_ids=seat_ids),
                timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
            ):
                seats = await self.seat_command_repo.get_seats(
                    show_time_id=show_time_id, seat_ids=seat_ids
                )
                ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)

                now = self.clock()
                confirmed: List[Seat] = []
                expired: List[int] = []
                not_owned: List[int] = []
                for seat in seats:
                    try:
                        confirmed.append(
                            seat.confirm(session_id=session_id, invoice_id=invoice_id, now=now)
                        )
                    except ExpiredHoldError:
                        expired.append(seat.id)
                    except ConflictError:
                        not_owned.append(seat.id)

                if expired:
                    raise ExpiredHoldError(
                        f'Holds on seats {expired} expired before confirmation', seat_ids=expired
                    )
                if not_owned:
                    raise ConflictError(
                        f'Seats {not_owned} are not held by this session', seat_ids=not_owned
                    )

                changed = [seat for seat, old in zip(confirmed, seats) if seat is not old]
                saved = await self.seat_command_repo.save_all(seats=changed)

        metrics.record_seat_operation(operation='confirm', count=len(saved))
        Logger.base.info(
            f'✅ [CONFIRM] Seats {seat_ids} of showtime {show_time_id} '
            f'booked for invoice {invoice_id}'
        )
        saved_by_id = {seat.id: seat for seat in saved}
        return [saved_by_id.get(seat.id, seat) for seat in confirmed]
