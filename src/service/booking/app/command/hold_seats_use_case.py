"""
Hold Seats Use Case - all-or-nothing AVAILABLE → HOLDING
"""

from datetime import timedelta
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    LockTimeoutError,
    NotFoundError,
    ValidationError,
)
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
from src.service.booking.app.interface.i_show_time_query_repo import IShowTimeQueryRepo
from src.service.booking.domain.entity.reservation_session_entity import ReservationSession
from src.service.booking.domain.entity.seat_entity import SeatStatus


class HoldSeatsUseCase:
    """
    Hold a set of seats for one reservation session.

    Flow:
    1. Validate the request and the showtime
    2. Enter the per-seat critical section (sorted, bounded wait)
    3. Re-read the seats; any seat not effectively AVAILABLE fails the whole call
    4. Write all holds with compare-and-set, then return the session
    """

    def __init__(
        self,
        *,
        seat_command_repo: ISeatCommandRepo,
        show_time_query_repo: IShowTimeQueryRepo,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> None:
        self.seat_command_repo = seat_command_repo
        self.show_time_query_repo = show_time_query_repo
        self.keyed_lock = keyed_lock
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        show_time_query_repo: IShowTimeQueryRepo = Depends(
            Provide[Container.show_time_query_repo]
        ),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            seat_command_repo=seat_command_repo,
            show_time_query_repo=show_time_query_repo,
            keyed_lock=keyed_lock,
            clock=clock,
        )

    @staticmethod
    def _resolve_ttl(ttl_seconds: Optional[int]) -> timedelta:
        ttl = settings.SEAT_HOLD_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        if ttl <= 0 or ttl > settings.SEAT_HOLD_MAX_TTL_SECONDS:
            raise ValidationError(
                f'ttl_seconds must be between 1 and {settings.SEAT_HOLD_MAX_TTL_SECONDS}'
            )
        return timedelta(seconds=ttl)

    @Logger.io
    async def execute(
        self,
        *,
        show_time_id: int,
        seat_ids: List[int],
        session_id: Optional[str] = None,
        ttl_seconds: Optional[int] = None,
    ) -> ReservationSession:
        with self.tracer.start_as_current_span(
            'use_case.hold_seats',
            attributes={'show_time.id': show_time_id, 'seat.count': len(seat_ids)},
        ):
            try:
                seat_ids = validate_seat_ids(seat_ids, max_seats=settings.MAX_SEATS_PER_HOLD)
                ttl = self._resolve_ttl(ttl_seconds)
                if await self.show_time_query_repo.get_by_id(show_time_id=show_time_id) is None:
                    raise NotFoundError(f'Showtime {show_time_id} not found')
            except (ValidationError, NotFoundError):
                metrics.record_hold(result='invalid')
                raise

            session = ReservationSession.begin(show_time_id=show_time_id, session_id=session_id)
            try:
                async with self.keyed_lock.hold(
                    *seat_lock_keys(show_time_id=show_time_id, seat_ids=seat_ids),
                    timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
                ):
                    seats = await self.seat_command_repo.get_seats(
                        show_time_id=show_time_id, seat_ids=seat_ids
                    )
                    ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)

                    now = self.clock()
                    unavailable = [
                        seat.id
                        for seat in seats
                        if seat.effective_status(now=now) != SeatStatus.AVAILABLE
                    ]
                    if unavailable:
                        raise ConflictError(
                            f'Seats {unavailable} are not available', seat_ids=unavailable
                        )

                    expires_at = now + ttl
                    held = await self.seat_command_repo.save_all(
                        seats=[
                            seat.hold(session_id=session.session_id, expires_at=expires_at, now=now)
                            for seat in seats
                        ]
                    )
            except ConflictError:
                metrics.record_hold(result='conflict')
                raise
            except LockTimeoutError:
                metrics.record_hold(result='timeout')
                raise

            for seat in held:
                session = session.select(seat, now=now)
            session = session.with_hold(expires_at=expires_at)

            metrics.record_hold(result='success')
            metrics.record_seat_operation(operation='hold', count=len(held))
            Logger.base.info(
                f'🎯 [HOLD] Session {session.session_id} holds {session.selected_seat_ids} '
                f'of showtime {show_time_id} until {expires_at.isoformat()}'
            )
            return session
