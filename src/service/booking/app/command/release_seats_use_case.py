"""
Release Seats Use Case - HOLDING (own session) → AVAILABLE
"""

from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError, ForbiddenError, ValidationError
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


class ReleaseSeatsUseCase:
    """
    Give holds back.

    Seats already AVAILABLE are skipped. A seat held by another session
    fails the call with Forbidden, unless `skip_foreign` is set: the
    reconciler and the sweep use that mode to clean up whatever their own
    session still holds and leave everything else untouched.
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
        self,
        *,
        show_time_id: int,
        seat_ids: List[int],
        session_id: str,
        skip_foreign: bool = False,
    ) -> List[Seat]:
        """
        Returns:
            Seats that actually changed state
        """
        if not session_id:
            raise ValidationError('session_id is required')
        seat_ids = validate_seat_ids(seat_ids)

        with self.tracer.start_as_current_span(
            'use_case.release_seats',
            attributes={'show_time.id': show_time_id, 'seat.count': len(seat_ids)},
        ):
            async with self.keyed_lock.hold(
                *seat_lock_keys(show_time_id=show_time_id, seat_ids=seat_ids),
                timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
            ):
                seats = await self.seat_command_repo.get_seats(
                    show_time_id=show_time_id, seat_ids=seat_ids
                )
                if not skip_foreign:
                    ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)

                now = self.clock()
                changed: List[Seat] = []
                for seat in seats:
                    try:
                        released = seat.release(session_id=session_id, now=now)
                    except (ForbiddenError, ConflictError):
                        if skip_foreign:
                            continue
                        raise
                    if released is not seat:
                        changed.append(released)

                saved = await self.seat_command_repo.save_all(seats=changed)

        metrics.record_seat_operation(operation='release', count=len(saved))
        if saved:
            Logger.base.info(
                f'🔓 [RELEASE] Session {session_id} released {[s.id for s in saved]} '
                f'of showtime {show_time_id}'
            )
        return saved
