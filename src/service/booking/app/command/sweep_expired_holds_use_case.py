"""
Sweep Expired Holds Use Case

Readers already treat a lapsed hold as AVAILABLE; the sweep only makes
the stored rows agree so the seat table stays readable on its own.
"""

from collections import defaultdict
from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.seat_command_helper import seat_lock_keys
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo


class SweepExpiredHoldsUseCase:
    def __init__(
        self, *, seat_command_repo: ISeatCommandRepo, keyed_lock: KeyedLock, clock: Clock
    ) -> None:
        self.seat_command_repo = seat_command_repo
        self.keyed_lock = keyed_lock
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(seat_command_repo=seat_command_repo, keyed_lock=keyed_lock, clock=clock)

    async def execute(self, *, limit: int = 500) -> int:
        """
        Returns:
            Number of seats reset to AVAILABLE
        """
        expired = await self.seat_command_repo.list_expired_holds(now=self.clock(), limit=limit)
        if not expired:
            return 0

        by_show_time: dict[int, list[int]] = defaultdict(list)
        for seat in expired:
            by_show_time[seat.show_time_id].append(seat.id)

        swept = 0
        for show_time_id, seat_ids in by_show_time.items():
            seat_ids = sorted(seat_ids)
            async with self.keyed_lock.hold(
                *seat_lock_keys(show_time_id=show_time_id, seat_ids=seat_ids),
                timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
            ):
                # Re-read: a hold may have been renewed or confirmed since the listing
                seats = await self.seat_command_repo.get_seats(
                    show_time_id=show_time_id, seat_ids=seat_ids
                )
                now = self.clock()
                reset = [seat.snapshot(now=now) for seat in seats if seat.is_hold_expired(now=now)]
                try:
                    saved = await self.seat_command_repo.save_all(seats=reset)
                except ConflictError as e:
                    Logger.base.warning(
                        f'⚠️ [SWEEP] Showtime {show_time_id} changed during sweep: {e.message}'
                    )
                    continue
            swept += len(saved)

        if swept:
            metrics.record_seat_operation(operation='expire', count=swept)
            Logger.base.info(f'🧹 [SWEEP] Reset {swept} expired holds')
        return swept
