from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import ConflictError
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


class DisableSeatsUseCase:
    """Administrative AVAILABLE → DISABLED (broken seat, blocked row)."""

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

    @Logger.io
    async def execute(self, *, show_time_id: int, seat_ids: List[int]) -> List[Seat]:
        seat_ids = validate_seat_ids(seat_ids)
        async with self.keyed_lock.hold(
            *seat_lock_keys(show_time_id=show_time_id, seat_ids=seat_ids),
            timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS,
        ):
            seats = await self.seat_command_repo.get_seats(
                show_time_id=show_time_id, seat_ids=seat_ids
            )
            ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)

            now = self.clock()
            blocked: List[int] = []
            disabled: List[Seat] = []
            for seat in seats:
                try:
                    disabled.append(seat.disable(now=now))
                except ConflictError:
                    blocked.append(seat.id)
            if blocked:
                raise ConflictError(f'Seats {blocked} are in use', seat_ids=blocked)

            changed = [seat for seat, old in zip(disabled, seats) if seat is not old]
            saved = await self.seat_command_repo.save_all(seats=changed)

        metrics.record_seat_operation(operation='disable', count=len(saved))
        Logger.base.info(f'⛔ [DISABLE] Seats {seat_ids} of showtime {show_time_id} disabled')
        saved_by_id = {seat.id: seat for seat in saved}
        return [saved_by_id.get(seat.id, seat) for seat in disabled]
