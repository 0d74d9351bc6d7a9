from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock
from src.service.booking.app.interface.i_seat_query_repo import ISeatQueryRepo
from src.service.booking.app.interface.i_show_time_query_repo import IShowTimeQueryRepo
from src.service.booking.domain.entity.seat_entity import Seat


class GetSeatMapUseCase:
    """Current seat map of a showtime; lapsed holds already read as AVAILABLE."""

    def __init__(
        self,
        *,
        seat_query_repo: ISeatQueryRepo,
        show_time_query_repo: IShowTimeQueryRepo,
        clock: Clock,
    ) -> None:
        self.seat_query_repo = seat_query_repo
        self.show_time_query_repo = show_time_query_repo
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        seat_query_repo: ISeatQueryRepo = Depends(Provide[Container.seat_query_repo]),
        show_time_query_repo: IShowTimeQueryRepo = Depends(
            Provide[Container.show_time_query_repo]
        ),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            seat_query_repo=seat_query_repo,
            show_time_query_repo=show_time_query_repo,
            clock=clock,
        )

    @Logger.io
    async def execute(self, *, show_time_id: int) -> List[Seat]:
        if await self.show_time_query_repo.get_by_id(show_time_id=show_time_id) is None:
            raise NotFoundError(f'Showtime {show_time_id} not found')
        seats = await self.seat_query_repo.list_by_show_time(show_time_id=show_time_id)
        now = self.clock()
        return [seat.snapshot(now=now) for seat in seats]
