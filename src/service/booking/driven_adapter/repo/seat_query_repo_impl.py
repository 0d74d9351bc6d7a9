from typing import AsyncContextManager, Callable, List

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_seat_query_repo import ISeatQueryRepo
from src.service.booking.domain.entity.seat_entity import Seat
from src.service.booking.driven_adapter.model.seat_model import SeatModel
from src.service.booking.driven_adapter.repo.seat_command_repo_impl import model_to_seat


class SeatQueryRepoImpl(ISeatQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def list_by_show_time(self, *, show_time_id: int) -> List[Seat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SeatModel)
                .where(SeatModel.show_time_id == show_time_id)
                .order_by(SeatModel.code)
            )
            return [model_to_seat(model) for model in result.scalars().all()]
