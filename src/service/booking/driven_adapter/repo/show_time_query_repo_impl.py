from typing import AsyncContextManager, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_show_time_query_repo import IShowTimeQueryRepo
from src.service.booking.domain.entity.show_time_entity import ShowTime
from src.service.booking.driven_adapter.model.show_time_model import ShowTimeModel


class ShowTimeQueryRepoImpl(IShowTimeQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def get_by_id(self, *, show_time_id: int) -> Optional[ShowTime]:
        async with self.session_factory() as session:
            model = await session.get(ShowTimeModel, show_time_id)
            if model is None:
                return None
            return ShowTime(
                id=model.id,
                movie_id=model.movie_id,
                movie_name=model.movie_name,
                cinema_id=model.cinema_id,
                screen_room_id=model.screen_room_id,
                date=model.date,
                start_time=model.start_time,
                end_time=model.end_time,
            )
