from abc import ABC, abstractmethod
from typing import Optional

from src.service.booking.domain.entity.show_time_entity import ShowTime


class IShowTimeQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, show_time_id: int) -> Optional[ShowTime]:
        pass
