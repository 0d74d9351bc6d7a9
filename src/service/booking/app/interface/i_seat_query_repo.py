from abc import ABC, abstractmethod
from typing import List

from src.service.booking.domain.entity.seat_entity import Seat


class ISeatQueryRepo(ABC):
    @abstractmethod
    async def list_by_show_time(self, *, show_time_id: int) -> List[Seat]:
        """All seats of a showtime as stored, ordered by code."""
        pass
