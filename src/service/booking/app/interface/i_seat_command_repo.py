"""
Seat Command Repository Interface

Every write is compare-and-set on the seat version; a batch either
lands completely or not at all.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from src.service.booking.domain.entity.seat_entity import Seat


class ISeatCommandRepo(ABC):
    @abstractmethod
    async def get_seats(self, *, show_time_id: int, seat_ids: List[int]) -> List[Seat]:
        """
        Load the requested seats of one showtime (fresh read, no cache).

        Returns:
            Seats that exist, in seat id order; missing ids are simply absent
        """
        pass

    @abstractmethod
    async def save_all(self, *, seats: List[Seat]) -> List[Seat]:
        """
        Persist new seat states in one transaction.

        Each seat is written only if its stored version still equals
        `seat.version`; the returned seats carry the bumped version.

        Raises:
            ConflictError: a seat changed since it was read (nothing is written)
        """
        pass

    @abstractmethod
    async def list_expired_holds(self, *, now: datetime, limit: int = 500) -> List[Seat]:
        """HOLDING seats whose hold lapsed before `now`."""
        pass
