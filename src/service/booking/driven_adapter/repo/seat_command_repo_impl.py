"""
Seat Command Repository Implementation

Writes are compare-and-set on `seat.version`, so two instances racing on
the same seat cannot both win even without the in-process lock.
"""

from datetime import datetime
from typing import AsyncContextManager, Callable, List

import attrs
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.database.db_setting import as_utc
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.domain.entity.seat_entity import Seat, SeatStatus
from src.service.booking.driven_adapter.model.seat_model import SeatModel


def model_to_seat(seat_model: SeatModel) -> Seat:
    return Seat(
        id=seat_model.id,
        show_time_id=seat_model.show_time_id,
        code=seat_model.code,
        price=seat_model.price,
        seat_type=seat_model.seat_type,
        status=SeatStatus(seat_model.status),
        hold_session_id=seat_model.hold_session_id,
        hold_expires_at=as_utc(seat_model.hold_expires_at),
        invoice_id=seat_model.invoice_id,
        version=seat_model.version,
    )


class SeatCommandRepoImpl(ISeatCommandRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def get_seats(self, *, show_time_id: int, seat_ids: List[int]) -> List[Seat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SeatModel)
                .where(SeatModel.show_time_id == show_time_id, SeatModel.id.in_(seat_ids))
                .order_by(SeatModel.id)
            )
            return [model_to_seat(model) for model in result.scalars().all()]

    @Logger.io
    async def save_all(self, *, seats: List[Seat]) -> List[Seat]:
        if not seats:
            return []
        async with self.session_factory() as session:
            async with session.begin():
                for seat in seats:
                    result = await session.execute(
                        update(SeatModel)
                        .where(SeatModel.id == seat.id, SeatModel.version == seat.version)
                        .values(
                            status=seat.status.value,
                            hold_session_id=seat.hold_session_id,
                            hold_expires_at=seat.hold_expires_at,
                            invoice_id=seat.invoice_id,
                            version=SeatModel.version + 1,
                        )
                        .execution_options(synchronize_session=False)
                    )
                    if result.rowcount != 1:  # type: ignore[attr-defined]
                        # Leaving the begin() block with an error rolls back the batch
                        raise ConflictError(
                            f'Seat {seat.code} was modified concurrently', seat_ids=[seat.id]
                        )
        return [attrs.evolve(seat, version=seat.version + 1) for seat in seats]

    @Logger.io
    async def list_expired_holds(self, *, now: datetime, limit: int = 500) -> List[Seat]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(SeatModel)
                .where(
                    SeatModel.status == SeatStatus.HOLDING.value,
                    SeatModel.hold_expires_at <= now,
                )
                .order_by(SeatModel.show_time_id, SeatModel.id)
                .limit(limit)
            )
            return [model_to_seat(model) for model in result.scalars().all()]
