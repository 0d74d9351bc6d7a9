"""
Integration fixtures: the real SQLAlchemy repositories on a throwaway
sqlite file per test
"""

import pytest

from src.platform.database.db_setting import AsyncEngineManager, Database, create_db_and_tables
from src.service.booking.driven_adapter.model import SeatModel, ShowTimeModel
from src.service.booking.driven_adapter.repo.invoice_repo_impl import InvoiceRepoImpl
from src.service.booking.driven_adapter.repo.payment_transaction_repo_impl import (
    PaymentTransactionRepoImpl,
)
from src.service.booking.driven_adapter.repo.seat_command_repo_impl import SeatCommandRepoImpl
from src.service.booking.driven_adapter.repo.seat_query_repo_impl import SeatQueryRepoImpl
from src.service.booking.driven_adapter.repo.show_time_query_repo_impl import (
    ShowTimeQueryRepoImpl,
)
from tests.service.booking.booking_fakes import default_seats, default_show_time


@pytest.fixture
async def database(tmp_path):
    engine_manager = AsyncEngineManager(url=f'sqlite+aiosqlite:///{tmp_path / "booking.db"}')
    await create_db_and_tables(engine_manager.get_engine())
    db = Database(engine_manager=engine_manager)

    show_time = default_show_time()
    async with db.session() as session:
        session.add(
            ShowTimeModel(
                id=show_time.id,
                movie_id=show_time.movie_id,
                movie_name=show_time.movie_name,
                cinema_id=show_time.cinema_id,
                screen_room_id=show_time.screen_room_id,
                date=show_time.date,
                start_time=show_time.start_time,
                end_time=show_time.end_time,
            )
        )
        await session.flush()
        session.add_all(
            SeatModel(
                id=seat.id,
                show_time_id=seat.show_time_id,
                code=seat.code,
                seat_type=seat.seat_type,
                price=seat.price,
                status=seat.status.value,
                version=0,
            )
            for seat in default_seats()
        )
        await session.commit()

    yield db
    await engine_manager.dispose()


@pytest.fixture
def sql_seat_command_repo(database):
    return SeatCommandRepoImpl(session_factory=database.session)


@pytest.fixture
def sql_seat_query_repo(database):
    return SeatQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def sql_show_time_repo(database):
    return ShowTimeQueryRepoImpl(session_factory=database.session)


@pytest.fixture
def sql_invoice_repo(database):
    return InvoiceRepoImpl(session_factory=database.session)


@pytest.fixture
def sql_payment_transaction_repo(database):
    return PaymentTransactionRepoImpl(session_factory=database.session)
