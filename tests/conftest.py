"""
Test Configuration and Fixtures

- Environment is set before any application import (settings are read at import time)
- Unit tests (tests/**/unit/) run against in-memory fakes
- Integration tests use a throwaway sqlite database through aiosqlite
"""

# =============================================================================
# Environment setup MUST happen before any other imports
# =============================================================================
import os
from pathlib import Path
import tempfile


def _early_setup_test_environment() -> None:
    test_log_dir = Path(__file__).parent / 'test_log'
    test_log_dir.mkdir(exist_ok=True)
    os.environ['TEST_LOG_DIR'] = str(test_log_dir)

    worker_id = os.environ.get('PYTEST_XDIST_WORKER', 'master')
    db_path = Path(tempfile.gettempdir()) / f'cinema_booking_test_{worker_id}.db'
    if db_path.exists():
        db_path.unlink()
    os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{db_path}'
    os.environ['TEST_DATABASE_PATH'] = str(db_path)

    os.environ['ENABLE_HOLD_SWEEPER'] = 'false'
    os.environ['ENABLE_TRACING'] = 'false'
    os.environ['AUTO_CREATE_TABLES'] = 'true'
    os.environ['SECRET_KEY'] = 'test_secret_key'
    os.environ['VNPAY_HASH_SECRET'] = 'test_hash_secret'
    os.environ['VNPAY_TMN_CODE'] = 'TESTTMN1'


_early_setup_test_environment()

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402

from src.platform.state.keyed_lock import KeyedLock  # noqa: E402
from tests.service.booking.booking_fakes import (  # noqa: E402
    FakeClock,
    FakePaymentGateway,
    InMemoryInvoiceRepo,
    InMemoryPaymentTransactionRepo,
    InMemorySeatRepo,
    InMemoryShowTimeRepo,
    default_seats,
    default_show_time,
)


START_TIME = datetime(2025, 1, 10, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(START_TIME)


@pytest.fixture
def keyed_lock() -> KeyedLock:
    return KeyedLock()


@pytest.fixture
def show_time_repo() -> InMemoryShowTimeRepo:
    return InMemoryShowTimeRepo([default_show_time()])


@pytest.fixture
def seat_repo() -> InMemorySeatRepo:
    return InMemorySeatRepo(default_seats())


@pytest.fixture
def invoice_repo() -> InMemoryInvoiceRepo:
    return InMemoryInvoiceRepo()


@pytest.fixture
def payment_transaction_repo(invoice_repo: InMemoryInvoiceRepo) -> InMemoryPaymentTransactionRepo:
    return InMemoryPaymentTransactionRepo(invoice_repo=invoice_repo)


@pytest.fixture
def payment_gateway(clock: FakeClock) -> FakePaymentGateway:
    return FakePaymentGateway(clock=clock)
