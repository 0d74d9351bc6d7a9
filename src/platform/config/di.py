"""
https://python-dependency-injector.ets-labs.org/index.html
https://python-dependency-injector.ets-labs.org/examples/fastapi-sqlalchemy.html
"""

from dependency_injector import containers, providers

from src.platform.config.core_setting import Settings
from src.platform.database.db_setting import Database
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import utc_now
from src.service.booking.driven_adapter.payment.vnpay_gateway_impl import VnPayGatewayImpl
from src.service.booking.driven_adapter.repo.invoice_repo_impl import InvoiceRepoImpl
from src.service.booking.driven_adapter.repo.payment_transaction_repo_impl import (
    PaymentTransactionRepoImpl,
)
from src.service.booking.driven_adapter.repo.seat_command_repo_impl import SeatCommandRepoImpl
from src.service.booking.driven_adapter.repo.seat_query_repo_impl import SeatQueryRepoImpl
from src.service.booking.driven_adapter.repo.show_time_query_repo_impl import (
    ShowTimeQueryRepoImpl,
)
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import JwtAuth


class Container(containers.DeclarativeContainer):
    # Configuration
    config_service = providers.Singleton(Settings)

    # Database (uses AsyncEngineManager with settings from config_service)
    database = providers.Singleton(Database)

    # Per-seat / per-txnRef critical sections, shared by every use case in the process
    keyed_lock = providers.Singleton(KeyedLock)

    # Overridden in tests to move time
    clock = providers.Object(utc_now)

    # Repositories (stateless - use session_factory per-request)
    show_time_query_repo = providers.Singleton(
        ShowTimeQueryRepoImpl, session_factory=database.provided.session
    )
    seat_command_repo = providers.Singleton(
        SeatCommandRepoImpl, session_factory=database.provided.session
    )
    seat_query_repo = providers.Singleton(
        SeatQueryRepoImpl, session_factory=database.provided.session
    )
    invoice_repo = providers.Singleton(InvoiceRepoImpl, session_factory=database.provided.session)
    payment_transaction_repo = providers.Singleton(
        PaymentTransactionRepoImpl, session_factory=database.provided.session
    )

    # Payment provider
    payment_gateway = providers.Singleton(VnPayGatewayImpl, clock=clock)

    # Auth service
    jwt_auth = providers.Singleton(JwtAuth)


container = Container()
