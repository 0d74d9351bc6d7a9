import anyio
from anyio.abc import TaskGroup
from dependency_injector.wiring import Provide, inject

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.expire_pending_invoices_use_case import (
    ExpirePendingInvoicesUseCase,
)
from src.service.booking.app.command.sweep_expired_holds_use_case import SweepExpiredHoldsUseCase
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo


class HoldSweeper:
    """Periodically resets lapsed holds and times out abandoned invoices."""

    def __init__(
        self,
        *,
        sweep_expired_holds: SweepExpiredHoldsUseCase,
        expire_pending_invoices: ExpirePendingInvoicesUseCase,
        interval: float,
    ) -> None:
        self.sweep_expired_holds = sweep_expired_holds
        self.expire_pending_invoices = expire_pending_invoices
        self.interval = interval

    async def start(self, *, task_group: TaskGroup) -> None:
        task_group.start_soon(self._sweep_loop)
        Logger.base.info(f'🧹 [Sweeper] Started, every {self.interval}s')

    async def run_once(self) -> tuple[int, int]:
        # Invoices first: their holds are released with the invoice's own session
        expired_invoices = await self.expire_pending_invoices.execute()
        swept_seats = await self.sweep_expired_holds.execute()
        return expired_invoices, swept_seats

    async def _sweep_loop(self) -> None:
        while True:
            try:
                await self.run_once()
            except Exception as e:
                Logger.base.error(f'❌ [Sweeper] Error: {e}')
            await anyio.sleep(self.interval)


@inject
def create_hold_sweeper(
    seat_command_repo: ISeatCommandRepo = Provide[Container.seat_command_repo],
    invoice_repo: IInvoiceRepo = Provide[Container.invoice_repo],
    payment_transaction_repo: IPaymentTransactionRepo = Provide[
        Container.payment_transaction_repo
    ],
    keyed_lock: KeyedLock = Provide[Container.keyed_lock],
    clock: Clock = Provide[Container.clock],
) -> HoldSweeper:
    return HoldSweeper(
        sweep_expired_holds=SweepExpiredHoldsUseCase(
            seat_command_repo=seat_command_repo, keyed_lock=keyed_lock, clock=clock
        ),
        expire_pending_invoices=ExpirePendingInvoicesUseCase.build(
            invoice_repo=invoice_repo,
            payment_transaction_repo=payment_transaction_repo,
            seat_command_repo=seat_command_repo,
            keyed_lock=keyed_lock,
            clock=clock,
        ),
        interval=settings.HOLD_SWEEP_INTERVAL_SECONDS,
    )
