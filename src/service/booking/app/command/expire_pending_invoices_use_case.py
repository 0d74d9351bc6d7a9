"""
Expire Pending Invoices Use Case

Closes invoices whose buyer never came back from the provider. A result
the provider already delivered is reconciled normally; otherwise the
invoice is cancelled with PAYMENT_TIMEOUT and its holds are given back.
"""

from datetime import timedelta
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.finalize_invoice_use_case import FinalizeInvoiceUseCase
from src.service.booking.app.command.handle_payment_result_use_case import (
    HandlePaymentResultUseCase,
)
from src.service.booking.app.command.release_seats_use_case import ReleaseSeatsUseCase
from src.service.booking.app.command.seat_command_helper import txn_lock_key
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.domain.entity.invoice_entity import CancelReason, Invoice, InvoiceStatus


class ExpirePendingInvoicesUseCase:
    def __init__(
        self,
        *,
        invoice_repo: IInvoiceRepo,
        payment_transaction_repo: IPaymentTransactionRepo,
        handle_payment_result: HandlePaymentResultUseCase,
        release_seats: ReleaseSeatsUseCase,
        finalize_invoice: FinalizeInvoiceUseCase,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> None:
        self.invoice_repo = invoice_repo
        self.payment_transaction_repo = payment_transaction_repo
        self.handle_payment_result = handle_payment_result
        self.release_seats = release_seats
        self.finalize_invoice = finalize_invoice
        self.keyed_lock = keyed_lock
        self.clock = clock

    @classmethod
    def build(
        cls,
        *,
        invoice_repo: IInvoiceRepo,
        payment_transaction_repo: IPaymentTransactionRepo,
        seat_command_repo: ISeatCommandRepo,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> Self:
        return cls(
            invoice_repo=invoice_repo,
            payment_transaction_repo=payment_transaction_repo,
            handle_payment_result=HandlePaymentResultUseCase.build(
                payment_transaction_repo=payment_transaction_repo,
                invoice_repo=invoice_repo,
                seat_command_repo=seat_command_repo,
                keyed_lock=keyed_lock,
                clock=clock,
            ),
            release_seats=ReleaseSeatsUseCase(
                seat_command_repo=seat_command_repo, keyed_lock=keyed_lock, clock=clock
            ),
            finalize_invoice=FinalizeInvoiceUseCase(invoice_repo=invoice_repo, clock=clock),
            keyed_lock=keyed_lock,
            clock=clock,
        )

    @classmethod
    @inject
    def depends(
        cls,
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls.build(
            invoice_repo=invoice_repo,
            payment_transaction_repo=payment_transaction_repo,
            seat_command_repo=seat_command_repo,
            keyed_lock=keyed_lock,
            clock=clock,
        )

    async def _expire(self, invoice: Invoice) -> Optional[Invoice]:
        async with self.keyed_lock.hold(
            txn_lock_key(invoice.txn_ref), timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS
        ):
            current = await self.invoice_repo.get_by_txn_ref(txn_ref=invoice.txn_ref)
            if current is None or current.is_final:
                return None
            await self.release_seats.execute(
                show_time_id=current.show_time_id,
                seat_ids=current.seat_ids,
                session_id=current.session_id,
                skip_foreign=True,
            )
            return await self.finalize_invoice.execute(
                txn_ref=current.txn_ref,
                outcome=InvoiceStatus.CANCELLED,
                reason=CancelReason.PAYMENT_TIMEOUT,
            )

    async def execute(self, *, limit: int = 100) -> int:
        """
        Returns:
            Number of invoices finalized
        """
        cutoff = self.clock() - timedelta(seconds=settings.PENDING_INVOICE_TIMEOUT_SECONDS)
        stale = await self.invoice_repo.list_pending_before(created_before=cutoff, limit=limit)

        finalized = 0
        for invoice in stale:
            try:
                finalized += await self._process(invoice)
            except CustomBaseError as e:
                Logger.base.error(
                    f'🚨 [EXPIRE] Invoice {invoice.id} for txn {invoice.txn_ref}: {e}'
                )
        return finalized

    async def _process(self, invoice: Invoice) -> int:
        transaction = await self.payment_transaction_repo.get_by_txn_ref(txn_ref=invoice.txn_ref)
        if transaction is not None and transaction.is_final:
            # Result recorded but never applied to the invoice
            assert transaction.response_code is not None
            await self.handle_payment_result.execute(
                txn_ref=invoice.txn_ref, response_code=transaction.response_code
            )
            return 1

        if await self._expire(invoice) is None:
            return 0
        Logger.base.info(f'⏰ [EXPIRE] Invoice {invoice.id} for txn {invoice.txn_ref} timed out')
        return 1
