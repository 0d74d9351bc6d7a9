"""
Handle Payment Result Use Case - the payment return reconciler

Driven by the provider through the buyer's return redirect and through the
IPN callback, in any order and any number of times. Work for one txn_ref
is serialized; different transactions never wait on each other.
"""

from typing import Optional, Self

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    ExpiredHoldError,
    NotFoundError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.confirm_booking_use_case import ConfirmBookingUseCase
from src.service.booking.app.command.finalize_invoice_use_case import FinalizeInvoiceUseCase
from src.service.booking.app.command.release_seats_use_case import ReleaseSeatsUseCase
from src.service.booking.app.command.seat_command_helper import txn_lock_key
from src.service.booking.app.dto import ReconciliationOutcome, ReconciliationStatus
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.domain.entity.invoice_entity import (
    CancelReason,
    Invoice,
    InvoiceStatus,
)
from src.service.booking.domain.entity.payment_transaction_entity import (
    PaymentStatus,
    PaymentTransaction,
)


class HandlePaymentResultUseCase:
    """
    Flow (under the txn_ref lock):
    1. Record the provider result on the transaction, once (first result wins)
    2. No invoice: ORPHANED, logged for follow-up, no seat changes
    3. Invoice already final: return its outcome, no side effects
    4. Paid: confirm seats then CONFIRM the invoice; if the seats were lost
       meanwhile release what is left of the hold and CANCEL with
       refund_required (PAID_NOT_CONFIRMED)
    5. Not paid: release seats then CANCEL the invoice
    """

    def __init__(
        self,
        *,
        payment_transaction_repo: IPaymentTransactionRepo,
        invoice_repo: IInvoiceRepo,
        confirm_booking: ConfirmBookingUseCase,
        release_seats: ReleaseSeatsUseCase,
        finalize_invoice: FinalizeInvoiceUseCase,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> None:
        self.payment_transaction_repo = payment_transaction_repo
        self.invoice_repo = invoice_repo
        self.confirm_booking = confirm_booking
        self.release_seats = release_seats
        self.finalize_invoice = finalize_invoice
        self.keyed_lock = keyed_lock
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    def build(
        cls,
        *,
        payment_transaction_repo: IPaymentTransactionRepo,
        invoice_repo: IInvoiceRepo,
        seat_command_repo: ISeatCommandRepo,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> Self:
        return cls(
            payment_transaction_repo=payment_transaction_repo,
            invoice_repo=invoice_repo,
            confirm_booking=ConfirmBookingUseCase(
                seat_command_repo=seat_command_repo, keyed_lock=keyed_lock, clock=clock
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
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls.build(
            payment_transaction_repo=payment_transaction_repo,
            invoice_repo=invoice_repo,
            seat_command_repo=seat_command_repo,
            keyed_lock=keyed_lock,
            clock=clock,
        )

    async def _record_result(
        self, transaction: PaymentTransaction, *, response_code: str
    ) -> PaymentTransaction:
        try:
            updated = transaction.record_result(response_code=response_code, now=self.clock())
        except ConflictError:
            Logger.base.error(
                f'🚨 [RECONCILE] Provider sent {response_code} for {transaction.txn_ref} '
                f'after recording {transaction.status}; keeping the first result'
            )
            return transaction
        if updated is transaction:
            return transaction
        written = await self.payment_transaction_repo.record_result(transaction=updated)
        if written is None:
            stored = await self.payment_transaction_repo.get_by_txn_ref(
                txn_ref=transaction.txn_ref
            )
            return stored or transaction
        return written

    def _replay(self, invoice: Invoice, *, paid: bool) -> ReconciliationOutcome:
        outcome = ReconciliationOutcome.from_invoice(invoice, replayed=True)
        if paid and not outcome.paid:
            # Paid after the invoice was already cancelled (e.g. payment timeout)
            Logger.base.error(
                f'🚨 [RECONCILE] Paid txn {invoice.txn_ref} has a {invoice.status} invoice '
                f'({invoice.cancel_reason}); refund required'
            )
            return attrs.evolve(
                outcome,
                status=ReconciliationStatus.PAID_NOT_CONFIRMED,
                refund_required=True,
                paid=True,
            )
        return outcome

    async def _confirm(self, invoice: Invoice) -> ReconciliationOutcome:
        try:
            await self.confirm_booking.execute(
                show_time_id=invoice.show_time_id,
                seat_ids=invoice.seat_ids,
                invoice_id=invoice.id,
                session_id=invoice.session_id,
            )
        except ConflictError as e:
            expired = isinstance(e, ExpiredHoldError)
            Logger.base.error(
                f'🚨 [RECONCILE] Paid txn {invoice.txn_ref} lost seats {e.seat_ids} '
                f'({"hold expired" if expired else "not held"}); cancelling, refund required'
            )
            await self.release_seats.execute(
                show_time_id=invoice.show_time_id,
                seat_ids=invoice.seat_ids,
                session_id=invoice.session_id,
                skip_foreign=True,
            )
            cancelled = await self.finalize_invoice.execute(
                txn_ref=invoice.txn_ref,
                outcome=InvoiceStatus.CANCELLED,
                reason=CancelReason.HOLD_EXPIRED,
                refund_required=True,
            )
            return ReconciliationOutcome.from_invoice(cancelled, replayed=False)

        confirmed = await self.finalize_invoice.execute(
            txn_ref=invoice.txn_ref, outcome=InvoiceStatus.CONFIRMED
        )
        return ReconciliationOutcome.from_invoice(confirmed, replayed=False)

    async def _cancel(self, invoice: Invoice) -> ReconciliationOutcome:
        await self.release_seats.execute(
            show_time_id=invoice.show_time_id,
            seat_ids=invoice.seat_ids,
            session_id=invoice.session_id,
            skip_foreign=True,
        )
        cancelled = await self.finalize_invoice.execute(
            txn_ref=invoice.txn_ref,
            outcome=InvoiceStatus.CANCELLED,
            reason=CancelReason.PAYMENT_FAILED,
        )
        return ReconciliationOutcome.from_invoice(cancelled, replayed=False)

    @Logger.io
    async def execute(
        self, *, txn_ref: str, response_code: str, provider_amount: Optional[int] = None
    ) -> ReconciliationOutcome:
        """
        Args:
            txn_ref: idempotency key of the payment
            response_code: provider result, "00" means paid
            provider_amount: amount the provider reports, checked when given

        Raises:
            NotFoundError: unknown txn_ref
            ValidationError: provider amount differs from the transaction amount
        """
        if not txn_ref or not response_code:
            raise ValidationError('txn_ref and response_code are required')

        with self.tracer.start_as_current_span(
            'use_case.handle_payment_result',
            attributes={'payment.txn_ref': txn_ref, 'payment.response_code': response_code},
        ):
            async with self.keyed_lock.hold(
                txn_lock_key(txn_ref), timeout=settings.SEAT_LOCK_TIMEOUT_SECONDS
            ):
                transaction = await self.payment_transaction_repo.get_by_txn_ref(txn_ref=txn_ref)
                if transaction is None:
                    raise NotFoundError(f'Payment transaction {txn_ref} not found')
                if provider_amount is not None and provider_amount != transaction.amount:
                    Logger.base.error(
                        f'🚨 [RECONCILE] Amount mismatch for {txn_ref}: provider '
                        f'{provider_amount}, recorded {transaction.amount}'
                    )
                    raise ValidationError('Provider amount does not match the transaction')

                transaction = await self._record_result(transaction, response_code=response_code)
                paid = transaction.status == PaymentStatus.SUCCESS

                invoice = await self.invoice_repo.get_by_txn_ref(txn_ref=txn_ref)
                if invoice is None:
                    Logger.base.error(
                        f'🚨 [RECONCILE] Transaction {txn_ref} '
                        f'({transaction.status}) has no invoice'
                    )
                    outcome = ReconciliationOutcome(
                        txn_ref=txn_ref,
                        status=ReconciliationStatus.ORPHANED,
                        refund_required=paid,
                        paid=paid,
                    )
                elif invoice.is_final:
                    outcome = self._replay(invoice, paid=paid)
                elif paid:
                    outcome = await self._confirm(invoice)
                else:
                    outcome = await self._cancel(invoice)

        metrics.record_reconciliation(outcome=outcome.status.value, replayed=outcome.replayed)
        Logger.base.info(
            f'💰 [RECONCILE] {txn_ref} → {outcome.status}'
            + (' (replayed)' if outcome.replayed else '')
        )
        return outcome
