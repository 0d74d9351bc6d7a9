"""
Create Pending Invoice Use Case

Links a held seat set to one payment transaction before the buyer is sent
to the provider. Idempotent per txn_ref.
"""

from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock
from src.service.booking.app.command.seat_command_helper import (
    ensure_all_found,
    resolve_hold_session,
    validate_seat_ids,
)
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo
from src.service.booking.domain.entity.invoice_entity import Invoice


class CreatePendingInvoiceUseCase:
    def __init__(
        self,
        *,
        invoice_repo: IInvoiceRepo,
        payment_transaction_repo: IPaymentTransactionRepo,
        seat_command_repo: ISeatCommandRepo,
        clock: Clock,
    ) -> None:
        self.invoice_repo = invoice_repo
        self.payment_transaction_repo = payment_transaction_repo
        self.seat_command_repo = seat_command_repo
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(
            invoice_repo=invoice_repo,
            payment_transaction_repo=payment_transaction_repo,
            seat_command_repo=seat_command_repo,
            clock=clock,
        )

    @Logger.io
    async def execute(
        self,
        *,
        user_id: int,
        show_time_id: int,
        seat_ids: List[int],
        txn_ref: str,
        amount: int,
        session_id: Optional[str] = None,
    ) -> Invoice:
        """
        Raises:
            ValidationError: malformed input, amount differs from the seat total
                or from the transaction amount
            NotFoundError: unknown txn_ref or seat
            ConflictError: seats not held by the session, or the txn_ref already
                belongs to another buyer
            ExpiredHoldError: a hold lapsed
        """
        with self.tracer.start_as_current_span(
            'use_case.create_pending_invoice',
            attributes={'payment.txn_ref': txn_ref, 'show_time.id': show_time_id},
        ):
            if amount <= 0:
                raise ValidationError('amount must be a positive integer')
            seat_ids = validate_seat_ids(seat_ids)

            existing = await self.invoice_repo.get_by_txn_ref(txn_ref=txn_ref)
            if existing is not None:
                if existing.user_id != user_id:
                    raise ForbiddenError('Transaction belongs to another user')
                if sorted(existing.seat_ids) != seat_ids or existing.total_money != amount:
                    raise ConflictError(
                        f'Transaction {txn_ref} already has an invoice for other seats'
                    )
                Logger.base.info(f'♻️ [INVOICE] Existing invoice {existing.id} for {txn_ref}')
                return existing

            transaction = await self.payment_transaction_repo.get_by_txn_ref(txn_ref=txn_ref)
            if transaction is None:
                raise NotFoundError(f'Payment transaction {txn_ref} not found')
            if transaction.amount != amount:
                raise ValidationError(
                    f'amount {amount} does not match transaction amount {transaction.amount}'
                )
            if transaction.is_final:
                raise ConflictError(f'Transaction {txn_ref} is already {transaction.status}')

            seats = await self.seat_command_repo.get_seats(
                show_time_id=show_time_id, seat_ids=seat_ids
            )
            ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)

            now = self.clock()
            hold_session = resolve_hold_session(seats=seats, session_id=session_id, now=now)
            invoice = Invoice.create(
                user_id=user_id,
                show_time_id=show_time_id,
                txn_ref=txn_ref,
                session_id=hold_session,
                seats=seats,
                amount=amount,
                now=now,
            )
            stored = await self.invoice_repo.create(invoice=invoice)
            Logger.base.info(
                f'🧾 [INVOICE] Pending invoice {stored.id} for txn {txn_ref}, '
                f'seats {stored.seat_ids}, total {stored.total_money}'
            )
            return stored
