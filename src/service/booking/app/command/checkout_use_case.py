"""
Checkout Use Case

Turns a held selection into a payment redirect. The pending invoice is
written before the URL is handed out, so every redirect the buyer can
follow has an invoice the reconciler can finalize.
"""

from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock
from src.service.booking.app.command.create_payment_transaction_use_case import (
    CreatePaymentTransactionUseCase,
)
from src.service.booking.app.command.create_pending_invoice_use_case import (
    CreatePendingInvoiceUseCase,
)
from src.service.booking.app.command.seat_command_helper import (
    ensure_all_found,
    resolve_hold_session,
    validate_seat_ids,
)
from src.service.booking.app.dto import CheckoutResult
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo


class CheckoutUseCase:
    def __init__(
        self,
        *,
        seat_command_repo: ISeatCommandRepo,
        create_payment_transaction: CreatePaymentTransactionUseCase,
        create_pending_invoice: CreatePendingInvoiceUseCase,
        clock: Clock,
    ) -> None:
        self.seat_command_repo = seat_command_repo
        self.create_payment_transaction = create_payment_transaction
        self.create_pending_invoice = create_pending_invoice
        self.clock = clock
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    def build(
        cls,
        *,
        seat_command_repo: ISeatCommandRepo,
        invoice_repo: IInvoiceRepo,
        payment_transaction_repo: IPaymentTransactionRepo,
        payment_gateway: IPaymentGateway,
        clock: Clock,
    ) -> Self:
        return cls(
            seat_command_repo=seat_command_repo,
            create_payment_transaction=CreatePaymentTransactionUseCase(
                payment_gateway=payment_gateway, payment_transaction_repo=payment_transaction_repo
            ),
            create_pending_invoice=CreatePendingInvoiceUseCase(
                invoice_repo=invoice_repo,
                payment_transaction_repo=payment_transaction_repo,
                seat_command_repo=seat_command_repo,
                clock=clock,
            ),
            clock=clock,
        )

    @classmethod
    @inject
    def depends(
        cls,
        seat_command_repo: ISeatCommandRepo = Depends(Provide[Container.seat_command_repo]),
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls.build(
            seat_command_repo=seat_command_repo,
            invoice_repo=invoice_repo,
            payment_transaction_repo=payment_transaction_repo,
            payment_gateway=payment_gateway,
            clock=clock,
        )

    @Logger.io
    async def execute(
        self,
        *,
        user_id: int,
        show_time_id: int,
        seat_ids: List[int],
        bank_code: str,
        session_id: Optional[str] = None,
        client_ip: str = '127.0.0.1',
    ) -> CheckoutResult:
        """
        The amount is the sum of the held seat prices; the client never sets it.

        Raises:
            ConflictError / ExpiredHoldError: the seats are not (or no longer) held
            GatewayError: the provider refused the transaction
        """
        seat_ids = validate_seat_ids(seat_ids)
        with self.tracer.start_as_current_span(
            'use_case.checkout',
            attributes={'show_time.id': show_time_id, 'seat.count': len(seat_ids)},
        ):
            seats = await self.seat_command_repo.get_seats(
                show_time_id=show_time_id, seat_ids=seat_ids
            )
            ensure_all_found(show_time_id=show_time_id, seat_ids=seat_ids, seats=seats)
            hold_session = resolve_hold_session(
                seats=seats, session_id=session_id, now=self.clock()
            )
            amount = sum(seat.price for seat in seats)

            transaction = await self.create_payment_transaction.execute(
                amount=amount, bank_code=bank_code, client_ip=client_ip
            )
            invoice = await self.create_pending_invoice.execute(
                user_id=user_id,
                show_time_id=show_time_id,
                seat_ids=seat_ids,
                txn_ref=transaction.txn_ref,
                amount=amount,
                session_id=hold_session,
            )

        Logger.base.info(
            f'🛒 [CHECKOUT] User {user_id} → txn {transaction.txn_ref}, '
            f'invoice {invoice.id}, amount {amount}'
        )
        return CheckoutResult(
            txn_ref=transaction.txn_ref,
            payment_url=transaction.gateway_url,
            invoice_id=invoice.id,
            amount=amount,
        )
