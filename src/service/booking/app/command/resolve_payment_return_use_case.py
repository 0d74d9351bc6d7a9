"""
Resolve Payment Return Use Case

Entry point for the buyer's return page. The browser is not a trusted
source of payment results: only a signature-verified provider result is
handed to the reconciler as is. Without one, a result already recorded is
replayed, otherwise the provider is asked for the transaction status.
"""

from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.state.keyed_lock import KeyedLock
from src.platform.types.clock import Clock
from src.service.booking.app.command.handle_payment_result_use_case import (
    HandlePaymentResultUseCase,
)
from src.service.booking.app.dto import (
    ProviderPaymentResult,
    ReconciliationOutcome,
)
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.app.interface.i_seat_command_repo import ISeatCommandRepo


class ResolvePaymentReturnUseCase:
    def __init__(
        self,
        *,
        payment_transaction_repo: IPaymentTransactionRepo,
        invoice_repo: IInvoiceRepo,
        payment_gateway: IPaymentGateway,
        reconciler: HandlePaymentResultUseCase,
    ) -> None:
        self.payment_transaction_repo = payment_transaction_repo
        self.invoice_repo = invoice_repo
        self.payment_gateway = payment_gateway
        self.reconciler = reconciler

    @classmethod
    def build(
        cls,
        *,
        payment_transaction_repo: IPaymentTransactionRepo,
        invoice_repo: IInvoiceRepo,
        seat_command_repo: ISeatCommandRepo,
        payment_gateway: IPaymentGateway,
        keyed_lock: KeyedLock,
        clock: Clock,
    ) -> Self:
        return cls(
            payment_transaction_repo=payment_transaction_repo,
            invoice_repo=invoice_repo,
            payment_gateway=payment_gateway,
            reconciler=HandlePaymentResultUseCase.build(
                payment_transaction_repo=payment_transaction_repo,
                invoice_repo=invoice_repo,
                seat_command_repo=seat_command_repo,
                keyed_lock=keyed_lock,
                clock=clock,
            ),
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
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        keyed_lock: KeyedLock = Depends(Provide[Container.keyed_lock]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls.build(
            payment_transaction_repo=payment_transaction_repo,
            invoice_repo=invoice_repo,
            seat_command_repo=seat_command_repo,
            payment_gateway=payment_gateway,
            keyed_lock=keyed_lock,
            clock=clock,
        )

    @Logger.io
    async def execute(
        self,
        *,
        txn_ref: str,
        user_id: int,
        is_admin: bool = False,
        signed_result: Optional[ProviderPaymentResult] = None,
        client_ip: str = '127.0.0.1',
    ) -> ReconciliationOutcome:
        """
        Args:
            signed_result: result carried by a signature-verified provider redirect

        Raises:
            NotFoundError: unknown txn_ref
            ForbiddenError: the invoice belongs to another user
            GatewayError: the provider could not be queried
        """
        transaction = await self.payment_transaction_repo.get_by_txn_ref(txn_ref=txn_ref)
        if transaction is None:
            raise NotFoundError(f'Payment transaction {txn_ref} not found')

        invoice = await self.invoice_repo.get_by_txn_ref(txn_ref=txn_ref)
        if invoice is not None and invoice.user_id != user_id and not is_admin:
            raise ForbiddenError('Payment belongs to another user')

        result = signed_result
        if result is None and transaction.is_final and transaction.response_code:
            result = ProviderPaymentResult(
                response_code=transaction.response_code, amount=transaction.amount
            )
        if result is None:
            result = await self.payment_gateway.query_transaction(
                transaction=transaction, client_ip=client_ip
            )
        if result is None:
            Logger.base.info(f'⏳ [RETURN] {txn_ref} has no provider result yet')
            return ReconciliationOutcome.pending(txn_ref=txn_ref, invoice=invoice)

        return await self.reconciler.execute(
            txn_ref=txn_ref, response_code=result.response_code, provider_amount=result.amount
        )
