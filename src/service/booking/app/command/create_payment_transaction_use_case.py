from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.domain.entity.payment_transaction_entity import PaymentTransaction


class CreatePaymentTransactionUseCase:
    """Register a transaction with the provider and keep a PENDING record of it."""

    def __init__(
        self,
        *,
        payment_gateway: IPaymentGateway,
        payment_transaction_repo: IPaymentTransactionRepo,
    ) -> None:
        self.payment_gateway = payment_gateway
        self.payment_transaction_repo = payment_transaction_repo
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
    ) -> Self:
        return cls(
            payment_gateway=payment_gateway, payment_transaction_repo=payment_transaction_repo
        )

    @Logger.io
    async def execute(
        self, *, amount: int, bank_code: str, client_ip: str = '127.0.0.1'
    ) -> PaymentTransaction:
        with self.tracer.start_as_current_span(
            'use_case.create_payment_transaction', attributes={'payment.amount': amount}
        ):
            transaction = await self.payment_gateway.create_transaction(
                amount=amount, bank_code=bank_code, client_ip=client_ip
            )
            return await self.payment_transaction_repo.create(transaction=transaction)
