from typing import List, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.interface.i_payment_transaction_repo import IPaymentTransactionRepo
from src.service.booking.domain.entity.payment_transaction_entity import PaymentTransaction


class ListUnreconciledPaymentsUseCase:
    """Paid transactions that never produced a booking: refund or manual follow-up."""

    def __init__(self, *, payment_transaction_repo: IPaymentTransactionRepo) -> None:
        self.payment_transaction_repo = payment_transaction_repo

    @classmethod
    @inject
    def depends(
        cls,
        payment_transaction_repo: IPaymentTransactionRepo = Depends(
            Provide[Container.payment_transaction_repo]
        ),
    ) -> Self:
        return cls(payment_transaction_repo=payment_transaction_repo)

    @Logger.io
    async def execute(self, *, limit: int = 100) -> List[PaymentTransaction]:
        transactions = await self.payment_transaction_repo.list_unreconciled(limit=limit)
        if transactions:
            Logger.base.warning(
                f'⚠️ [AUDIT] {len(transactions)} paid transactions unreconciled'
            )
        return transactions
