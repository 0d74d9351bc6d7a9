from abc import ABC, abstractmethod
from typing import List, Optional

from src.service.booking.domain.entity.payment_transaction_entity import PaymentTransaction


class IPaymentTransactionRepo(ABC):
    @abstractmethod
    async def create(self, *, transaction: PaymentTransaction) -> PaymentTransaction:
        pass

    @abstractmethod
    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[PaymentTransaction]:
        pass

    @abstractmethod
    async def record_result(
        self, *, transaction: PaymentTransaction
    ) -> Optional[PaymentTransaction]:
        """
        Store a SUCCESS/FAILED result only if the row is still PENDING.

        Returns:
            The written transaction, or None when a result was already recorded
        """
        pass

    @abstractmethod
    async def list_unreconciled(self, *, limit: int = 100) -> List[PaymentTransaction]:
        """SUCCESS transactions without a CONFIRMED invoice."""
        pass
