"""
Invoice Repository Interface

The ledger is keyed by txn_ref: one invoice per payment transaction.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.booking.domain.entity.invoice_entity import Invoice


class IInvoiceRepo(ABC):
    @abstractmethod
    async def create(self, *, invoice: Invoice) -> Invoice:
        """
        Insert a PENDING invoice.

        Returns:
            The stored invoice; if another invoice already exists for
            `invoice.txn_ref` that one is returned instead
        """
        pass

    @abstractmethod
    async def get_by_txn_ref(self, *, txn_ref: str) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def get_by_id(self, *, invoice_id: str) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def list_by_user(self, *, user_id: int) -> List[Invoice]:
        """Newest first."""
        pass

    @abstractmethod
    async def list_pending_before(
        self, *, created_before: datetime, limit: int = 100
    ) -> List[Invoice]:
        pass

    @abstractmethod
    async def finalize(self, *, invoice: Invoice) -> Optional[Invoice]:
        """
        Write a finalized invoice only if the stored row is still PENDING.

        Returns:
            The written invoice, or None when the row was already final
        """
        pass
