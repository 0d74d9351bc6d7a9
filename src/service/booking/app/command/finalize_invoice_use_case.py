from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.types.clock import Clock
from src.service.booking.app.interface.i_invoice_repo import IInvoiceRepo
from src.service.booking.domain.entity.invoice_entity import (
    CancelReason,
    Invoice,
    InvoiceStatus,
)


class FinalizeInvoiceUseCase:
    """
    PENDING → CONFIRMED | CANCELLED, exactly once per txn_ref.

    Repeating the same outcome returns the stored invoice. A different
    outcome for a finalized invoice raises ConflictError and changes nothing.
    The write itself is conditional on the row still being PENDING, so a
    concurrent finalizer elsewhere cannot be overwritten either.
    """

    def __init__(self, *, invoice_repo: IInvoiceRepo, clock: Clock) -> None:
        self.invoice_repo = invoice_repo
        self.clock = clock

    @classmethod
    @inject
    def depends(
        cls,
        invoice_repo: IInvoiceRepo = Depends(Provide[Container.invoice_repo]),
        clock: Clock = Depends(Provide[Container.clock]),
    ) -> Self:
        return cls(invoice_repo=invoice_repo, clock=clock)

    async def _load(self, txn_ref: str) -> Invoice:
        invoice = await self.invoice_repo.get_by_txn_ref(txn_ref=txn_ref)
        if invoice is None:
            raise NotFoundError(f'Invoice for transaction {txn_ref} not found')
        return invoice

    @Logger.io
    async def execute(
        self,
        *,
        txn_ref: str,
        outcome: InvoiceStatus,
        reason: Optional[CancelReason] = None,
        refund_required: bool = False,
    ) -> Invoice:
        invoice = await self._load(txn_ref)
        finalized = invoice.finalize(
            outcome=outcome, now=self.clock(), reason=reason, refund_required=refund_required
        )
        if finalized is invoice:
            return invoice

        written = await self.invoice_repo.finalize(invoice=finalized)
        if written is None:
            # Lost the race: apply the same idempotency rule to what was stored
            stored = await self._load(txn_ref)
            return stored.finalize(outcome=outcome, now=self.clock(), reason=reason)

        Logger.base.info(
            f'🧾 [INVOICE] Invoice {written.id} for txn {txn_ref} → {written.status}'
            + (f' ({written.cancel_reason})' if written.cancel_reason else '')
        )
        return written
