"""Reconciliation result DTO."""

from enum import StrEnum
from typing import Optional

import attrs

from src.service.booking.domain.entity.invoice_entity import CancelReason, Invoice, InvoiceStatus


class ReconciliationStatus(StrEnum):
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'
    # Payment succeeded but the seats were lost before confirmation
    PAID_NOT_CONFIRMED = 'PAID_NOT_CONFIRMED'
    # A known transaction with no invoice to reconcile
    ORPHANED = 'ORPHANED'
    # No trusted result yet; nothing was recorded
    PENDING = 'PENDING'


@attrs.define(frozen=True)
class ReconciliationOutcome:
    txn_ref: str
    status: ReconciliationStatus
    invoice_id: Optional[str] = None
    booking_code: Optional[str] = None
    seat_ids: tuple[int, ...] = ()
    cancel_reason: Optional[CancelReason] = None
    refund_required: bool = False
    paid: bool = False
    replayed: bool = False

    @classmethod
    def from_invoice(cls, invoice: Invoice, *, replayed: bool) -> 'ReconciliationOutcome':
        if invoice.status == InvoiceStatus.CONFIRMED:
            status = ReconciliationStatus.CONFIRMED
        elif invoice.refund_required:
            status = ReconciliationStatus.PAID_NOT_CONFIRMED
        else:
            status = ReconciliationStatus.CANCELLED
        return cls(
            txn_ref=invoice.txn_ref,
            status=status,
            invoice_id=invoice.id,
            booking_code=invoice.booking_code,
            seat_ids=tuple(invoice.seat_ids),
            cancel_reason=invoice.cancel_reason,
            refund_required=invoice.refund_required,
            paid=status != ReconciliationStatus.CANCELLED,
            replayed=replayed,
        )

    @property
    def is_success(self) -> bool:
        return self.status == ReconciliationStatus.CONFIRMED

    @classmethod
    def pending(cls, *, txn_ref: str, invoice: Optional[Invoice]) -> 'ReconciliationOutcome':
        if invoice is None:
            return cls(txn_ref=txn_ref, status=ReconciliationStatus.PENDING)
        return cls(
            txn_ref=txn_ref,
            status=ReconciliationStatus.PENDING,
            invoice_id=invoice.id,
            seat_ids=tuple(invoice.seat_ids),
        )
