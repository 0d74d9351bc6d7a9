"""Application layer DTOs"""

from src.service.booking.app.dto.checkout_result import CheckoutResult
from src.service.booking.app.dto.invoice_summary import InvoiceSummary
from src.service.booking.app.dto.provider_payment_result import ProviderPaymentResult
from src.service.booking.app.dto.reconciliation_outcome import (
    ReconciliationOutcome,
    ReconciliationStatus,
)

__all__ = [
    'CheckoutResult',
    'InvoiceSummary',
    'ProviderPaymentResult',
    'ReconciliationOutcome',
    'ReconciliationStatus',
]
