"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.booking.driven_adapter.model.invoice_model import InvoiceModel
from src.service.booking.driven_adapter.model.payment_transaction_model import (
    PaymentTransactionModel,
)
from src.service.booking.driven_adapter.model.seat_model import SeatModel
from src.service.booking.driven_adapter.model.show_time_model import ShowTimeModel

__all__ = [
    'InvoiceModel',
    'PaymentTransactionModel',
    'SeatModel',
    'ShowTimeModel',
]
