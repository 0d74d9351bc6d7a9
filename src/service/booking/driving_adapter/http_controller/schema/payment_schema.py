from datetime import datetime
from typing import List, Optional

from pydantic import Field

from src.service.booking.app.dto import CheckoutResult, ReconciliationOutcome
from src.service.booking.domain.entity.payment_transaction_entity import PaymentTransaction
from src.service.booking.driving_adapter.http_controller.schema.common_schema import CamelModel


class CreatePaymentRequest(CamelModel):
    model_config = {
        'json_schema_extra': {'example': {'amount': 150000, 'bankCode': 'NCB'}},
    }

    amount: int = Field(gt=0)
    bank_code: str = Field(min_length=1, max_length=20)


class CreatePaymentResponse(CamelModel):
    txn_ref: str
    payment_url: str

    @classmethod
    def from_entity(cls, transaction: PaymentTransaction) -> 'CreatePaymentResponse':
        return cls(txn_ref=transaction.txn_ref, payment_url=transaction.gateway_url)


class CheckoutRequest(CamelModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'showtimeId': 1,
                'seatIds': [11, 12],
                'bankCode': 'NCB',
                'sessionId': '0193a2f07c2e7d35b1f2c3d4e5f60718',
            }
        },
    }

    show_time_id: int = Field(alias='showtimeId', gt=0)
    seat_ids: List[int] = Field(min_length=1)
    bank_code: str = Field(min_length=1, max_length=20)
    session_id: Optional[str] = None


class CheckoutResponse(CamelModel):
    txn_ref: str
    payment_url: str
    invoice_id: str
    amount: int

    @classmethod
    def from_result(cls, result: CheckoutResult) -> 'CheckoutResponse':
        return cls(
            txn_ref=result.txn_ref,
            payment_url=result.payment_url,
            invoice_id=result.invoice_id,
            amount=result.amount,
        )


class ReconciliationResponse(CamelModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'txnRef': '0193a2f07c2e7d35b1f2c3d4e5f60718',
                'status': 'CONFIRMED',
                'invoiceId': '0193a2f0-7c2e-7d35-b1f2-c3d4e5f60718',
                'bookingCode': 'K7Q2M9XA',
                'seatIds': [11, 12],
                'cancelReason': None,
                'refundRequired': False,
                'replayed': False,
            }
        },
    }

    txn_ref: str
    status: str
    invoice_id: Optional[str] = None
    booking_code: Optional[str] = None
    seat_ids: List[int] = []
    cancel_reason: Optional[str] = None
    refund_required: bool = False
    replayed: bool = False

    @classmethod
    def from_outcome(cls, outcome: ReconciliationOutcome) -> 'ReconciliationResponse':
        return cls(
            txn_ref=outcome.txn_ref,
            status=outcome.status.value,
            invoice_id=outcome.invoice_id,
            booking_code=outcome.booking_code,
            seat_ids=list(outcome.seat_ids),
            cancel_reason=outcome.cancel_reason.value if outcome.cancel_reason else None,
            refund_required=outcome.refund_required,
            replayed=outcome.replayed,
        )


class IpnResponse(CamelModel):
    """Acknowledgement in the provider's own format (not enveloped)."""

    rsp_code: str = Field(alias='RspCode')
    message: str = Field(alias='Message')


class UnreconciledPaymentResponse(CamelModel):
    txn_ref: str
    amount: int
    bank_code: str
    status: str
    response_code: Optional[str] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, transaction: PaymentTransaction) -> 'UnreconciledPaymentResponse':
        return cls(
            txn_ref=transaction.txn_ref,
            amount=transaction.amount,
            bank_code=transaction.bank_code,
            status=transaction.status.value,
            response_code=transaction.response_code,
            completed_at=transaction.completed_at,
        )
