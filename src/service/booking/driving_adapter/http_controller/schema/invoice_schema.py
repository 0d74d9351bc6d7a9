from datetime import date, datetime, time
from typing import List, Optional

from pydantic import Field

from src.service.booking.app.dto import InvoiceSummary
from src.service.booking.domain.entity.invoice_entity import Invoice
from src.service.booking.driving_adapter.http_controller.schema.common_schema import CamelModel


class CreateInvoiceRequest(CamelModel):
    model_config = {
        'json_schema_extra': {
            'example': {
                'showtimeId': 1,
                'seatIds': [11, 12],
                'txnRef': '0193a2f07c2e7d35b1f2c3d4e5f60718',
                'amount': 150000,
            }
        },
    }

    show_time_id: int = Field(alias='showtimeId', gt=0)
    seat_ids: List[int] = Field(min_length=1)
    txn_ref: str = Field(min_length=1, max_length=64)
    amount: int = Field(gt=0)
    session_id: Optional[str] = None


class CreateInvoiceResponse(CamelModel):
    invoice_id: str


class InvoiceSeatResponse(CamelModel):
    seat_id: int
    code: str
    price: int


class InvoiceResponse(CamelModel):
    id: str
    show_time_id: int = Field(alias='showtimeId')
    txn_ref: str
    booking_code: str
    status: str
    total_money: int
    seats: List[InvoiceSeatResponse]
    cancel_reason: Optional[str] = None
    refund_required: bool = False
    created_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, invoice: Invoice) -> 'InvoiceResponse':
        return cls(
            id=invoice.id,
            show_time_id=invoice.show_time_id,
            txn_ref=invoice.txn_ref,
            booking_code=invoice.booking_code,
            status=invoice.status.value,
            total_money=invoice.total_money,
            seats=[
                InvoiceSeatResponse(seat_id=seat.seat_id, code=seat.code, price=seat.price)
                for seat in invoice.seats
            ],
            cancel_reason=invoice.cancel_reason.value if invoice.cancel_reason else None,
            refund_required=invoice.refund_required,
            created_at=invoice.created_at,
            finalized_at=invoice.finalized_at,
        )


class InvoiceSummaryResponse(InvoiceResponse):
    movie_name: Optional[str] = None
    show_date: Optional[date] = None
    start_time: Optional[time] = None

    @classmethod
    def from_summary(cls, summary: InvoiceSummary) -> 'InvoiceSummaryResponse':
        base = InvoiceResponse.from_entity(summary.invoice)
        show_time = summary.show_time
        return cls(
            **base.model_dump(),
            movie_name=show_time.movie_name if show_time else None,
            show_date=show_time.date if show_time else None,
            start_time=show_time.start_time if show_time else None,
        )
