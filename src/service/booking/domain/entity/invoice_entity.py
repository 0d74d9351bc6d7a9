from datetime import datetime
from enum import StrEnum
import secrets
import string
from typing import Optional

import attrs
import uuid_utils

from src.platform.exception.exceptions import ConflictError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.service.booking.domain.entity.seat_entity import Seat


class InvoiceStatus(StrEnum):
    PENDING = 'PENDING'
    CONFIRMED = 'CONFIRMED'
    CANCELLED = 'CANCELLED'


class CancelReason(StrEnum):
    PAYMENT_FAILED = 'PAYMENT_FAILED'
    HOLD_EXPIRED = 'HOLD_EXPIRED'
    PAYMENT_TIMEOUT = 'PAYMENT_TIMEOUT'


_BOOKING_CODE_ALPHABET = string.ascii_uppercase + string.digits


def generate_booking_code(length: int = 8) -> str:
    return ''.join(secrets.choice(_BOOKING_CODE_ALPHABET) for _ in range(length))


@attrs.define
class InvoiceSeat:
    """Seat as it was sold; price is frozen at invoice creation."""

    seat_id: int
    code: str
    price: int


@attrs.define
class Invoice:
    id: str
    user_id: int
    show_time_id: int
    txn_ref: str
    session_id: str
    seats: list[InvoiceSeat]
    total_money: int
    booking_code: str
    status: InvoiceStatus = InvoiceStatus.PENDING
    cancel_reason: Optional[CancelReason] = None
    refund_required: bool = False
    created_at: Optional[datetime] = None
    finalized_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        user_id: int,
        show_time_id: int,
        txn_ref: str,
        session_id: str,
        seats: list[Seat],
        amount: int,
        now: datetime,
    ) -> 'Invoice':
        if not seats:
            raise ValidationError('seat_ids must not be empty')
        total = sum(seat.price for seat in seats)
        if amount != total:
            raise ValidationError(
                f'amount {amount} does not match seat total {total}',
                result={'expected_amount': total},
            )
        return cls(
            id=str(uuid_utils.uuid7()),
            user_id=user_id,
            show_time_id=show_time_id,
            txn_ref=txn_ref,
            session_id=session_id,
            seats=[InvoiceSeat(seat_id=s.id, code=s.code, price=s.price) for s in seats],
            total_money=total,
            booking_code=generate_booking_code(),
            created_at=now,
        )

    @property
    def seat_ids(self) -> list[int]:
        return [seat.seat_id for seat in self.seats]

    @property
    def is_final(self) -> bool:
        return self.status != InvoiceStatus.PENDING

    def finalize(
        self,
        *,
        outcome: InvoiceStatus,
        now: datetime,
        reason: Optional[CancelReason] = None,
        refund_required: bool = False,
    ) -> 'Invoice':
        """
        Idempotent: the same outcome again returns the invoice unchanged. A
        different outcome for a finalized invoice is rejected, never applied.
        """
        if outcome == InvoiceStatus.PENDING:
            raise ValidationError('outcome must be CONFIRMED or CANCELLED')
        if self.is_final:
            if self.status != outcome:
                Logger.base.error(
                    f'🚨 [INVOICE] Conflicting outcome for txn {self.txn_ref}: '
                    f'already {self.status}, got {outcome}'
                )
                raise ConflictError(
                    f'Invoice for {self.txn_ref} is already {self.status}'
                )
            return self
        return attrs.evolve(
            self,
            status=outcome,
            cancel_reason=reason if outcome == InvoiceStatus.CANCELLED else None,
            refund_required=refund_required,
            finalized_at=now,
        )
