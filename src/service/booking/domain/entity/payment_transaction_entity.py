from datetime import datetime
from enum import StrEnum
from typing import Optional

import attrs

from src.platform.exception.exceptions import ConflictError, ValidationError


class PaymentStatus(StrEnum):
    PENDING = 'PENDING'
    SUCCESS = 'SUCCESS'
    FAILED = 'FAILED'


# Provider code for an approved payment; anything else is a failure/cancel
SUCCESS_RESPONSE_CODE = '00'


def is_success_code(response_code: str) -> bool:
    return response_code == SUCCESS_RESPONSE_CODE


@attrs.define
class PaymentTransaction:
    txn_ref: str
    amount: int
    bank_code: str
    gateway_url: str
    status: PaymentStatus = PaymentStatus.PENDING
    response_code: Optional[str] = None
    created_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @classmethod
    def create(
        cls, *, txn_ref: str, amount: int, bank_code: str, gateway_url: str, now: datetime
    ) -> 'PaymentTransaction':
        if amount <= 0:
            raise ValidationError('amount must be a positive integer')
        return cls(
            txn_ref=txn_ref,
            amount=amount,
            bank_code=bank_code,
            gateway_url=gateway_url,
            created_at=now,
        )

    @property
    def is_final(self) -> bool:
        return self.status != PaymentStatus.PENDING

    def record_result(self, *, response_code: str, now: datetime) -> 'PaymentTransaction':
        """Immutable once SUCCESS/FAILED; replaying the same result is a no-op."""
        status = PaymentStatus.SUCCESS if is_success_code(response_code) else PaymentStatus.FAILED
        if self.is_final:
            if self.status != status:
                raise ConflictError(
                    f'Transaction {self.txn_ref} already {self.status}, got {status}'
                )
            return self
        return attrs.evolve(self, status=status, response_code=response_code, completed_at=now)
