from typing import Any, Iterable, Optional


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    def __init__(self, message: str, status_code: int, result: Optional[Any] = None) -> None:
        self.message = message
        self.status_code = status_code
        self.result = result
        super().__init__(message)


class ValidationError(CustomBaseError):
    def __init__(self, message: str, result: Optional[Any] = None) -> None:
        super().__init__(message, 400, result)


class AuthenticationError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 401)


class ForbiddenError(CustomBaseError):
    def __init__(self, message: str, result: Optional[Any] = None) -> None:
        super().__init__(message, 403, result)


class NotFoundError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    """Carries the offending seat ids (if any) so the caller can reselect."""

    def __init__(self, message: str, *, seat_ids: Iterable[int] = ()) -> None:
        self.seat_ids = sorted(seat_ids)
        super().__init__(message, 409, {'seat_ids': self.seat_ids} if self.seat_ids else None)


class ExpiredHoldError(ConflictError):
    pass


class PaymentNotConfirmedError(ConflictError):
    """Payment reported success but the seats could not be confirmed."""

    def __init__(self, message: str, *, txn_ref: str, seat_ids: Iterable[int] = ()) -> None:
        super().__init__(message, seat_ids=seat_ids)
        self.txn_ref = txn_ref
        self.result = {'txn_ref': txn_ref, 'seat_ids': self.seat_ids, 'refund_required': True}


class GatewayError(CustomBaseError):
    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message, 502)
        self.retryable = retryable


class LockTimeoutError(CustomBaseError):
    def __init__(self, message: str) -> None:
        super().__init__(message, 503)
