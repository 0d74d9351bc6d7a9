from typing import List

from fastapi import APIRouter, Depends, Query

from src.platform.logging.loguru_io import Logger
from src.service.booking.app.query.list_unreconciled_payments_use_case import (
    ListUnreconciledPaymentsUseCase,
)
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import AuthenticatedUser
from src.service.booking.driving_adapter.http_controller.auth.role_auth import require_admin
from src.service.booking.driving_adapter.http_controller.schema.common_schema import (
    ApiResponse,
    ok,
)
from src.service.booking.driving_adapter.http_controller.schema.payment_schema import (
    UnreconciledPaymentResponse,
)


router = APIRouter()


@router.get('/payment/unreconciled')
@Logger.io
async def list_unreconciled_payments(
    limit: int = Query(default=100, ge=1, le=1000),
    current_user: AuthenticatedUser = Depends(require_admin),
    use_case: ListUnreconciledPaymentsUseCase = Depends(ListUnreconciledPaymentsUseCase.depends),
) -> ApiResponse[List[UnreconciledPaymentResponse]]:
    """Paid transactions with no confirmed booking, for refund follow-up."""
    transactions = await use_case.execute(limit=limit)
    return ok([UnreconciledPaymentResponse.from_entity(txn) for txn in transactions])
