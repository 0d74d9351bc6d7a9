from typing import List

from fastapi import APIRouter, Depends
from opentelemetry import trace

from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_utils_types import UtilsUUID7
from src.service.booking.app.command.create_pending_invoice_use_case import (
    CreatePendingInvoiceUseCase,
)
from src.service.booking.app.query.get_invoice_use_case import GetInvoiceUseCase
from src.service.booking.app.query.list_my_invoices_use_case import ListMyInvoicesUseCase
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import AuthenticatedUser
from src.service.booking.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.booking.driving_adapter.http_controller.schema.common_schema import (
    ApiResponse,
    ok,
)
from src.service.booking.driving_adapter.http_controller.schema.invoice_schema import (
    CreateInvoiceRequest,
    CreateInvoiceResponse,
    InvoiceResponse,
    InvoiceSummaryResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@router.post('')
@Logger.io
async def create_invoice(
    request: CreateInvoiceRequest,
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: CreatePendingInvoiceUseCase = Depends(CreatePendingInvoiceUseCase.depends),
) -> ApiResponse[CreateInvoiceResponse]:
    """Pending invoice for held seats; repeating a txnRef returns the same invoice."""
    with tracer.start_as_current_span('controller.create_invoice') as span:
        span.set_attribute('user.id', current_user.id)
        span.set_attribute('payment.txn_ref', request.txn_ref)
        invoice = await use_case.execute(
            user_id=current_user.id,
            show_time_id=request.show_time_id,
            seat_ids=request.seat_ids,
            txn_ref=request.txn_ref,
            amount=request.amount,
            session_id=request.session_id,
        )
        return ok(CreateInvoiceResponse(invoice_id=invoice.id))


@router.get('/list')
@Logger.io
async def list_my_invoices(
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: ListMyInvoicesUseCase = Depends(ListMyInvoicesUseCase.depends),
) -> ApiResponse[List[InvoiceSummaryResponse]]:
    summaries = await use_case.execute(user_id=current_user.id)
    return ok([InvoiceSummaryResponse.from_summary(summary) for summary in summaries])


@router.get('/{invoice_id}')
@Logger.io
async def get_invoice(
    invoice_id: UtilsUUID7,
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: GetInvoiceUseCase = Depends(GetInvoiceUseCase.depends),
) -> ApiResponse[InvoiceResponse]:
    invoice = await use_case.execute(
        invoice_id=str(invoice_id), user_id=current_user.id, is_admin=current_user.is_admin
    )
    return ok(InvoiceResponse.from_entity(invoice))
