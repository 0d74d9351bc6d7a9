from typing import Optional

import attrs
from dependency_injector.wiring import Provide, inject
from fastapi import APIRouter, Depends, Request
from opentelemetry import trace

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    CustomBaseError,
    NotFoundError,
    PaymentNotConfirmedError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.service.booking.app.command.checkout_use_case import CheckoutUseCase
from src.service.booking.app.command.create_payment_transaction_use_case import (
    CreatePaymentTransactionUseCase,
)
from src.service.booking.app.command.handle_payment_result_use_case import (
    HandlePaymentResultUseCase,
)
from src.service.booking.app.command.resolve_payment_return_use_case import (
    ResolvePaymentReturnUseCase,
)
from src.service.booking.app.dto import ProviderPaymentResult, ReconciliationStatus
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.driven_adapter.payment.vnpay_gateway_impl import AMOUNT_MULTIPLIER
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import AuthenticatedUser
from src.service.booking.driving_adapter.http_controller.auth.role_auth import get_current_user
from src.service.booking.driving_adapter.http_controller.schema.common_schema import (
    ApiResponse,
    ok,
)
from src.service.booking.driving_adapter.http_controller.schema.payment_schema import (
    CheckoutRequest,
    CheckoutResponse,
    CreatePaymentRequest,
    CreatePaymentResponse,
    IpnResponse,
    ReconciliationResponse,
)


router = APIRouter()
tracer = trace.get_tracer(__name__)


@attrs.define(frozen=True)
class PaymentResultParams:
    txn_ref: str
    response_code: str
    provider_amount: Optional[int] = None


@attrs.define(frozen=True)
class PaymentReturnParams:
    txn_ref: str
    # Only set for a signature-verified provider redirect
    signed_result: Optional[ProviderPaymentResult] = None


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else '127.0.0.1'


def _parse_result_params(params: dict[str, str]) -> PaymentResultParams:
    txn_ref = params.get('vnp_TxnRef')
    response_code = params.get('vnp_ResponseCode')
    if not txn_ref or not response_code:
        raise ValidationError('vnp_TxnRef and vnp_ResponseCode are required')

    provider_amount = None
    raw_amount = params.get('vnp_Amount')
    if raw_amount is not None:
        try:
            provider_amount = int(raw_amount) // AMOUNT_MULTIPLIER
        except ValueError:
            raise ValidationError('vnp_Amount must be an integer')
    return PaymentResultParams(
        txn_ref=txn_ref, response_code=response_code, provider_amount=provider_amount
    )


@inject
async def payment_return_params(
    request: Request,
    payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
) -> PaymentReturnParams:
    """
    Accepts the provider's own `vnp_*` redirect, which must carry a valid
    signature, and the plain `txnRef` form. A plain `responseCode` is never
    trusted; the result is then looked up instead.
    """
    params = dict(request.query_params)
    if any(key.startswith('vnp_') for key in params):
        if not payment_gateway.verify_result_signature(params=params):
            Logger.base.warning(f'⚠️ [RETURN] Invalid signature for {params.get("vnp_TxnRef")}')
            raise ValidationError('Invalid payment signature')
        result = _parse_result_params(params)
        return PaymentReturnParams(
            txn_ref=result.txn_ref,
            signed_result=ProviderPaymentResult(
                response_code=result.response_code, amount=result.provider_amount
            ),
        )

    txn_ref = params.get('txnRef')
    if not txn_ref:
        raise ValidationError('txnRef is required')
    return PaymentReturnParams(txn_ref=txn_ref)


@router.post('')
@Logger.io
async def create_payment(
    request: CreatePaymentRequest,
    http_request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: CreatePaymentTransactionUseCase = Depends(CreatePaymentTransactionUseCase.depends),
) -> ApiResponse[CreatePaymentResponse]:
    transaction = await use_case.execute(
        amount=request.amount, bank_code=request.bank_code, client_ip=_client_ip(http_request)
    )
    return ok(CreatePaymentResponse.from_entity(transaction))


@router.post('/checkout')
@Logger.io
async def checkout(
    request: CheckoutRequest,
    http_request: Request,
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: CheckoutUseCase = Depends(CheckoutUseCase.depends),
) -> ApiResponse[CheckoutResponse]:
    with tracer.start_as_current_span('controller.checkout') as span:
        span.set_attribute('user.id', current_user.id)
        result = await use_case.execute(
            user_id=current_user.id,
            show_time_id=request.show_time_id,
            seat_ids=request.seat_ids,
            bank_code=request.bank_code,
            session_id=request.session_id,
            client_ip=_client_ip(http_request),
        )
        span.set_attribute('payment.txn_ref', result.txn_ref)
        return ok(CheckoutResponse.from_result(result))


@router.get('/return')
@Logger.io
async def payment_return(
    http_request: Request,
    params: PaymentReturnParams = Depends(payment_return_params),
    current_user: AuthenticatedUser = Depends(get_current_user),
    use_case: ResolvePaymentReturnUseCase = Depends(ResolvePaymentReturnUseCase.depends),
) -> ApiResponse[ReconciliationResponse]:
    """
    Finalizes the payment the buyer was redirected back from. A paid
    transaction whose seats could not be booked is reported as an error,
    never as a success.
    """
    outcome = await use_case.execute(
        txn_ref=params.txn_ref,
        user_id=current_user.id,
        is_admin=current_user.is_admin,
        signed_result=params.signed_result,
        client_ip=_client_ip(http_request),
    )
    if outcome.paid and not outcome.is_success:
        raise PaymentNotConfirmedError(
            'Payment received but the seats could not be booked; a refund will be issued',
            txn_ref=outcome.txn_ref,
            seat_ids=outcome.seat_ids,
        )

    response = ReconciliationResponse.from_outcome(outcome)
    if outcome.status == ReconciliationStatus.CONFIRMED:
        return ok(response, message='Booking confirmed')
    if outcome.status == ReconciliationStatus.PENDING:
        return ok(response, message='Payment is still being processed')
    return ok(response, message='Payment was not completed')


@router.get('/ipn')
@inject
async def payment_ipn(
    request: Request,
    payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    use_case: HandlePaymentResultUseCase = Depends(HandlePaymentResultUseCase.depends),
) -> IpnResponse:
    """Server-to-server notification; answered in the provider's RspCode format."""
    params = dict(request.query_params)
    if not payment_gateway.verify_result_signature(params=params):
        Logger.base.warning(f'⚠️ [IPN] Invalid signature for {params.get("vnp_TxnRef")}')
        return IpnResponse(rsp_code='97', message='Invalid signature')

    try:
        result = _parse_result_params(params)
        outcome = await use_case.execute(
            txn_ref=result.txn_ref,
            response_code=result.response_code,
            provider_amount=result.provider_amount,
        )
    except NotFoundError:
        return IpnResponse(rsp_code='01', message='Order not found')
    except ValidationError:
        return IpnResponse(rsp_code='04', message='Invalid amount')
    except CustomBaseError as e:
        Logger.base.error(f'🚨 [IPN] {params.get("vnp_TxnRef")}: {e}')
        return IpnResponse(rsp_code='99', message='Unknown error')

    if outcome.status == ReconciliationStatus.ORPHANED:
        return IpnResponse(rsp_code='01', message='Order not found')
    if outcome.replayed:
        return IpnResponse(rsp_code='02', message='Order already confirmed')
    return IpnResponse(rsp_code='00', message='Confirm Success')
