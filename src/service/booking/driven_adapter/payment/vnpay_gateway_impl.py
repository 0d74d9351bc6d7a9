"""
VNPay Payment Gateway Adapter

A transaction is opened locally: the buyer is redirected to the payment
page with a signed query string and VNPay creates its side of the
transaction when the buyer gets there. The provider is treated as
untrusted: results arrive through the signed return redirect or IPN, or
are fetched with the merchant API `querydr` command, whose answer is
signature-checked as well.

Retry policy (querydr): transport failures and 5xx answers are retried
once; a rejection (4xx, a bad signature or an error response code) is
surfaced immediately.
"""

from datetime import datetime
import time
from typing import Any, Mapping, Optional
import zoneinfo

import httpx
import uuid_utils

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import GatewayError, ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.booking_metrics import metrics
from src.platform.observability.tracing import inject_trace_context
from src.platform.types.clock import Clock, utc_now
from src.service.booking.app.dto.provider_payment_result import ProviderPaymentResult
from src.service.booking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.booking.domain.entity.payment_transaction_entity import (
    SUCCESS_RESPONSE_CODE,
    PaymentTransaction,
)
from src.service.booking.driven_adapter.payment import vnpay_signature


VNPAY_VERSION = '2.1.0'
VNPAY_TIMEZONE = zoneinfo.ZoneInfo('Asia/Ho_Chi_Minh')
VNPAY_DATE_FORMAT = '%Y%m%d%H%M%S'
# vnp_Amount is expressed in 1/100 of the currency unit
AMOUNT_MULTIPLIER = 100
MAX_ATTEMPTS = 2

# querydr vnp_ResponseCode: the provider has never seen the txn_ref
QUERY_TXN_NOT_FOUND = '91'
# querydr vnp_TransactionStatus: buyer has not finished paying
TRANSACTION_NOT_COMPLETED = '01'


def _vnpay_date(value: datetime) -> str:
    return value.astimezone(VNPAY_TIMEZONE).strftime(VNPAY_DATE_FORMAT)


class VnPayGatewayImpl(IPaymentGateway):
    def __init__(
        self,
        *,
        tmn_code: Optional[str] = None,
        hash_secret: Optional[str] = None,
        payment_url: Optional[str] = None,
        api_url: Optional[str] = None,
        return_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Clock = utc_now,
    ) -> None:
        self.tmn_code = tmn_code or settings.VNPAY_TMN_CODE
        self.hash_secret = hash_secret or settings.VNPAY_HASH_SECRET.get_secret_value()
        self.payment_url = payment_url or settings.VNPAY_PAYMENT_URL
        self.api_url = api_url or settings.VNPAY_API_URL
        self.return_url = return_url or settings.VNPAY_RETURN_URL
        self.timeout = timeout or settings.VNPAY_TIMEOUT_SECONDS
        self._transport = transport
        self._clock = clock
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self.timeout, transport=self._transport)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def build_params(
        self, *, txn_ref: str, amount: int, bank_code: str, client_ip: str, created: datetime
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            'vnp_Version': VNPAY_VERSION,
            'vnp_Command': 'pay',
            'vnp_TmnCode': self.tmn_code,
            'vnp_Amount': amount * AMOUNT_MULTIPLIER,
            'vnp_CurrCode': 'VND',
            'vnp_TxnRef': txn_ref,
            'vnp_OrderInfo': f'Thanh toan ve xem phim {txn_ref}',
            'vnp_OrderType': settings.VNPAY_ORDER_TYPE,
            'vnp_Locale': settings.VNPAY_LOCALE,
            'vnp_ReturnUrl': self.return_url,
            'vnp_IpAddr': client_ip,
            'vnp_CreateDate': _vnpay_date(created),
        }
        if bank_code:
            params['vnp_BankCode'] = bank_code
        return params

    @Logger.io
    async def create_transaction(
        self, *, amount: int, bank_code: str, client_ip: str = '127.0.0.1'
    ) -> PaymentTransaction:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError('amount must be a positive integer')

        now = self._clock()
        txn_ref = uuid_utils.uuid7().hex
        params = self.build_params(
            txn_ref=txn_ref, amount=amount, bank_code=bank_code, client_ip=client_ip, created=now
        )
        gateway_url = (
            f'{self.payment_url}?{vnpay_signature.signed_query(params, secret=self.hash_secret)}'
        )
        Logger.base.info(f'💳 [GATEWAY] Transaction {txn_ref} opened for {amount}')
        return PaymentTransaction.create(
            txn_ref=txn_ref,
            amount=amount,
            bank_code=bank_code,
            gateway_url=gateway_url,
            now=now,
        )

    def build_query_body(
        self, *, transaction: PaymentTransaction, client_ip: str
    ) -> dict[str, Any]:
        created_at = transaction.created_at or self._clock()
        body: dict[str, Any] = {
            'vnp_RequestId': uuid_utils.uuid7().hex,
            'vnp_Version': VNPAY_VERSION,
            'vnp_Command': 'querydr',
            'vnp_TmnCode': self.tmn_code,
            'vnp_TxnRef': transaction.txn_ref,
            'vnp_OrderInfo': f'Truy van giao dich {transaction.txn_ref}',
            'vnp_TransactionDate': _vnpay_date(created_at),
            'vnp_CreateDate': _vnpay_date(self._clock()),
            'vnp_IpAddr': client_ip,
        }
        body[vnpay_signature.SECURE_HASH_FIELD] = vnpay_signature.sign_fields(
            body, vnpay_signature.QUERY_REQUEST_FIELDS, secret=self.hash_secret
        )
        return body

    async def _post_query(self, *, body: Mapping[str, Any], txn_ref: str) -> dict[str, Any]:
        """POST to the merchant API; one retry on transport failure or 5xx."""
        last_error: Optional[Exception] = None
        for attempt in range(1, MAX_ATTEMPTS + 1):
            started = time.perf_counter()
            try:
                response = await self._get_client().post(
                    self.api_url, json=dict(body), headers=inject_trace_context()
                )
            except httpx.TransportError as e:
                last_error = e
                metrics.record_gateway_call(
                    result='transport_error', duration=time.perf_counter() - started
                )
                Logger.base.warning(
                    f'⚠️ [GATEWAY] Transport failure querying {txn_ref} '
                    f'(attempt {attempt}): {e!r}'
                )
                continue

            if response.status_code >= 500:
                last_error = GatewayError(f'Provider returned {response.status_code}')
                metrics.record_gateway_call(
                    result='transport_error', duration=time.perf_counter() - started
                )
                Logger.base.warning(
                    f'⚠️ [GATEWAY] Provider {response.status_code} querying {txn_ref} '
                    f'(attempt {attempt})'
                )
                continue

            try:
                payload = response.json()
            except ValueError:
                payload = None
            if response.status_code >= 400 or not isinstance(payload, dict):
                metrics.record_gateway_call(
                    result='rejected', duration=time.perf_counter() - started
                )
                Logger.base.error(
                    f'❌ [GATEWAY] Query for {txn_ref} rejected with {response.status_code}'
                )
                raise GatewayError(f'Payment provider rejected the query: {response.status_code}')

            metrics.record_gateway_call(result='success', duration=time.perf_counter() - started)
            return payload

        raise GatewayError(
            'Payment provider is unreachable, please try again', retryable=True
        ) from last_error

    @Logger.io
    async def query_transaction(
        self, *, transaction: PaymentTransaction, client_ip: str = '127.0.0.1'
    ) -> Optional[ProviderPaymentResult]:
        txn_ref = transaction.txn_ref
        payload = await self._post_query(
            body=self.build_query_body(transaction=transaction, client_ip=client_ip),
            txn_ref=txn_ref,
        )

        response_code = str(payload.get('vnp_ResponseCode', ''))
        if response_code == QUERY_TXN_NOT_FOUND:
            # The buyer never reached the payment page
            return None

        if not vnpay_signature.verify_fields(
            payload, vnpay_signature.QUERY_RESPONSE_FIELDS, secret=self.hash_secret
        ):
            Logger.base.error(f'🚨 [GATEWAY] Query answer for {txn_ref} has an invalid signature')
            raise GatewayError('Payment provider answer has an invalid signature')
        if payload.get('vnp_TxnRef') != txn_ref:
            Logger.base.error(
                f'🚨 [GATEWAY] Query for {txn_ref} answered for {payload.get("vnp_TxnRef")}'
            )
            raise GatewayError('Payment provider answered for another transaction')
        if response_code != SUCCESS_RESPONSE_CODE:
            Logger.base.error(
                f'❌ [GATEWAY] Query for {txn_ref} failed: {response_code} '
                f'{payload.get("vnp_Message")}'
            )
            raise GatewayError(f'Payment provider rejected the query: {response_code}')

        status = str(payload.get('vnp_TransactionStatus', ''))
        if status == TRANSACTION_NOT_COMPLETED:
            return None
        try:
            amount = int(payload['vnp_Amount']) // AMOUNT_MULTIPLIER
        except (KeyError, TypeError, ValueError):
            raise GatewayError('Payment provider answer has no valid amount')
        return ProviderPaymentResult(response_code=status, amount=amount)

    def verify_result_signature(self, *, params: Mapping[str, str]) -> bool:
        return vnpay_signature.verify(params, secret=self.hash_secret)
