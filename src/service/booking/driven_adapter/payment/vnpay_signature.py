"""
VNPay request signing

Redirect parameters are signed as a query string of sorted `vnp_*`
parameters, each value `quote_plus` encoded, with HMAC-SHA512 over the
merchant secret. The merchant API (querydr) instead signs a fixed list of
fields joined by `|`.
"""

import hashlib
import hmac
from typing import Any, Mapping, Sequence
from urllib.parse import quote_plus

SECURE_HASH_FIELD = 'vnp_SecureHash'
_UNSIGNED_FIELDS = {SECURE_HASH_FIELD, 'vnp_SecureHashType'}

QUERY_REQUEST_FIELDS = (
    'vnp_RequestId',
    'vnp_Version',
    'vnp_Command',
    'vnp_TmnCode',
    'vnp_TxnRef',
    'vnp_TransactionDate',
    'vnp_CreateDate',
    'vnp_IpAddr',
    'vnp_OrderInfo',
)
QUERY_RESPONSE_FIELDS = (
    'vnp_ResponseId',
    'vnp_Command',
    'vnp_ResponseCode',
    'vnp_Message',
    'vnp_TmnCode',
    'vnp_TxnRef',
    'vnp_Amount',
    'vnp_BankCode',
    'vnp_PayDate',
    'vnp_TransactionNo',
    'vnp_TransactionType',
    'vnp_TransactionStatus',
    'vnp_OrderInfo',
    'vnp_PromotionCode',
    'vnp_PromotionAmount',
)


def _hmac(data: str, *, secret: str) -> str:
    return hmac.new(secret.encode('utf-8'), data.encode('utf-8'), hashlib.sha512).hexdigest()


def build_query(params: Mapping[str, object]) -> str:
    return '&'.join(
        f'{key}={quote_plus(str(value))}'
        for key, value in sorted(params.items())
        if value is not None and value != ''
    )


def sign(params: Mapping[str, object], *, secret: str) -> str:
    return _hmac(build_query(params), secret=secret)


def signed_query(params: Mapping[str, object], *, secret: str) -> str:
    return f'{build_query(params)}&{SECURE_HASH_FIELD}={sign(params, secret=secret)}'


def verify(params: Mapping[str, str], *, secret: str) -> bool:
    received = params.get(SECURE_HASH_FIELD)
    if not received:
        return False
    signed_params = {
        key: value
        for key, value in params.items()
        if key.startswith('vnp_') and key not in _UNSIGNED_FIELDS
    }
    return hmac.compare_digest(sign(signed_params, secret=secret), received.lower())


def sign_fields(payload: Mapping[str, Any], fields: Sequence[str], *, secret: str) -> str:
    data = '|'.join('' if payload.get(field) is None else str(payload[field]) for field in fields)
    return _hmac(data, secret=secret)


def verify_fields(payload: Mapping[str, Any], fields: Sequence[str], *, secret: str) -> bool:
    received = payload.get(SECURE_HASH_FIELD)
    if not received or not isinstance(received, str):
        return False
    return hmac.compare_digest(sign_fields(payload, fields, secret=secret), received.lower())
