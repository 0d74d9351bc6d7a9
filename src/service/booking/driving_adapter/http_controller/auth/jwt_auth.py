"""
Bearer token verification

Tokens are issued by the identity service; this side only checks the
signature and turns the claims into a request-scoped identity.
"""

from datetime import datetime, timedelta, timezone
from enum import StrEnum
from typing import Any, Dict, Optional

import attrs
import jwt

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import AuthenticationError


class UserRole(StrEnum):
    CUSTOMER = 'CUSTOMER'
    ADMIN = 'ADMIN'


@attrs.define(frozen=True)
class AuthenticatedUser:
    id: int
    role: UserRole = UserRole.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


class JwtAuth:
    def __init__(self) -> None:
        self.secret = settings.SECRET_KEY.get_secret_value()
        self.algorithm = settings.ALGORITHM

    def create_jwt_token(
        self,
        *,
        user_id: int,
        role: UserRole = UserRole.CUSTOMER,
        ttl: timedelta = timedelta(days=1),
    ) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            'sub': str(user_id),
            'user_id': user_id,
            'role': role.value,
            'iat': now,
            'exp': now + ttl,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def decode_jwt_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError:
            raise AuthenticationError('Token expired')
        except jwt.PyJWTError:
            raise AuthenticationError('Invalid token')

    def get_user_from_token(self, token: Optional[str]) -> AuthenticatedUser:
        if not token:
            raise AuthenticationError('Not authenticated')
        payload = self.decode_jwt_token(token)
        raw_id = payload.get('user_id', payload.get('sub'))
        try:
            user_id = int(raw_id)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            raise AuthenticationError('Token has no user id')
        try:
            role = UserRole(str(payload.get('role', UserRole.CUSTOMER)).upper())
        except ValueError:
            role = UserRole.CUSTOMER
        return AuthenticatedUser(id=user_id, role=role)
