from typing import Optional

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from src.platform.config.di import Container
from src.platform.exception.exceptions import ForbiddenError
from src.service.booking.driving_adapter.http_controller.auth.jwt_auth import (
    AuthenticatedUser,
    JwtAuth,
)


bearer_scheme = HTTPBearer(auto_error=False)


@inject
async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    jwt_auth: JwtAuth = Depends(Provide[Container.jwt_auth]),
) -> AuthenticatedUser:
    """Stateless: identity comes from the token claims only."""
    return jwt_auth.get_user_from_token(credentials.credentials if credentials else None)


async def require_admin(
    current_user: AuthenticatedUser = Depends(get_current_user),
) -> AuthenticatedUser:
    if not current_user.is_admin:
        raise ForbiddenError('Only administrators can perform this action')
    return current_user
