from typing import Any, Callable, Coroutine

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from src.platform.exception.exceptions import CustomBaseError
from src.platform.logging.loguru_io import Logger

# Type alias for exception handlers (compatible with Starlette's expected signature)
ExceptionHandler = Callable[[Request, Exception], Coroutine[Any, Any, Response]]


def envelope(*, code: int, message: str, result: Any = None, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={'code': code, 'message': message, 'result': jsonable_encoder(result)},
    )


async def custom_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, CustomBaseError) else CustomBaseError(str(exc), 500)
    return envelope(
        code=error.status_code,
        message=error.message,
        result=error.result,
        status_code=error.status_code,
    )


async def http_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = getattr(exc, 'status_code', status.HTTP_500_INTERNAL_SERVER_ERROR)
    return envelope(
        code=status_code,
        message=str(getattr(exc, 'detail', exc)),
        status_code=status_code,
    )


async def validation_error_handler(request: Request, exc: Exception) -> JSONResponse:
    error = exc if isinstance(exc, RequestValidationError) else RequestValidationError([])
    return envelope(
        code=status.HTTP_400_BAD_REQUEST,
        message='Invalid request',
        result=error.errors(),
        status_code=status.HTTP_400_BAD_REQUEST,
    )


async def general_500_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    Logger.base.opt(exception=exc).error(f'Unhandled error on {request.method} {request.url.path}')
    return envelope(
        code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message='Internal server error',
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# Exception handler mapping
EXCEPTION_HANDLERS: dict[type[Exception], ExceptionHandler] = {
    CustomBaseError: custom_error_handler,
    StarletteHTTPException: http_error_handler,
    RequestValidationError: validation_error_handler,
    Exception: general_500_exception_handler,  # Catch-all for unhandled exceptions
}


def register_exception_handlers(app: FastAPI) -> None:
    for exception_class, handler in EXCEPTION_HANDLERS.items():
        app.add_exception_handler(exception_class, handler)
