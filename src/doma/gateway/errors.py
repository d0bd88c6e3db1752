"""领域异常 -> HTTP 响应映射

错误响应体统一为 {"error": {"code": ..., "message": ...}}。
"""

import structlog
from doma.core.exceptions import (
    ConcurrencyConflictError,
    DomaError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

log = structlog.get_logger()

STATUS_BY_ERROR: dict[type[DomaError], int] = {
    ValidationError: 422,
    NotFoundError: 404,
    InvalidTransitionError: 409,
    ConcurrencyConflictError: 409,
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def handle_doma_error(request: Request, exc: DomaError) -> JSONResponse:
    status_code = STATUS_BY_ERROR.get(type(exc), 500)
    await log.awarning(
        "request_rejected",
        error_code=exc.code,
        status_code=status_code,
        message=exc.message,
    )
    return error_response(status_code, exc.code, exc.message)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return error_response(422, ValidationError.code, details)


def register_error_handlers(app: FastAPI) -> None:
    """注册异常处理器"""
    app.add_exception_handler(DomaError, handle_doma_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
