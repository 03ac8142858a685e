"""
統一異常處理中間件
將存取層的異常轉換為 ErrorResponse JSON，讓 UI 只需處理一種錯誤格式
"""

import os
import traceback

from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
from chemviz.utils.exceptions import AuthenticationError, ChemvizException
from chemviz.utils.logger import get_logger
from chemviz.models.response_models import create_error_response

logger = get_logger(__name__)


def _error_json(status_code: int, error: str, code: str, details=None, headers=None):
    error_response = create_error_response(error=error, code=code, details=details)
    return JSONResponse(
        status_code=status_code,
        content=error_response.model_dump(mode="json"),
        headers=headers,
    )


async def chemviz_exception_handler(request: Request, exc: ChemvizException):
    """
    處理 ChemvizException

    後端無法連線或回應異常 (5xx) 記為 error，其餘為 warning。
    授權失敗時附上 WWW-Authenticate，UI 據此導回登入頁。

    Args:
        request: 請求物件
        exc: 異常實例

    Returns:
        JSON 錯誤回應
    """
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        f"{exc.code} [{request.method} {request.url.path}]: {exc.message}",
        extra={"details": exc.details},
    )

    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}

    return _error_json(exc.status_code, headers=headers, **exc.to_dict())


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """處理本機路由的請求本體 / 參數驗證錯誤"""
    errors = [
        f"{' -> '.join(str(loc) for loc in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]
    error_message = "請求參數驗證失敗: " + "; ".join(errors)
    logger.warning(f"Validation Error [{request.url.path}]: {error_message}")

    return _error_json(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_message,
        "VALIDATION_ERROR",
        details={"validation_errors": errors},
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """處理 HTTP 異常 (例如未知路由)"""
    logger.warning(f"HTTP {exc.status_code} [{request.url.path}]: {exc.detail}")
    return _error_json(exc.status_code, str(exc.detail), f"HTTP_{exc.status_code}")


async def general_exception_handler(request: Request, exc: Exception):
    """
    處理未預期的異常

    DEBUG=true 時在 details 中附上堆疊追蹤，否則只回傳通用訊息。
    """
    tb_str = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    logger.error(
        f"Unhandled Exception [{request.method} {request.url.path}]: {exc}",
        extra={"exception_type": type(exc).__name__, "traceback": tb_str},
    )

    details = None
    if os.getenv("DEBUG", "false").lower() == "true":
        details = {
            "exception_type": type(exc).__name__,
            "traceback": tb_str.split("\n"),
        }

    return _error_json(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "內部錯誤，請稍後再試",
        "INTERNAL_SERVER_ERROR",
        details=details,
    )


def register_exception_handlers(app):
    """
    註冊所有異常處理器到 FastAPI 應用

    Args:
        app: FastAPI 應用實例
    """
    app.add_exception_handler(ChemvizException, chemviz_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("已註冊所有異常處理器")
