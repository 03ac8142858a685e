"""
自定義異常類別
提供結構化的錯誤處理機制
"""

from typing import Optional, Dict, Any


class ChemvizException(Exception):
    """基礎異常類別"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """轉換為字典格式"""
        return {"error": self.message, "code": self.code, "details": self.details}


class ValidationError(ChemvizException):
    """本地輸入驗證錯誤"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message, code="VALIDATION_ERROR", status_code=400, details=details
        )


class SecurityError(ChemvizException):
    """安全錯誤"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message, code="SECURITY_ERROR", status_code=403, details=details
        )


class NetworkError(ChemvizException):
    """無法連線至後端服務"""

    def __init__(self, url: str, reason: str):
        super().__init__(
            message="Network Error: Cannot connect to server. Please check your connection.",
            code="NETWORK_ERROR",
            status_code=503,
            details={"url": url, "reason": reason},
        )


class AuthenticationError(ChemvizException):
    """授權失敗 (401/403)，Session 已被清除"""

    def __init__(self, message: str = "Session expired. Please log in again.", status: int = 401):
        super().__init__(
            message=message,
            code="AUTHENTICATION_ERROR",
            status_code=401,
            details={"upstream_status": status},
        )


class RefreshFailedError(ChemvizException):
    """Token 刷新失敗"""

    def __init__(self, reason: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=f"Token refresh failed: {reason}",
            code="REFRESH_FAILED",
            status_code=401,
            details=details,
        )


class MalformedResponseError(ChemvizException):
    """後端回應格式錯誤 (無法解析或缺少必要識別欄位)"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            code="MALFORMED_RESPONSE",
            status_code=502,
            details=details,
        )


class RequestFailedError(ChemvizException):
    """後端回傳非 2xx 狀態"""

    def __init__(self, message: str, status: int):
        super().__init__(
            message=message,
            code="REQUEST_FAILED",
            status_code=502,
            details={"upstream_status": status},
        )
        self.upstream_status = status
