"""
標準 API 錯誤回應模型
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime


class ErrorResponse(BaseModel):
    """標準 API 錯誤回應"""

    success: bool = Field(default=False, description="請求是否成功")
    error: str = Field(..., description="錯誤訊息")
    code: str = Field(default="ERROR", description="錯誤碼")
    details: Optional[Dict[str, Any]] = Field(default=None, description="詳細錯誤資訊")
    timestamp: datetime = Field(default_factory=datetime.now, description="回應時間")

    class Config:
        json_schema_extra = {
            "example": {
                "success": False,
                "error": "Session expired. Please log in again.",
                "code": "AUTHENTICATION_ERROR",
                "details": {"upstream_status": 401},
                "timestamp": "2026-02-03T17:00:00",
            }
        }


def create_error_response(
    error: str, code: str = "ERROR", details: Dict[str, Any] = None
) -> ErrorResponse:
    """
    建立錯誤回應的便捷函數

    Args:
        error: 錯誤訊息
        code: 錯誤碼
        details: 詳細錯誤資訊

    Returns:
        ErrorResponse 物件
    """
    return ErrorResponse(success=False, error=error, code=code, details=details)
