"""
認證相關資料模型
"""

from enum import Enum
from typing import Optional
from dataclasses import dataclass

from pydantic import BaseModel, Field


class SessionState(str, Enum):
    """Session 狀態機"""

    ANONYMOUS = "anonymous"
    AUTHENTICATED = "authenticated"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class Credential:
    """Access / Refresh token 組合 (僅由 SessionManager 持有與變更)"""

    access_token: Optional[str] = None
    refresh_token: Optional[str] = None


class AuthResult(BaseModel):
    """登入、註冊、密碼重設等表單操作的結果"""

    success: bool = Field(..., description="操作是否成功")
    message: str = Field(default="", description="顯示給使用者的訊息")
    code: str = Field(default="OK", description="結果代碼")


class SessionStatus(BaseModel):
    """目前 Session 狀態"""

    state: SessionState
    authenticated: bool
