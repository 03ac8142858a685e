"""
本機 Dashboard API Request 資料模型
"""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str
    password: str


class SignupRequest(BaseModel):
    email: str
    password: str


class ForgotPasswordRequest(BaseModel):
    email: str


class ResetPasswordRequest(BaseModel):
    """新密碼 (uid 與 token 由路徑提供)"""

    password: str
