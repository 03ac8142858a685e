"""
Session Router - 登入、註冊、密碼重設與登出
"""

from fastapi import APIRouter, Depends
from chemviz.services.api_service import ChemvizApiService
from chemviz.models.auth_models import AuthResult, SessionState, SessionStatus
from chemviz.models.request_models import (
    ForgotPasswordRequest,
    LoginRequest,
    ResetPasswordRequest,
    SignupRequest,
)
from chemviz.dependencies import get_api_service

router = APIRouter()


@router.post("/login", response_model=AuthResult)
async def login(
    body: LoginRequest, api: ChemvizApiService = Depends(get_api_service)
):
    """登入"""
    return await api.login(body.email, body.password)


@router.post("/signup", response_model=AuthResult)
async def signup(
    body: SignupRequest, api: ChemvizApiService = Depends(get_api_service)
):
    """註冊新帳號"""
    return await api.signup(body.email, body.password)


@router.post("/forgot-password", response_model=AuthResult)
async def forgot_password(
    body: ForgotPasswordRequest, api: ChemvizApiService = Depends(get_api_service)
):
    """寄送密碼重設連結"""
    return await api.forgot_password(body.email)


@router.post("/reset-password/{uid}/{token}", response_model=AuthResult)
async def reset_password(
    uid: str,
    token: str,
    body: ResetPasswordRequest,
    api: ChemvizApiService = Depends(get_api_service),
):
    """以重設連結設定新密碼"""
    return await api.reset_password(uid, token, body.password)


@router.post("/logout", response_model=SessionStatus)
async def logout(api: ChemvizApiService = Depends(get_api_service)):
    """登出 (本機 token 一定會清除)"""
    await api.logout()
    return SessionStatus(state=api.session.state, authenticated=False)


@router.get("/status", response_model=SessionStatus)
async def status(api: ChemvizApiService = Depends(get_api_service)):
    """目前登入狀態"""
    state = api.session.state
    return SessionStatus(state=state, authenticated=state != SessionState.ANONYMOUS)
