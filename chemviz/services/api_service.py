"""
後端 API 服務
建立在 RequestGateway 之上的各端點操作；分析與歷史回應一律經過標準化
"""

import os
from pathlib import Path
from typing import Any, List, Optional, Union

import httpx

import config as app_config
from chemviz.models.analytics_models import (
    AnalyticsSnapshot,
    HistoryEntry,
    HistoryListing,
)
from chemviz.models.auth_models import AuthResult
from chemviz.services.export_service import ExportService
from chemviz.services.gateway import RequestGateway, RequestOptions
from chemviz.services.normalizer import normalize_analytics, normalize_history
from chemviz.utils.exceptions import (
    AuthenticationError,
    MalformedResponseError,
    NetworkError,
    RequestFailedError,
    ValidationError,
)
from chemviz.utils.logger import get_logger
from chemviz.utils.security import sanitize_path_segment

logger = get_logger(__name__)

JSON_HEADERS = {"Content-Type": "application/json", "Accept": "application/json"}

CONNECTION_FAILED = (
    "Network Error: Cannot connect to server. Please check your connection."
)


def _json_or_empty(response: httpx.Response) -> dict:
    """解析錯誤回應本體，無法解析時回傳空字典"""
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _first_message(data: dict, *keys: str, default: str) -> str:
    for key in keys:
        value = data.get(key)
        if value:
            return str(value)
    return default


def _decode_json(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(
            "Response body is not valid JSON",
            details={"url": str(response.request.url)},
        ) from e


def _raise_for_status(response: httpx.Response, failure_message: str) -> None:
    """
    非 2xx 時拋出對應的異常

    401/403 代表刷新流程已失敗，Gateway 已清除 Session。
    """
    if response.is_success:
        return
    if response.status_code in (401, 403):
        raise AuthenticationError(status=response.status_code)
    raise RequestFailedError(failure_message, status=response.status_code)


class ChemvizApiService:
    """看板使用的所有後端操作"""

    def __init__(self, gateway: RequestGateway, export_service: ExportService = None):
        self.gateway = gateway
        self.session = gateway.session
        self.export_service = export_service or ExportService()

    # --- 健康檢查 ---

    async def health_check(self) -> bool:
        """後端是否可連線"""
        try:
            response = await self.gateway.execute(app_config.ENDPOINTS["health"])
        except NetworkError:
            return False
        return response.is_success

    # --- 認證 ---

    async def signup(self, email: str, password: str) -> AuthResult:
        try:
            response = await self.gateway.execute(
                app_config.ENDPOINTS["signup"],
                RequestOptions(
                    method="POST",
                    headers=dict(JSON_HEADERS),
                    json={"email": email, "password": password},
                ),
            )
        except NetworkError:
            return AuthResult(
                success=False,
                message="Network Error: Cannot connect to registration server. "
                "Please check your connection.",
                code="NETWORK_ERROR",
            )

        if response.is_success:
            return AuthResult(
                success=True, message="Account created! You can now log in."
            )

        data = _json_or_empty(response)
        return AuthResult(
            success=False,
            message=_first_message(
                data,
                "detail",
                "message",
                default="Signup failed. User might already exist.",
            ),
            code="SIGNUP_FAILED",
        )

    async def login(self, email: str, password: str) -> AuthResult:
        """
        登入並保存 token

        成功時保存 access token，若後端同時回傳 refresh token (本體或 cookie) 也一併保存。
        """
        try:
            response = await self.gateway.execute(
                app_config.ENDPOINTS["login"],
                RequestOptions(
                    method="POST",
                    headers=dict(JSON_HEADERS),
                    json={"email": email, "password": password},
                    authenticate=False,
                ),
            )
        except NetworkError:
            return AuthResult(
                success=False,
                message="Network error. Please check your connection.",
                code="NETWORK_ERROR",
            )

        if response.is_success:
            try:
                data = _decode_json(response)
            except MalformedResponseError:
                logger.error("登入回應無法解析")
                return AuthResult(
                    success=False,
                    message="Unexpected response from server. Please try again.",
                    code="MALFORMED_RESPONSE",
                )
            access = data.get("access") if isinstance(data, dict) else None
            if access:
                refresh = data.get("refresh") or response.cookies.get(
                    app_config.REFRESH_COOKIE_NAME
                )
                self.session.store(access, refresh)
            else:
                logger.warning("登入成功但回應中沒有 access token")
            return AuthResult(success=True)

        if response.status_code == 429:
            return AuthResult(
                success=False,
                message="Too many login attempts. Please wait a minute and try again.",
                code="RATE_LIMITED",
            )

        data = _json_or_empty(response)
        return AuthResult(
            success=False,
            message=_first_message(
                data, "detail", "message", default="Invalid email or password."
            ),
            code="LOGIN_FAILED",
        )

    async def logout(self) -> None:
        """通知後端登出 (盡力而為)，本機 token 一定會清除"""
        try:
            await self.gateway.execute(
                app_config.ENDPOINTS["logout"], RequestOptions(method="POST")
            )
        except NetworkError as e:
            logger.error(f"登出請求失敗: {e.message}")
        finally:
            self.session.clear()

    async def forgot_password(self, email: str) -> AuthResult:
        try:
            response = await self.gateway.execute(
                app_config.ENDPOINTS["forgot_password"],
                RequestOptions(
                    method="POST",
                    headers=dict(JSON_HEADERS),
                    json={"email": email.lower().strip()},
                    authenticate=False,
                ),
            )
        except NetworkError:
            return AuthResult(
                success=False, message=CONNECTION_FAILED, code="NETWORK_ERROR"
            )

        data = _json_or_empty(response)
        if response.is_success:
            return AuthResult(
                success=True,
                message=_first_message(
                    data,
                    "message",
                    default="If an account with that email exists, "
                    "we have sent a password reset link.",
                ),
            )
        return AuthResult(
            success=False,
            message=_first_message(
                data,
                "message",
                "error",
                default="Failed to send reset email. Please try again.",
            ),
            code="FORGOT_PASSWORD_FAILED",
        )

    async def reset_password(self, uid: str, token: str, password: str) -> AuthResult:
        """以重設連結中的 uid / token 設定新密碼"""
        endpoint = app_config.ENDPOINTS["reset_password"].format(
            uid=sanitize_path_segment(uid, "uid"),
            token=sanitize_path_segment(token, "token"),
        )
        try:
            response = await self.gateway.execute(
                endpoint,
                RequestOptions(
                    method="POST",
                    headers=dict(JSON_HEADERS),
                    json={"password": password},
                    authenticate=False,
                ),
            )
        except NetworkError:
            return AuthResult(
                success=False, message=CONNECTION_FAILED, code="NETWORK_ERROR"
            )

        data = _json_or_empty(response)
        if response.is_success:
            return AuthResult(
                success=True,
                message=_first_message(
                    data,
                    "message",
                    default="Password has been reset successfully. "
                    "You can now log in with your new password.",
                ),
            )
        return AuthResult(
            success=False,
            message=_first_message(
                data,
                "message",
                default="Invalid or expired reset link. Please request a new one.",
            ),
            code="RESET_PASSWORD_FAILED",
        )

    # --- 分析資料 ---

    async def get_analytics(
        self, dataset_id: Optional[Union[int, str]] = None
    ) -> AnalyticsSnapshot:
        """
        取得分析結果 (未指定 dataset_id 時為最新一筆)

        Raises:
            AuthenticationError: 授權失敗，Session 已清除
            RequestFailedError: 其他非 2xx 回應
            MalformedResponseError: 回應無法標準化
            NetworkError: 無法連線
        """
        if dataset_id is None:
            endpoint = app_config.ENDPOINTS["analytics"]
        else:
            endpoint = app_config.ENDPOINTS["analytics_detail"].format(
                dataset_id=sanitize_path_segment(dataset_id, "dataset_id")
            )

        response = await self.gateway.execute(endpoint)
        _raise_for_status(response, "Failed to fetch analytics")
        return normalize_analytics(_decode_json(response))

    async def get_history_listing(self) -> HistoryListing:
        response = await self.gateway.execute(app_config.ENDPOINTS["history"])
        _raise_for_status(response, "Failed to fetch history")
        return normalize_history(_decode_json(response))

    async def get_history(self) -> List[HistoryEntry]:
        listing = await self.get_history_listing()
        return listing.datasets

    async def upload_csv(
        self, file_path: Union[str, Path], content: Optional[bytes] = None
    ) -> AnalyticsSnapshot:
        """
        上傳 CSV 並取得分析結果

        Args:
            file_path: 檔案路徑 (content 有提供時只用來取得檔名)
            content: 檔案內容，省略時從 file_path 讀取
        """
        filename = os.path.basename(str(file_path))
        if not filename:
            raise ValidationError("上傳檔案名稱不可為空")

        if content is None:
            if not os.path.isfile(file_path):
                raise ValidationError(
                    f"找不到上傳檔案: {file_path}", details={"path": str(file_path)}
                )
            with open(file_path, "rb") as f:
                content = f.read()

        logger.info(f"上傳資料集: {filename} ({len(content)} bytes)")
        response = await self.gateway.execute(
            app_config.ENDPOINTS["upload"],
            RequestOptions(
                method="POST", files={"file": (filename, content, "text/csv")}
            ),
        )
        _raise_for_status(response, "Upload failed")
        return normalize_analytics(_decode_json(response))

    # --- 報表 ---

    async def download_report(
        self, dataset_id: Optional[Union[int, str]] = None
    ) -> bytes:
        """取得 PDF 報表內容 (不寫入檔案)"""
        if dataset_id is None:
            endpoint = app_config.ENDPOINTS["report"]
        else:
            endpoint = app_config.ENDPOINTS["report_detail"].format(
                dataset_id=sanitize_path_segment(dataset_id, "dataset_id")
            )

        response = await self.gateway.execute(endpoint)
        _raise_for_status(response, "Failed to generate report")
        return response.content

    async def export_report(self, dataset_id: Optional[Union[int, str]] = None) -> Path:
        """下載 PDF 報表並儲存到報表目錄"""
        content = await self.download_report(dataset_id)
        return self.export_service.save_report(content)
