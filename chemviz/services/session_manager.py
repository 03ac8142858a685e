"""
Session 管理服務
持有 access / refresh token，負責持久化、刷新與登出時的清除
"""

import asyncio
from typing import Optional

import httpx

import config as app_config
from chemviz.models.auth_models import Credential, SessionState
from chemviz.services.token_storage import TokenStorage
from chemviz.utils.exceptions import RefreshFailedError
from chemviz.utils.logger import get_logger
from chemviz.utils.urls import resolve_url

logger = get_logger(__name__)


class SessionManager:
    """
    唯一可以變更 Credential 的元件

    啟動時從持久化儲存還原 token；refresh() 為 single-flight，
    同時發生的多個刷新請求共用同一次網路交換。
    """

    def __init__(
        self,
        storage: TokenStorage,
        client: httpx.AsyncClient,
        base_url: str = None,
    ):
        self._storage = storage
        self._client = client
        self._base_url = base_url or app_config.BASE_URL
        self._pending_refresh: Optional[asyncio.Future] = None

        self._access_token = storage.get(app_config.ACCESS_TOKEN_KEY)
        self._refresh_token = storage.get(app_config.REFRESH_TOKEN_KEY)
        if self._access_token:
            logger.info("已從儲存區還原登入狀態")

    @property
    def credential(self) -> Credential:
        return Credential(self._access_token, self._refresh_token)

    @property
    def has_refresh_token(self) -> bool:
        return bool(self._refresh_token)

    @property
    def state(self) -> SessionState:
        if self._pending_refresh is not None and not self._pending_refresh.done():
            return SessionState.REFRESHING
        if self._access_token:
            return SessionState.AUTHENTICATED
        return SessionState.ANONYMOUS

    def authorization_value(self) -> str:
        """目前應附加的 Authorization 標頭值，未登入時為空字串"""
        return f"Bearer {self._access_token}" if self._access_token else ""

    def store(self, access: str, refresh: Optional[str] = None) -> None:
        """
        更新記憶體與持久化儲存中的 token

        Args:
            access: 新的 access token
            refresh: 新的 refresh token；省略時保留原本的 refresh token
        """
        self._access_token = access
        self._storage.set(app_config.ACCESS_TOKEN_KEY, access)
        if refresh:
            self._refresh_token = refresh
            self._storage.set(app_config.REFRESH_TOKEN_KEY, refresh)

    def clear(self) -> None:
        """清除所有 token (可重複呼叫)"""
        if self._access_token or self._refresh_token:
            logger.info("清除 Session token")
        self._access_token = None
        self._refresh_token = None
        self._storage.remove(app_config.ACCESS_TOKEN_KEY)
        self._storage.remove(app_config.REFRESH_TOKEN_KEY)
        self._client.cookies.delete(app_config.REFRESH_COOKIE_NAME)

    async def refresh(self) -> str:
        """
        以 refresh token 換取新的 access token

        若已有刷新正在進行，直接等待該次結果，不會再送出第二個請求。

        Returns:
            新的 access token

        Raises:
            RefreshFailedError: 刷新失敗 (此時 Session 已被清除)
        """
        if self._pending_refresh is None or self._pending_refresh.done():
            self._pending_refresh = asyncio.ensure_future(self._refresh_exchange())
        else:
            logger.debug("等待進行中的 token 刷新")
        return await asyncio.shield(self._pending_refresh)

    async def _refresh_exchange(self) -> str:
        if not self._refresh_token:
            self.clear()
            raise RefreshFailedError("no refresh token held")

        url = resolve_url(self._base_url, app_config.ENDPOINTS["refresh"])
        self._attach_refresh_cookie(url)
        logger.info("Access token 過期，嘗試刷新...")

        try:
            response = await self._client.post(
                url, headers={"Content-Type": "application/json"}
            )
        except httpx.TransportError as e:
            logger.error(f"Token 刷新連線失敗: {e}")
            self.clear()
            raise RefreshFailedError("network error", details={"reason": str(e)}) from e

        if not response.is_success:
            logger.warning(f"Token 刷新被拒絕: HTTP {response.status_code}")
            self.clear()
            raise RefreshFailedError(
                f"HTTP {response.status_code}",
                details={"upstream_status": response.status_code},
            )

        try:
            data = response.json()
        except ValueError as e:
            self.clear()
            raise RefreshFailedError("response is not valid JSON") from e

        access = data.get("access") if isinstance(data, dict) else None
        if not access:
            self.clear()
            raise RefreshFailedError("response has no access token")

        rotated = data.get("refresh") or response.cookies.get(
            app_config.REFRESH_COOKIE_NAME
        )
        self.store(access, rotated)
        logger.info("Token 刷新成功")
        return access

    def _attach_refresh_cookie(self, url: str) -> None:
        """以目前持有的 refresh token 覆寫 cookie (重新啟動後 cookie jar 為空，或 token 已輪替)"""
        self._client.cookies.delete(app_config.REFRESH_COOKIE_NAME)
        self._client.cookies.set(
            app_config.REFRESH_COOKIE_NAME,
            self._refresh_token,
            domain=httpx.URL(url).host,
        )
