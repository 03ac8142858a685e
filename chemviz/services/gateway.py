"""
Request Gateway
所有後端請求的唯一出入口：附加憑證、執行 HTTP 交換、401 時自動刷新並重試一次
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

import httpx

import config as app_config
from chemviz.services.session_manager import SessionManager
from chemviz.utils.exceptions import NetworkError, RefreshFailedError
from chemviz.utils.logger import get_logger
from chemviz.utils.urls import resolve_url

logger = get_logger(__name__)


class Attempt(Enum):
    """單一邏輯請求的重試預算：FRESH -> RETRIED -> EXHAUSTED"""

    FRESH = 0
    RETRIED = 1
    EXHAUSTED = 2

    def next(self) -> "Attempt":
        if self is Attempt.FRESH:
            return Attempt.RETRIED
        return Attempt.EXHAUSTED

    @property
    def may_retry(self) -> bool:
        return self is Attempt.FRESH


@dataclass
class RequestOptions:
    """
    單一請求的參數

    authenticate=False 用於登入、忘記密碼等不需憑證的端點：
    不附加 Authorization、不刷新重試、也不因 401/403 清除 Session。
    """

    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    json: Any = None
    data: Any = None
    files: Any = None
    authenticate: bool = True


class RequestGateway:
    """後端請求閘道"""

    def __init__(
        self,
        session: SessionManager,
        client: httpx.AsyncClient,
        base_url: str = None,
    ):
        self.session = session
        self.client = client
        self.base_url = base_url or app_config.BASE_URL

    def resolve(self, endpoint: str) -> str:
        return resolve_url(self.base_url, endpoint)

    @staticmethod
    def _caller_authorized(options: RequestOptions) -> bool:
        """呼叫端自帶 Authorization (不分大小寫)"""
        return any(name.lower() == "authorization" for name in options.headers)

    def _build_headers(self, options: RequestOptions) -> Dict[str, str]:
        headers = dict(options.headers)
        if not options.authenticate or self._caller_authorized(options):
            return headers
        # 每次嘗試都重新讀取，刷新後的重試才會帶新 token
        authorization = self.session.authorization_value()
        if authorization:
            headers["Authorization"] = authorization
        return headers

    async def execute(
        self,
        endpoint: str,
        options: Optional[RequestOptions] = None,
        attempt: Attempt = Attempt.FRESH,
    ) -> httpx.Response:
        """
        執行一次邏輯請求

        Args:
            endpoint: 相對路徑或絕對 URL
            options: 請求參數
            attempt: 重試預算狀態，呼叫端一般不需指定

        Returns:
            原始 httpx.Response (不做 JSON 解析)

        Raises:
            NetworkError: 無法連線 (不會自動重試)
        """
        options = options or RequestOptions()
        url = self.resolve(endpoint)
        headers = self._build_headers(options)

        try:
            response = await self.client.request(
                options.method,
                url,
                headers=headers,
                json=options.json,
                data=options.data,
                files=options.files,
            )
        except httpx.TransportError as e:
            logger.error(f"API 連線錯誤 [{url}]: {e}")
            raise NetworkError(url, str(e)) from e

        if not options.authenticate:
            return response

        if (
            response.status_code == 401
            and attempt.may_retry
            and self.session.has_refresh_token
            # 呼叫端自帶標頭時不刷新、不重試
            and not self._caller_authorized(options)
        ):
            if await self._recover_authorization(headers.get("Authorization", "")):
                await response.aclose()
                return await self.execute(endpoint, options, attempt.next())

        if response.status_code in (401, 403):
            logger.warning(f"授權失敗 HTTP {response.status_code} [{url}]，清除 Session")
            self.session.clear()

        return response

    async def _recover_authorization(self, sent_authorization: str) -> bool:
        """
        取得可用於重試的新 access token

        若其他請求在本次送出後已完成刷新，直接沿用新 token，不再發出刷新請求。
        """
        current = self.session.authorization_value()
        if current and current != sent_authorization:
            logger.debug("token 已由其他請求刷新，直接重試")
            return True
        try:
            await self.session.refresh()
        except RefreshFailedError as e:
            logger.warning(f"無法刷新 token，放棄重試: {e.message}")
            return False
        return True
