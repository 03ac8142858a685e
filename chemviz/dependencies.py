"""
依賴注入
提供服務的單例實例
"""

import httpx

from chemviz.services.token_storage import FileTokenStorage
from chemviz.services.session_manager import SessionManager
from chemviz.services.gateway import RequestGateway
from chemviz.services.export_service import ExportService
from chemviz.services.api_service import ChemvizApiService
import config

# 單例實例
_http_client: httpx.AsyncClient = None
_session_manager: SessionManager = None
_gateway: RequestGateway = None
_api_service: ChemvizApiService = None


def get_http_client() -> httpx.AsyncClient:
    """取得共用的 HTTP client (cookie jar 承載 refresh token)"""
    global _http_client
    if _http_client is None:
        _http_client = httpx.AsyncClient(timeout=config.HTTP_TIMEOUT)
    return _http_client


def get_session_manager() -> SessionManager:
    """取得 Session 管理服務 (啟動時從儲存區還原 token)"""
    global _session_manager
    if _session_manager is None:
        _session_manager = SessionManager(
            FileTokenStorage(config.TOKEN_STORE_PATH),
            get_http_client(),
            config.BASE_URL,
        )
    return _session_manager


def get_gateway() -> RequestGateway:
    """取得請求閘道"""
    global _gateway
    if _gateway is None:
        _gateway = RequestGateway(
            get_session_manager(), get_http_client(), config.BASE_URL
        )
    return _gateway


def get_api_service() -> ChemvizApiService:
    """取得後端 API 服務"""
    global _api_service
    if _api_service is None:
        _api_service = ChemvizApiService(
            get_gateway(), ExportService(config.REPORT_DIR)
        )
    return _api_service


async def close_http_client():
    """關閉 HTTP client 並重置所有單例"""
    global _http_client, _session_manager, _gateway, _api_service
    if _http_client is not None:
        await _http_client.aclose()
    _http_client = None
    _session_manager = None
    _gateway = None
    _api_service = None
