"""
Chemviz Dashboard - 主入口
本機看板服務：所有後端存取都透過 chemviz 的 API 存取層
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
from chemviz.utils.logger import get_logger
from chemviz.middleware import register_exception_handlers
from chemviz.dependencies import close_http_client, get_session_manager
from chemviz.routers import session_router, dashboard_router

logger = get_logger(__name__)


# --- 初始化 FastAPI App ---
app = FastAPI(
    title="Chemviz Dashboard",
    description="化工設備數據看板 - API 存取層",
    version="1.0.0",
)

# --- CORS 設定 ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """應用啟動時從儲存區還原 Session"""
    session = get_session_manager()
    logger.info("=" * 60)
    logger.info(f"Chemviz Dashboard 啟動 - 後端: {config.BASE_URL}")
    logger.info(f"Session 狀態: {session.state.value}")
    logger.info("=" * 60)


@app.on_event("shutdown")
async def shutdown_event():
    await close_http_client()


# --- 註冊各功能模組的 Router ---
app.include_router(
    session_router.router,
    prefix="/session",
    tags=["Session - 登入與帳號"],
)

app.include_router(
    dashboard_router.router,
    prefix="/dashboard",
    tags=["Dashboard - 分析看板"],
)


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=config.API_PORT)
