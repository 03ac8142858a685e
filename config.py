# config.py
import os


# --- 1. 後端服務位置 ---
BASE_URL = os.getenv("CHEMVIZ_BASE_URL", "https://web-production-7bcce.up.railway.app")
HTTP_TIMEOUT = float(os.getenv("CHEMVIZ_HTTP_TIMEOUT", "30"))

# --- 2. 後端 API 路徑 ---
ENDPOINTS = {
    "health": "/api/health/",
    "signup": "/api/auth/signup/",
    "login": "/api/auth/login/",
    "refresh": "/api/auth/refresh/",
    "logout": "/api/auth/logout/",
    "forgot_password": "/api/auth/forgot-password/",
    "reset_password": "/api/auth/reset-password/{uid}/{token}/",
    "analytics": "/api/analytics/",
    "analytics_detail": "/api/analytics/{dataset_id}/",
    "history": "/api/history/",
    "upload": "/api/upload/",
    "report": "/api/report/",
    "report_detail": "/api/report/{dataset_id}/",
}

# --- 3. Token 持久化 ---
ACCESS_TOKEN_KEY = "access_token"
REFRESH_TOKEN_KEY = "refresh_token"
REFRESH_COOKIE_NAME = "refresh_token"
TOKEN_STORE_PATH = os.getenv(
    "CHEMVIZ_TOKEN_STORE", os.path.join("workspace", "session.json")
)

# --- 4. 歷史紀錄與報表 ---
MAX_HISTORY = 5
REPORT_DIR = os.getenv("CHEMVIZ_REPORT_DIR", "reports")
REPORT_FILENAME_PREFIX = "Chemical_Report"

# --- 5. 本機 Dashboard 服務 ---
API_PORT = int(os.getenv("CHEMVIZ_PORT", "8001"))
