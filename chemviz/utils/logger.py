"""
統一的日誌管理系統
檔案輪轉 + 控制台輸出；所有輸出都會遮蔽 access / refresh token
"""

import logging
import os
import re
from logging.handlers import RotatingFileHandler
import sys

_BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-_.=+/]+")
_JWT_PATTERN = re.compile(r"eyJ[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]+\.[A-Za-z0-9\-_]*")
_COOKIE_PATTERN = re.compile(r"(refresh_token=)[^;\s]+")

REDACTED = "***"


def redact_tokens(text: str) -> str:
    """遮蔽字串中的 Bearer 值、JWT 與 refresh_token cookie"""
    text = _BEARER_PATTERN.sub(rf"\g<1>{REDACTED}", text)
    text = _COOKIE_PATTERN.sub(rf"\g<1>{REDACTED}", text)
    return _JWT_PATTERN.sub(REDACTED, text)


class TokenRedactionFilter(logging.Filter):
    """在寫出前改寫日誌訊息，避免憑證落入日誌檔"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_tokens(message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


class LoggerFactory:
    """日誌工廠類，提供統一的 Logger 實例"""

    _loggers = {}
    _initialized = False

    @classmethod
    def _build_handlers(cls, log_file: str):
        detailed_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        simple_formatter = logging.Formatter("%(levelname)s - %(name)s - %(message)s")
        handlers = []

        # 檔案 Handler (最大 10MB，保留 5 個備份)；無法寫入時只輸出到控制台
        try:
            os.makedirs(os.path.dirname(log_file) or ".", exist_ok=True)
            file_handler = RotatingFileHandler(
                log_file,
                maxBytes=10 * 1024 * 1024,
                backupCount=5,
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(detailed_formatter)
            handlers.append(file_handler)
        except OSError as e:
            print(f"無法建立日誌檔案 handler: {e}", file=sys.stderr)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(logging.INFO)
        console_handler.setFormatter(simple_formatter)
        handlers.append(console_handler)

        for handler in handlers:
            handler.addFilter(TokenRedactionFilter())
        return handlers

    @classmethod
    def _initialize(cls):
        """初始化全域日誌配置 (只執行一次)"""
        if cls._initialized:
            return

        log_level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_file = os.path.join(os.getenv("LOG_DIR", "logs"), "chemviz.log")

        root_logger = logging.getLogger()
        root_logger.setLevel(getattr(logging, log_level, logging.INFO))
        for handler in cls._build_handlers(log_file):
            root_logger.addHandler(handler)

        cls._initialized = True
        logging.getLogger("LoggerFactory").info(
            f"日誌系統初始化完成 - 層級: {log_level}, 檔案: {log_file}"
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """
        取得指定名稱的 Logger 實例

        Args:
            name: Logger 名稱，通常使用 __name__

        Returns:
            Logger 實例
        """
        if not cls._initialized:
            cls._initialize()

        if name not in cls._loggers:
            cls._loggers[name] = logging.getLogger(name)
        return cls._loggers[name]


def get_logger(name: str) -> logging.Logger:
    """便捷函數，取得 Logger"""
    return LoggerFactory.get_logger(name)


def suppress_noisy_loggers():
    """HTTP 與 multipart 函式庫只保留警告以上 (它們的 debug 日誌會印出標頭)"""
    for logger_name in ("httpx", "httpcore", "asyncio", "multipart"):
        logger = logging.getLogger(logger_name)
        logger.setLevel(logging.WARNING)
        logger.propagate = False


# 在模組載入時自動初始化
LoggerFactory._initialize()
suppress_noisy_loggers()
