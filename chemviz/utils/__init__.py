"""
Chemviz 工具模組
提供日誌、異常處理、安全性等工具
"""

from .logger import get_logger, LoggerFactory, redact_tokens
from .exceptions import (
    ChemvizException,
    ValidationError,
    SecurityError,
    NetworkError,
    AuthenticationError,
    RefreshFailedError,
    MalformedResponseError,
    RequestFailedError,
)
from .security import sanitize_path_segment, sanitize_filename
from .urls import resolve_url

__all__ = [
    # Logger
    "get_logger",
    "LoggerFactory",
    "redact_tokens",
    # Exceptions
    "ChemvizException",
    "ValidationError",
    "SecurityError",
    "NetworkError",
    "AuthenticationError",
    "RefreshFailedError",
    "MalformedResponseError",
    "RequestFailedError",
    # Security
    "sanitize_path_segment",
    "sanitize_filename",
    # URL
    "resolve_url",
]
