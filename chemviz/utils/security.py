"""
安全性工具
提供 URL 路徑片段與檔案名稱的清理驗證
"""

import os
import re
from chemviz.utils.exceptions import SecurityError, ValidationError
from chemviz.utils.logger import get_logger

logger = get_logger(__name__)

_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_\-:.]+$")


def sanitize_path_segment(value, name: str = "segment") -> str:
    """
    驗證要插入後端 URL 路徑中的片段 (dataset id、uid、token)

    Args:
        value: 原始值 (str 或 int)
        name: 欄位名稱，用於錯誤訊息

    Returns:
        驗證後的字串

    Raises:
        ValidationError: 如果片段為空或包含非法字元
    """
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{name} 不可為空")

    segment = str(value).strip()
    if not segment:
        raise ValidationError(f"{name} 不可為空")

    # 防止路徑穿越
    if ".." in segment or not _SEGMENT_PATTERN.match(segment):
        logger.warning(f"偵測到非法的 URL 片段 {name}: {segment!r}")
        raise ValidationError(
            f"{name} 包含非法字元", details={"field": name, "value": segment}
        )

    if len(segment) > 200:
        raise ValidationError(f"{name} 過長 (最多 200 字元)")

    return segment


def sanitize_filename(filename: str) -> str:
    """
    清理並驗證檔案名稱

    Args:
        filename: 原始檔案名稱

    Returns:
        清理後的檔案名稱

    Raises:
        SecurityError: 如果檔案名稱無效
    """
    if not filename or not isinstance(filename, str):
        raise SecurityError("檔案名稱不可為空")

    # 移除路徑部分，只保留檔案名稱
    filename = os.path.basename(filename.replace("\\", "/"))

    if filename in ("", ".", "..") or not filename.strip():
        logger.warning(f"無效的檔案名稱: {filename!r}")
        raise SecurityError("檔案名稱不可為空")

    return filename
