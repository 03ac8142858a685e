"""
報表匯出服務
將已下載的 PDF 內容寫入本機目錄 (與資料取得分離的副作用)
"""

import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import config as app_config
from chemviz.utils.logger import get_logger
from chemviz.utils.security import sanitize_filename

logger = get_logger(__name__)


def report_filename(now: Optional[datetime] = None) -> str:
    """產生報表檔名：Chemical_Report_<epoch 毫秒>.pdf"""
    now = now or datetime.now()
    return f"{app_config.REPORT_FILENAME_PREFIX}_{int(now.timestamp() * 1000)}.pdf"


class ExportService:
    def __init__(self, base_dir: str = None):
        self.base_dir = base_dir or app_config.REPORT_DIR

    def save_report(
        self, content: bytes, filename: Optional[str] = None
    ) -> Path:
        """
        儲存 PDF 報表

        Args:
            content: PDF 位元組
            filename: 檔名，省略時自動產生

        Returns:
            寫入的檔案路徑
        """
        safe_name = sanitize_filename(filename or report_filename())
        os.makedirs(self.base_dir, exist_ok=True)
        file_path = Path(self.base_dir) / safe_name

        with open(file_path, "wb") as f:
            f.write(content)

        logger.info(f"報表已儲存: {file_path} ({len(content)} bytes)")
        return file_path
