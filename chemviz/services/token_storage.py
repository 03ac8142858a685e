"""
Token 持久化儲存
以固定鍵值保存 access / refresh token，重新啟動後可還原
"""

import os
import json
from typing import Dict, Optional

import config as app_config
from chemviz.utils.logger import get_logger

logger = get_logger(__name__)


class TokenStorage:
    """持久化儲存介面"""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class MemoryTokenStorage(TokenStorage):
    """記憶體儲存 (測試用)"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def remove(self, key: str) -> None:
        self.data.pop(key, None)


class FileTokenStorage(TokenStorage):
    """JSON 檔案儲存，每次寫入即落地"""

    def __init__(self, path: str = None):
        self.path = path or app_config.TOKEN_STORE_PATH

    def _load(self) -> Dict[str, str]:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"無法讀取 token 檔案 {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"token 檔案格式錯誤，已忽略: {self.path}")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def _save(self, data: Dict[str, str]) -> None:
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
