"""
URL 組合工具
"""

import re

_DUPLICATE_SLASHES = re.compile(r"([^:]/)/+")


def resolve_url(base_url: str, endpoint: str) -> str:
    """
    組合後端 URL

    絕對 URL 直接使用，否則加上 base_url 前綴；
    並將重複的路徑分隔符合併 (保留 scheme 後的 "//")。

    Args:
        base_url: 後端基礎位址
        endpoint: 相對路徑或絕對 URL

    Returns:
        完整 URL
    """
    if endpoint.startswith(("http://", "https://")):
        url = endpoint
    else:
        url = f"{base_url}{endpoint}"
    return _DUPLICATE_SLASHES.sub(r"\1", url)
