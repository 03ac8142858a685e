"""
測試共用工具：假的後端 (httpx.MockTransport) 與範例回應
"""

import json
from typing import Any, Callable, Dict, List, Optional, Tuple

import httpx

from chemviz.services.api_service import ChemvizApiService
from chemviz.services.export_service import ExportService
from chemviz.services.gateway import RequestGateway
from chemviz.services.session_manager import SessionManager
from chemviz.services.token_storage import MemoryTokenStorage

BASE_URL = "https://backend.test"


class FakeBackend:
    """
    依 (method, path) 回傳預先排好的回應

    每個路由是一個佇列，最後一個回應會重複使用；
    回應可以是 dict (status / json / content / headers) 或 callable(request)。
    """

    def __init__(self):
        self.routes: Dict[Tuple[str, str], List[Any]] = {}
        self.requests: List[httpx.Request] = []

    def add(self, method: str, path: str, *responses: Any) -> "FakeBackend":
        self.routes.setdefault((method, path), []).extend(responses)
        return self

    def calls(self, path: str, method: Optional[str] = None) -> List[httpx.Request]:
        return [
            r
            for r in self.requests
            if r.url.path == path and (method is None or r.method == method)
        ]

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self.routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"detail": "Not found."})
        entry = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(entry):
            result = entry(request)
            if hasattr(result, "__await__"):
                result = await result
            return result
        return httpx.Response(
            entry.get("status", 200),
            json=entry.get("json"),
            content=entry.get("content"),
            headers=entry.get("headers"),
        )


def reply(status: int = 200, json: Any = None, **kwargs) -> Dict[str, Any]:
    return {"status": status, "json": json, **kwargs}


def build_stack(
    backend: FakeBackend,
    tokens: Optional[Dict[str, str]] = None,
    report_dir: str = "reports",
):
    """建立完整的 storage / session / gateway / api 組合"""
    storage = MemoryTokenStorage(tokens)
    client = httpx.AsyncClient(transport=httpx.MockTransport(backend.handler))
    session = SessionManager(storage, client, BASE_URL)
    gateway = RequestGateway(session, client, BASE_URL)
    api = ChemvizApiService(gateway, ExportService(report_dir))
    return storage, session, gateway, api


def body_of(request: httpx.Request) -> Any:
    return json.loads(request.content) if request.content else None


def analytics_payload(**overrides) -> Dict[str, Any]:
    """GET /api/analytics/ 的範例回應"""
    payload = {
        "dataset_id": 42,
        "file_name": "equipment.csv",
        "upload_time": "2026-01-05T10:00:00Z",
        "total_records": 15,
        "columns": ["Equipment Name", "Type", "Flowrate", "Pressure", "Temperature"],
        "numeric_columns": ["Flowrate", "Pressure", "Temperature"],
        "categorical_columns": ["Equipment Name", "Type"],
        "numeric_stats": {
            "Flowrate": {
                "mean": 119.8,
                "median": 118.0,
                "min": 95.0,
                "max": 150.2,
                "std": 16.123456789,
                "count": 15,
            },
            "Pressure": {
                "mean": 6.1,
                "median": 6.0,
                "min": 4.5,
                "max": 7.8,
                "std": 0.9,
                "count": 15,
            },
            "Temperature": {
                "mean": 117.5,
                "median": 118.0,
                "min": 100.0,
                "max": 135.0,
                "std": 10.2,
                "count": 15,
            },
        },
        "categorical_distributions": {"Type": {"Pump": 4, "Valve": 3, "Reactor": 2}},
        "averages": {"Flowrate": 119.8, "Pressure": 6.1, "Temperature": 117.5},
        "chart_data": {
            "bar_charts": {
                "PumpTypes": {"title": "Pumps", "labels": ["A", "B"], "values": [3]},
            },
            "line_charts": {
                "Flowrate": {"labels": [1, 2, 3], "values": [95.0, 110.5, 150.2]},
            },
            "pie_charts": [
                {
                    "label": "Equipment Types",
                    "data": [
                        {"name": "Pump", "value": 4},
                        {"label": "Valve", "count": 3},
                    ],
                }
            ],
            "histograms": [
                {
                    "column": "Pressure",
                    "bins": [
                        {"min": 4.5, "max": 6.0, "count": 7},
                        {"range": "6.0 - 7.8", "min": 6.0, "max": 7.8, "count": 8},
                    ],
                    "total": 15,
                    "stats": {"mean": 6.1, "std": 0.9, "min": 4.5, "max": 7.8},
                }
            ],
            "grouped_bar_charts": [
                {
                    "title": "Averages by Type",
                    "group_by": "Type",
                    "groups": ["Pump", "Valve"],
                    "datasets": [{"label": "Flowrate", "values": [120.0, 98.5]}],
                }
            ],
            "radar_chart": {
                "labels": ["Flowrate", "Pressure"],
                "values": [80, 65],
                "raw_values": [119.8, 6.1],
                "health_score": 72.5,
                "title": "Equipment Health",
            },
        },
    }
    payload.update(overrides)
    return payload


def upload_payload(**overrides) -> Dict[str, Any]:
    """POST /api/upload/ 的範例回應 (分析結果包在 analytics 之下)"""
    inner = analytics_payload()
    envelope = {
        "message": "File uploaded successfully",
        "dataset_id": inner.pop("dataset_id"),
        "file_name": inner.pop("file_name"),
        "total_records": inner.pop("total_records"),
        "analytics": inner,
    }
    envelope.update(overrides)
    return envelope
