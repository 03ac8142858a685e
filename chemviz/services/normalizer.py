"""
回應標準化服務
將後端格式不固定的分析 / 歷史回應轉換為標準化資料模型
只做結構轉換，不做任何數值計算、四捨五入或單位換算
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from pydantic import ValidationError as PydanticValidationError

import config as app_config
from chemviz.models.analytics_models import (
    AnalyticsSnapshot,
    BarChart,
    BarPoint,
    ChartSeries,
    GroupedBarChart,
    GroupedDataset,
    Histogram,
    HistogramBin,
    HistogramStats,
    HistoryEntry,
    HistoryListing,
    LineChart,
    LinePoint,
    NumericStats,
    PieChart,
    PieSlice,
    RadarChart,
    Statistic,
)
from chemviz.models.payload_models import (
    RawAnalyticsPayload,
    RawChartData,
    RawHistogram,
    RawHistoryRecord,
    RawHistoryResponse,
    RawNumericStats,
    RawSeriesChart,
    RawUploadEnvelope,
    analytics_envelope_adapter,
    format_label,
)
from chemviz.utils.exceptions import MalformedResponseError
from chemviz.utils.logger import get_logger

logger = get_logger(__name__)

Number = Union[int, float]

# 欄位名稱 (不分大小寫，包含即符合) -> 顯示單位，依序比對
UNIT_CONVENTIONS: Tuple[Tuple[str, str], ...] = (
    ("flowrate", "m³/h"),
    ("pressure", "bar"),
    ("temperature", "°C"),
)


def resolve_unit(column: str, supplied: Optional[str] = None) -> str:
    """後端有提供單位時直接使用，否則依欄位名稱慣例推斷"""
    if supplied:
        return supplied
    lowered = column.lower()
    for keyword, unit in UNIT_CONVENTIONS:
        if keyword in lowered:
            return unit
    return ""


def _first_present(*values, default=None):
    for value in values:
        if value is not None:
            return value
    return default


def _validation_details(exc: PydanticValidationError) -> Dict[str, Any]:
    return {
        "validation_errors": [
            {"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()
        ]
    }


# --- 圖表 ---


def _zip_series(chart: RawSeriesChart) -> List[Tuple[Any, Number]]:
    """labels 與 values 依索引配對；缺少或為 null 的值補 0，長度永遠等於 labels"""
    values = chart.values
    return [
        (label, values[idx] if idx < len(values) and values[idx] is not None else 0)
        for idx, label in enumerate(chart.labels)
    ]


def normalize_bar_charts(raw: Dict[str, RawSeriesChart]) -> List[BarChart]:
    return [
        BarChart(
            label=chart.title or key,
            data=[
                BarPoint(name=format_label(label), value=value)
                for label, value in _zip_series(chart)
            ],
        )
        for key, chart in raw.items()
    ]


def normalize_line_charts(raw: Dict[str, RawSeriesChart]) -> List[LineChart]:
    return [
        LineChart(
            label=chart.title or key,
            data=[
                LinePoint(timestamp=format_label(label), value=value)
                for label, value in _zip_series(chart)
            ],
        )
        for key, chart in raw.items()
    ]


def _normalize_histogram(hist: RawHistogram) -> Histogram:
    bins = [
        HistogramBin(
            range=b.range or f"{format_label(b.min)}-{format_label(b.max)}",
            count=b.count,
            min=b.min,
            max=b.max,
        )
        for b in hist.bins
    ]
    return Histogram(
        column=hist.column,
        bins=bins,
        total=hist.total,
        stats=HistogramStats(**hist.stats.model_dump()),
    )


def normalize_chart_data(raw: RawChartData) -> ChartSeries:
    """
    將各類圖表轉為統一結構

    缺少的圖表類別輸出空列表；雷達圖缺少時使用預設值。
    """
    pie_charts = [
        PieChart(
            label=chart.label,
            data=[
                PieSlice(
                    name=item.name or item.label or "",
                    value=_first_present(item.value, item.count, default=0),
                )
                for item in chart.data
            ],
        )
        for chart in raw.pie_charts
    ]

    grouped = [
        GroupedBarChart(
            title=chart.title,
            group_by=chart.group_by,
            groups=list(chart.groups),
            datasets=[
                GroupedDataset(label=ds.label, values=list(ds.values))
                for ds in chart.datasets
            ],
        )
        for chart in raw.grouped_bar_charts
    ]

    radar = raw.radar_chart
    return ChartSeries(
        bar_charts=normalize_bar_charts(raw.bar_charts),
        line_charts=normalize_line_charts(raw.line_charts),
        radar_chart=RadarChart(
            labels=list(radar.labels),
            values=list(radar.values),
            raw_values=list(radar.raw_values),
            health_score=radar.health_score,
            title=radar.title,
        ),
        pie_charts=pie_charts,
        histograms=[_normalize_histogram(h) for h in raw.histograms],
        grouped_bar_charts=grouped,
    )


# --- 統計 ---


def build_statistics(numeric_stats: Dict[str, RawNumericStats]) -> List[Statistic]:
    """依後端欄位順序產生單列統計列表 (含單位)"""
    return [
        Statistic(
            column=column,
            mean=stats.mean,
            median=stats.median,
            min=stats.min,
            max=stats.max,
            std=stats.std,
            unit=resolve_unit(column, stats.unit),
        )
        for column, stats in numeric_stats.items()
    ]


# --- 分析結果 ---


def normalize_analytics(data: Any, now: Optional[datetime] = None) -> AnalyticsSnapshot:
    """
    將 /api/analytics/ 或 /api/upload/ 的回應轉為 AnalyticsSnapshot

    Args:
        data: 已解析的 JSON 物件 (包在 analytics 之下或直接為分析本體)
        now: 後端未提供 upload_time 時使用的時間，預設為目前 UTC 時間

    Returns:
        AnalyticsSnapshot

    Raises:
        MalformedResponseError: 不是 JSON 物件、欄位型別錯誤或缺少 dataset_id / file_name
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(
            "Analytics response is not a JSON object",
            details={"received_type": type(data).__name__},
        )

    try:
        envelope = analytics_envelope_adapter.validate_python(data)
    except PydanticValidationError as e:
        logger.warning(f"分析回應格式錯誤: {e.error_count()} 個欄位無法解析")
        raise MalformedResponseError(
            "Analytics response has invalid fields", details=_validation_details(e)
        ) from e

    # 識別欄位以外層為優先，其次為 analytics 本體
    if isinstance(envelope, RawUploadEnvelope):
        inner: RawAnalyticsPayload = envelope.analytics
        sources = (envelope, inner)
    else:
        inner = envelope
        sources = (inner,)

    dataset_id = _first_present(*(s.dataset_id for s in sources))
    file_name = _first_present(*(s.file_name for s in sources))
    total_records = _first_present(*(s.total_records for s in sources), default=0)
    missing = [
        name
        for name, value in (("dataset_id", dataset_id), ("file_name", file_name))
        if value is None
    ]
    if missing:
        logger.warning(f"分析回應缺少必要識別欄位: {missing}")
        raise MalformedResponseError(
            "Analytics response is missing identity fields",
            details={"missing": missing},
        )

    upload_time = inner.upload_time or (now or datetime.now(timezone.utc)).isoformat()

    return AnalyticsSnapshot(
        dataset_id=dataset_id,
        file_name=file_name,
        upload_time=upload_time,
        total_records=total_records,
        columns=list(inner.columns),
        numeric_columns=list(inner.numeric_columns),
        categorical_columns=list(inner.categorical_columns),
        numeric_stats={
            column: NumericStats(**stats.model_dump(exclude={"unit"}))
            for column, stats in inner.numeric_stats.items()
        },
        categorical_distributions={
            column: dict(counts)
            for column, counts in inner.categorical_distributions.items()
        },
        averages=dict(inner.averages),
        chart_data=normalize_chart_data(inner.chart_data),
        statistics=build_statistics(inner.numeric_stats),
    )


# --- 歷史紀錄 ---


def normalize_history_entry(record: Any, index: int = 0) -> HistoryEntry:
    """將單筆後端歷史紀錄轉為 HistoryEntry"""
    try:
        raw = RawHistoryRecord.model_validate(record)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            f"History record #{index} has invalid fields",
            details=_validation_details(e),
        ) from e

    missing = [name for name in ("id", "file_name") if getattr(raw, name) is None]
    if missing:
        raise MalformedResponseError(
            f"History record #{index} is missing identity fields",
            details={"missing": missing, "index": index},
        )

    return HistoryEntry(
        id=raw.id,
        file_name=raw.file_name,
        upload_time=raw.upload_time,
        total_records=raw.total_records,
    )


def normalize_history(data: Any) -> HistoryListing:
    """
    將 /api/history/ 回應轉為 HistoryListing

    保留後端順序，不做排序或過濾。
    """
    if not isinstance(data, dict):
        raise MalformedResponseError(
            "History response is not a JSON object",
            details={"received_type": type(data).__name__},
        )
    try:
        raw = RawHistoryResponse.model_validate(data)
    except PydanticValidationError as e:
        raise MalformedResponseError(
            "History response has invalid fields", details=_validation_details(e)
        ) from e

    entries = [
        normalize_history_entry(record, index)
        for index, record in enumerate(raw.datasets)
    ]
    return HistoryListing(
        count=raw.count if raw.count is not None else len(entries),
        max_history=raw.max_history or app_config.MAX_HISTORY,
        datasets=entries,
    )
