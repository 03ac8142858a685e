"""
後端原始回應結構
欄位預設值即為容錯規則：缺少、null 或空字串的選填欄位一律套用此處宣告的預設值；
顯示用的文字欄位 (Label) 接受數字等純量並轉為字串，不會因型別不同而失敗
"""

from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Discriminator,
    Field,
    NonNegativeInt,
    Tag,
    TypeAdapter,
    model_validator,
)

Number = Union[int, float]


def format_label(value: Any) -> str:
    """以前端慣用格式將標籤轉為字串 (整數值的浮點數不顯示小數點)"""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


Label = Annotated[str, BeforeValidator(format_label)]


class RawModel(BaseModel):
    """原始回應基底：忽略未知欄位，null 與空字串視同缺少"""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _drop_missing(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                key: value
                for key, value in data.items()
                if value is not None and value != ""
            }
        return data


# --- 統計 ---


class RawNumericStats(RawModel):
    mean: Optional[Number] = None
    median: Optional[Number] = None
    min: Optional[Number] = None
    max: Optional[Number] = None
    std: Optional[Number] = None
    count: Optional[Number] = None
    unit: Optional[Label] = None


# --- 圖表 ---


class RawSeriesChart(RawModel):
    """長條圖 / 折線圖：labels 與 values 為平行陣列"""

    title: Optional[Label] = None
    labels: List[Any] = Field(default_factory=list)
    values: List[Optional[Number]] = Field(default_factory=list)


class RawPieItem(RawModel):
    name: Optional[Label] = None
    label: Optional[Label] = None
    value: Optional[Number] = None
    count: Optional[Number] = None


class RawPieChart(RawModel):
    label: Label = "Distribution"
    data: List[RawPieItem] = Field(default_factory=list)


class RawHistogramBin(RawModel):
    range: Optional[Label] = None
    count: Number = 0
    min: Number = 0
    max: Number = 0


class RawHistogramStats(RawModel):
    mean: Number = 0
    std: Number = 0
    min: Number = 0
    max: Number = 0


class RawHistogram(RawModel):
    column: Label = ""
    bins: List[RawHistogramBin] = Field(default_factory=list)
    total: Number = 0
    stats: RawHistogramStats = Field(default_factory=RawHistogramStats)


class RawGroupedDataset(RawModel):
    label: Label = ""
    values: List[Number] = Field(default_factory=list)


class RawGroupedBarChart(RawModel):
    title: Label = "Comparison"
    group_by: Label = ""
    groups: List[Label] = Field(default_factory=list)
    datasets: List[RawGroupedDataset] = Field(default_factory=list)


class RawRadarChart(RawModel):
    labels: List[Label] = Field(default_factory=list)
    values: List[Number] = Field(default_factory=list)
    raw_values: List[Number] = Field(default_factory=list)
    health_score: Number = 0
    title: Label = "System Health Radar"


class RawChartData(RawModel):
    bar_charts: Dict[str, RawSeriesChart] = Field(default_factory=dict)
    line_charts: Dict[str, RawSeriesChart] = Field(default_factory=dict)
    pie_charts: List[RawPieChart] = Field(default_factory=list)
    histograms: List[RawHistogram] = Field(default_factory=list)
    grouped_bar_charts: List[RawGroupedBarChart] = Field(default_factory=list)
    radar_chart: RawRadarChart = Field(default_factory=RawRadarChart)


# --- 分析結果 ---


class RawAnalyticsPayload(RawModel):
    """GET /api/analytics/ 的回應本體"""

    dataset_id: Optional[Union[int, str]] = None
    file_name: Optional[str] = None
    upload_time: Optional[str] = None
    total_records: Optional[int] = None
    columns: List[Label] = Field(default_factory=list)
    numeric_columns: List[Label] = Field(default_factory=list)
    categorical_columns: List[Label] = Field(default_factory=list)
    numeric_stats: Dict[str, RawNumericStats] = Field(default_factory=dict)
    categorical_distributions: Dict[str, Dict[str, NonNegativeInt]] = Field(
        default_factory=dict
    )
    averages: Dict[str, Number] = Field(default_factory=dict)
    chart_data: RawChartData = Field(default_factory=RawChartData)


class RawUploadEnvelope(RawModel):
    """POST /api/upload/ 的回應：分析結果包在 analytics 之下"""

    dataset_id: Optional[Union[int, str]] = None
    file_name: Optional[str] = None
    total_records: Optional[int] = None
    analytics: RawAnalyticsPayload


def _envelope_tag(data: Any) -> str:
    if isinstance(data, dict):
        return "upload" if isinstance(data.get("analytics"), dict) else "analytics"
    return "upload" if isinstance(data, RawUploadEnvelope) else "analytics"


AnalyticsEnvelope = Annotated[
    Union[
        Annotated[RawUploadEnvelope, Tag("upload")],
        Annotated[RawAnalyticsPayload, Tag("analytics")],
    ],
    Discriminator(_envelope_tag),
]

analytics_envelope_adapter = TypeAdapter(AnalyticsEnvelope)


# --- 歷史紀錄 ---


class RawHistoryRecord(RawModel):
    id: Optional[Union[int, str]] = None
    file_name: Optional[str] = None
    upload_time: Optional[str] = None
    total_records: int = 0


class RawHistoryResponse(RawModel):
    """GET /api/history/ 的回應"""

    count: Optional[int] = None
    max_history: Optional[int] = None
    datasets: List[Dict[str, Any]] = Field(default_factory=list)
