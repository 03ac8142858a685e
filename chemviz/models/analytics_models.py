"""
標準化分析資料模型
所有畫面使用的穩定結構，與後端回傳格式無關
"""

from typing import Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, computed_field

Number = Union[int, float]


class CanonicalModel(BaseModel):
    """標準化模型基底：建立後不可變更"""

    model_config = ConfigDict(frozen=True)


class NumericStats(CanonicalModel):
    """單一數值欄位的統計量 (原值傳遞，不做四捨五入)"""

    mean: Optional[Number] = None
    median: Optional[Number] = None
    min: Optional[Number] = None
    max: Optional[Number] = None
    std: Optional[Number] = None
    count: Optional[Number] = None


class Statistic(CanonicalModel):
    """舊版列表畫面使用的單列統計 (含單位)"""

    column: str
    mean: Optional[Number] = None
    median: Optional[Number] = None
    min: Optional[Number] = None
    max: Optional[Number] = None
    std: Optional[Number] = None
    unit: str = ""


# --- 圖表 ---


class BarPoint(CanonicalModel):
    name: str
    value: Number


class LinePoint(CanonicalModel):
    timestamp: str
    value: Number


class BarChart(CanonicalModel):
    label: str
    data: List[BarPoint] = Field(default_factory=list)


class LineChart(CanonicalModel):
    label: str
    data: List[LinePoint] = Field(default_factory=list)


class PieSlice(CanonicalModel):
    name: str
    value: Number


class PieChart(CanonicalModel):
    label: str
    data: List[PieSlice] = Field(default_factory=list)


class HistogramBin(CanonicalModel):
    range: str
    count: Number
    min: Number
    max: Number


class HistogramStats(CanonicalModel):
    mean: Number = 0
    std: Number = 0
    min: Number = 0
    max: Number = 0


class Histogram(CanonicalModel):
    column: str
    bins: List[HistogramBin] = Field(default_factory=list)
    total: Number = 0
    stats: HistogramStats = Field(default_factory=HistogramStats)


class GroupedDataset(CanonicalModel):
    label: str
    values: List[Number] = Field(default_factory=list)


class GroupedBarChart(CanonicalModel):
    title: str
    group_by: str
    groups: List[str] = Field(default_factory=list)
    datasets: List[GroupedDataset] = Field(default_factory=list)


class RadarChart(CanonicalModel):
    labels: List[str] = Field(default_factory=list)
    values: List[Number] = Field(default_factory=list)
    raw_values: List[Number] = Field(default_factory=list)
    health_score: Number = 0
    title: str = "System Health Radar"


class ChartSeries(CanonicalModel):
    """
    各類圖表的標準化資料
    每個類別一定存在 (可能為空列表)，呼叫端可直接迭代
    """

    bar_charts: List[BarChart] = Field(default_factory=list)
    line_charts: List[LineChart] = Field(default_factory=list)
    radar_chart: RadarChart = Field(default_factory=RadarChart)
    pie_charts: List[PieChart] = Field(default_factory=list)
    histograms: List[Histogram] = Field(default_factory=list)
    grouped_bar_charts: List[GroupedBarChart] = Field(default_factory=list)


# --- 資料集 ---


class AnalyticsSnapshot(CanonicalModel):
    """單一上傳資料集的完整分析結果"""

    dataset_id: Union[int, str]
    file_name: str
    upload_time: str
    total_records: int = 0
    columns: List[str] = Field(default_factory=list)
    numeric_columns: List[str] = Field(default_factory=list)
    categorical_columns: List[str] = Field(default_factory=list)
    numeric_stats: Dict[str, NumericStats] = Field(default_factory=dict)
    categorical_distributions: Dict[str, Dict[str, NonNegativeInt]] = Field(
        default_factory=dict
    )
    averages: Dict[str, Number] = Field(default_factory=dict)
    chart_data: ChartSeries = Field(default_factory=ChartSeries)
    statistics: List[Statistic] = Field(default_factory=list)

    # 舊版欄位別名
    @computed_field
    @property
    def id(self) -> str:
        return str(self.dataset_id)

    @computed_field
    @property
    def filename(self) -> str:
        return self.file_name

    @computed_field
    @property
    def numeric_columns_count(self) -> int:
        return len(self.numeric_columns)

    @computed_field
    @property
    def categorical_columns_count(self) -> int:
        return len(self.categorical_columns)


class HistoryEntry(CanonicalModel):
    """歷史上傳紀錄 (順序由後端決定)"""

    id: Union[int, str]
    file_name: str
    upload_time: Optional[str] = None
    total_records: int = 0

    @computed_field
    @property
    def filename(self) -> str:
        return self.file_name

    @computed_field
    @property
    def record_count(self) -> int:
        return self.total_records


class HistoryListing(CanonicalModel):
    """歷史紀錄列表與容量資訊"""

    count: int
    max_history: int
    datasets: List[HistoryEntry] = Field(default_factory=list)

    @computed_field
    @property
    def is_full(self) -> bool:
        """已達後端保留上限，下一次上傳會取代最舊的紀錄"""
        return self.count >= self.max_history
