"""Result models handed to presentation/export layers. Immutable once built."""
from typing import List, Optional, Literal
from pydantic import BaseModel, ConfigDict, Field

Direction = Literal['up', 'down', 'neutral']
RankingMetric = Literal['message_volume', 'response_time', 'ghost_frequency', 'asymmetry']


class DeltaMetric(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    previous: float
    current: float
    delta: float = Field(description="current - previous")
    delta_percent: float = Field(description="(delta / previous) * 100, 0 when previous is 0")
    unit: str
    direction: Direction
    is_improvement: bool = Field(description="False for neutral direction and polarity-free metrics")


class DeltaMetrics(BaseModel):
    model_config = ConfigDict(frozen=True)

    metrics: List[DeltaMetric] = Field(default_factory=list)
    days_since_last_analysis: int
    previous_analysis_id: str
    previous_created_at: int


class RankingPercentile(BaseModel):
    model_config = ConfigDict(frozen=True)

    metric: RankingMetric
    label: str
    value: float
    percentile: int = Field(ge=0, le=100, description="Position within the reference distribution")
    emoji: str
    is_estimated: bool = Field(default=True, description="Reference curves are heuristic, not population data")


class RankingPercentiles(BaseModel):
    model_config = ConfigDict(frozen=True)

    rankings: List[RankingPercentile]


class Badge(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    emoji: str
    description: str
    holder: str = Field(description="Participant who earned the badge")
    evidence: str = Field(description="Supporting stat")


class Award(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    winner: str
    stat: str
    emoji: str
    color: str


class AnalysisReport(BaseModel):
    """
    Everything one run produces for a conversation.
    'delta' is only present when an earlier analysis with the same fingerprint exists.
    """
    model_config = ConfigDict(frozen=True)

    valid: bool = True
    analysis_id: str
    title: str
    created_at: int
    fingerprint: str
    is_reupload: bool = False
    quant_version: int
    ranking_percentiles: RankingPercentiles
    badges: List[Badge] = Field(default_factory=list)
    awards: List[Award] = Field(default_factory=list)
    delta: Optional[DeltaMetrics] = None


class AnalysisFailure(BaseModel):
    """Written to results.json instead of a report when the input cannot be analysed."""
    model_config = ConfigDict(frozen=True)

    valid: Literal[False] = False
    error: str
