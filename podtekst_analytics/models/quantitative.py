"""Aggregate snapshot models computed once per conversation upload."""
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

# 2 = hour/day buckets computed in the configured local zone instead of UTC
CURRENT_QUANT_VERSION = 2

@dataclass
class PersonMetrics:
    total_messages: int = 0
    total_words: int = 0
    total_characters: int = 0
    average_message_length: float = 0.0  # words
    average_message_chars: float = 0.0
    messages_with_emoji: int = 0
    emoji_count: int = 0
    top_emojis: List[Dict[str, Any]] = field(default_factory=list)  # [{"emoji": "x", "count": N}]
    questions_asked: int = 0
    media_shared: int = 0
    links_shared: int = 0
    reactions_given: int = 0
    reactions_received: int = 0
    top_reactions_given: List[Dict[str, Any]] = field(default_factory=list)
    unsent_messages: int = 0

    # Discord only
    mentions_made: Optional[int] = None
    mentions_received: Optional[int] = None
    replies_sent: Optional[int] = None
    replies_received: Optional[int] = None
    edited_messages: Optional[int] = None

@dataclass
class PersonTiming:
    average_response_time_ms: float = 0.0
    median_response_time_ms: float = 0.0
    fastest_response_ms: float = 0.0
    slowest_response_ms: float = 0.0

@dataclass
class LongestSilence:
    duration_ms: int = 0
    start_timestamp: int = 0
    end_timestamp: int = 0
    last_sender: str = ""
    next_sender: str = ""

@dataclass
class TimingMetrics:
    per_person: Optional[Dict[str, PersonTiming]] = None
    longest_silence: Optional[LongestSilence] = None
    late_night_messages: Optional[Dict[str, int]] = None
    conversation_initiations: Optional[Dict[str, int]] = None
    conversation_endings: Optional[Dict[str, int]] = None

@dataclass
class EngagementMetrics:
    total_sessions: int = 0
    avg_conversation_length: float = 0.0
    double_texts: Dict[str, int] = field(default_factory=dict)
    max_consecutive: Dict[str, int] = field(default_factory=dict)
    message_ratio: Dict[str, float] = field(default_factory=dict)

@dataclass
class PatternMetrics:
    volume_trend: float = 0.0  # slope of monthly totals
    monthly_volume: List[Dict[str, Any]] = field(default_factory=list)  # [{"month": "YYYY-MM", "perPerson": {...}, "total": N}]

@dataclass
class HeatmapData:
    per_person: Dict[str, List[List[int]]] = field(default_factory=dict)  # [dayOfWeek][hour], 0 = Sunday
    combined: List[List[int]] = field(default_factory=list)

@dataclass
class QuantitativeAnalysis:
    per_person: Dict[str, PersonMetrics] = field(default_factory=dict)
    timing: TimingMetrics = field(default_factory=TimingMetrics)
    engagement: EngagementMetrics = field(default_factory=EngagementMetrics)
    patterns: PatternMetrics = field(default_factory=PatternMetrics)
    heatmap: Optional[HeatmapData] = None
    version: Optional[int] = None  # persisted as "_version"


def needs_recompute(quant: QuantitativeAnalysis) -> bool:
    """True for snapshots written before the local-time bucketing fix."""
    return quant.version is None or quant.version < CURRENT_QUANT_VERSION
