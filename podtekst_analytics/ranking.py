"""
Percentile rankings of a conversation against heuristic reference curves.

Each metric is placed on a log-normal CDF (median and sigma in log space)
hand-calibrated to "typical" conversations. The curves are estimates, not
population data, so every ranking is flagged is_estimated.
"""
import logging
import math
from dataclasses import dataclass
from typing import Dict

from podtekst_analytics.metrics import (
    longest_silence,
    mean,
    median_response_ms,
    person_value,
    round_half_up,
    timing_counts,
    timing_per_person,
)
from podtekst_analytics.models.quantitative import QuantitativeAnalysis
from podtekst_analytics.models.results import RankingPercentile, RankingPercentiles

logger = logging.getLogger(__name__)

NEUTRAL_PERCENTILE = 50


@dataclass(frozen=True)
class ReferenceCurve:
    median: float
    sigma: float
    inverted: bool = False  # lower raw value ranks higher

    def cdf(self, value: float) -> float:
        if value <= 0:
            return 0.0
        z = (math.log(value) - math.log(self.median)) / (self.sigma * math.sqrt(2))
        return 0.5 * (1 + math.erf(z))


REFERENCE_CURVES: Dict[str, ReferenceCurve] = {
    'message_volume': ReferenceCurve(median=2_000, sigma=1.2),
    'response_time': ReferenceCurve(median=15 * 60_000, sigma=1.5, inverted=True),
    'ghost_frequency': ReferenceCurve(median=2 * 86_400_000, sigma=1.2),
    'asymmetry': ReferenceCurve(median=0.2, sigma=0.8),
}

LABELS = {
    'message_volume': ('Message volume', '💬'),
    'response_time': ('Response speed', '⚡'),
    'ghost_frequency': ('Ghosting', '👻'),
    'asymmetry': ('Initiation asymmetry', '⚖️'),
}


def _to_percentile(probability: float) -> int:
    percentile = round_half_up(probability * 100)
    return max(0, min(100, percentile))


def _percentile_for(metric: str, value: float) -> int:
    curve = REFERENCE_CURVES[metric]
    if curve.inverted:
        if value <= 0:
            return NEUTRAL_PERCENTILE
        return _to_percentile(1 - curve.cdf(value))
    return _to_percentile(curve.cdf(value))


def _message_volume(quant: QuantitativeAnalysis) -> float:
    return sum(person_value(quant, name, 'total_messages') for name in quant.per_person)


def _response_time(quant: QuantitativeAnalysis) -> float:
    names = list(timing_per_person(quant))
    return mean(median_response_ms(quant, name) for name in names)


def _ghost_duration(quant: QuantitativeAnalysis) -> float:
    silence = longest_silence(quant)
    return silence.duration_ms if silence is not None else 0


def _initiation_asymmetry(quant: QuantitativeAnalysis) -> float:
    """(max - min) / total initiations: 0 for a 50/50 split, 0.8 for 90/10."""
    counts = list(timing_counts(quant, 'conversation_initiations').values())
    total = sum(counts)
    if len(counts) < 2 or total <= 0:
        return 0.0
    return (max(counts) - min(counts)) / total


RAW_VALUES = {
    'message_volume': _message_volume,
    'response_time': _response_time,
    'ghost_frequency': _ghost_duration,
    'asymmetry': _initiation_asymmetry,
}


def compute_ranking_percentiles(quant: QuantitativeAnalysis) -> RankingPercentiles:
    rankings = []
    for metric, extract in RAW_VALUES.items():
        value = extract(quant)
        label, emoji = LABELS[metric]
        rankings.append(RankingPercentile(
            metric=metric,
            label=label,
            value=value,
            percentile=_percentile_for(metric, value),
            emoji=emoji,
            is_estimated=True,
        ))
    logger.debug(f"Ranking percentiles: {[(r.metric, r.percentile) for r in rankings]}")
    return RankingPercentiles(rankings=rankings)
