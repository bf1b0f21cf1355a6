"""Longitudinal comparison between two analyses of the same conversation."""
import logging
from typing import Optional

from podtekst_analytics.metrics import (
    mean,
    median_response_ms,
    person_value,
    round_half_up,
    timing_per_person,
)
from podtekst_analytics.models.analysis import StoredAnalysis
from podtekst_analytics.models.results import DeltaMetric, DeltaMetrics

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000
NEUTRAL_BAND = 0.001


def get_direction(delta: float) -> str:
    if abs(delta) < NEUTRAL_BAND:
        return 'neutral'
    return 'up' if delta > 0 else 'down'


def calc_delta_percent(delta: float, previous: float) -> float:
    if previous == 0:
        return 0.0
    return (delta / previous) * 100


def build_metric(label: str, previous: float, current: float, unit: str,
                 more_is_better: Optional[bool]) -> DeltaMetric:
    """
    more_is_better=None marks a polarity-free metric: it still gets a
    direction but is never reported as an improvement.
    """
    delta = current - previous
    direction = get_direction(delta)
    if direction == 'neutral' or more_is_better is None:
        is_improvement = False
    elif more_is_better:
        is_improvement = direction == 'up'
    else:
        is_improvement = direction == 'down'

    return DeltaMetric(
        label=label,
        previous=previous,
        current=current,
        delta=delta,
        delta_percent=calc_delta_percent(delta, previous),
        unit=unit,
        direction=direction,
        is_improvement=is_improvement,
    )


def _total_words(analysis: StoredAnalysis) -> float:
    quant = analysis.quantitative
    return sum(person_value(quant, name, 'total_words') for name in quant.per_person)


def _mean_response_ms(analysis: StoredAnalysis) -> float:
    quant = analysis.quantitative
    return mean(median_response_ms(quant, name) for name in timing_per_person(quant))


def _mean_message_length(analysis: StoredAnalysis) -> float:
    quant = analysis.quantitative
    return mean(person_value(quant, name, 'average_message_length') for name in quant.per_person)


def compute_delta(current: StoredAnalysis, previous: StoredAnalysis) -> DeltaMetrics:
    """
    Diff two snapshots. Callers make sure both belong to the same conversation
    (matching fingerprints); nothing here checks that.
    """
    cq = current.quantitative
    pq = previous.quantitative

    metrics = [
        build_metric('Messages',
                     previous.conversation.metadata.total_messages,
                     current.conversation.metadata.total_messages,
                     'msg', True),
        build_metric('Words', _total_words(previous), _total_words(current), 'words', True),
        build_metric('Sessions', pq.engagement.total_sessions, cq.engagement.total_sessions, 'sessions', True),
        # lower response time is the improvement
        build_metric('Avg. response time', _mean_response_ms(previous), _mean_response_ms(current), 'ms', False),
        build_metric('Avg. message length', _mean_message_length(previous), _mean_message_length(current), 'words', None),
        build_metric('Volume trend', pq.patterns.volume_trend, cq.patterns.volume_trend, '%', True),
    ]

    days = round_half_up((current.created_at - previous.created_at) / DAY_MS)
    logger.info(f"Delta against analysis {previous.id}: {days} days apart, "
                f"{sum(1 for m in metrics if m.is_improvement)} of {len(metrics)} metrics improved")

    return DeltaMetrics(
        metrics=metrics,
        days_since_last_analysis=days,
        previous_analysis_id=previous.id,
        previous_created_at=previous.created_at,
    )
