"""
Read accessors over QuantitativeAnalysis shared by ranking, delta, badges and awards.

Participants missing from a per-person map read as zero. Exports where someone
never wrote a message routinely omit them, so this is logged at DEBUG only.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional

from podtekst_analytics.models.quantitative import (
    QuantitativeAnalysis,
    LongestSilence,
    PersonTiming,
)

logger = logging.getLogger(__name__)


def person_value(quant: QuantitativeAnalysis, name: str, attr: str) -> float:
    metrics = quant.per_person.get(name)
    if metrics is None:
        logger.debug(f"perPerson miss: '{name}' not in {list(quant.per_person)}; using 0 for {attr}")
        return 0
    value = getattr(metrics, attr)
    return value if value is not None else 0


def timing_per_person(quant: QuantitativeAnalysis) -> Dict[str, PersonTiming]:
    if quant.timing is None or quant.timing.per_person is None:
        return {}
    return quant.timing.per_person


def median_response_ms(quant: QuantitativeAnalysis, name: str) -> float:
    timing = timing_per_person(quant).get(name)
    if timing is None:
        logger.debug(f"timing.perPerson miss: '{name}'; using 0 ms")
        return 0
    return timing.median_response_time_ms


def timing_count(quant: QuantitativeAnalysis, field_name: str, name: str) -> int:
    """Count from one of the name→int timing maps (lateNightMessages, conversationInitiations...)."""
    mapping = getattr(quant.timing, field_name, None) if quant.timing is not None else None
    if not mapping:
        return 0
    return mapping.get(name, 0)


def timing_counts(quant: QuantitativeAnalysis, field_name: str) -> Dict[str, int]:
    mapping = getattr(quant.timing, field_name, None) if quant.timing is not None else None
    return dict(mapping) if mapping else {}


def longest_silence(quant: QuantitativeAnalysis) -> Optional[LongestSilence]:
    if quant.timing is None:
        return None
    return quant.timing.longest_silence


def mean(values: Iterable[float]) -> float:
    """Unweighted arithmetic mean; 0 for no values."""
    items: List[float] = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def round_half_up(value: float) -> int:
    """Halves round up: 2.5 -> 3, where round() gives 2."""
    return int(math.floor(value + 0.5))
