"""Group chat awards (3+ participants). Smaller chats get no awards."""
import logging
from typing import Callable, List, Optional

from podtekst_analytics.config import settings, Settings
from podtekst_analytics.metrics import (
    longest_silence,
    median_response_ms,
    person_value,
    round_half_up,
    timing_count,
    timing_per_person,
)
from podtekst_analytics.models.conversation import ParsedConversation
from podtekst_analytics.models.quantitative import QuantitativeAnalysis
from podtekst_analytics.models.results import Award

logger = logging.getLogger(__name__)

AWARD_COLORS = ['#fbbf24', '#6d9fff', '#f472b6', '#10b981', '#a78bfa', '#f97316']
DAY_MS = 86_400_000


def _argmax(names: List[str], value: Callable[[str], float]) -> str:
    """First name with the highest value; later names must be strictly greater to win."""
    best = names[0]
    best_value = value(best)
    for name in names[1:]:
        current = value(name)
        if current > best_value:
            best, best_value = name, current
    return best


def format_response_time(ms: float) -> str:
    if ms < 60_000:
        return f"{round_half_up(ms / 1000)}s"
    if ms < 3_600_000:
        return f"{round_half_up(ms / 60_000)}min"
    return f"{ms / 3_600_000:.1f}h"


def _most_active(quant, names, settings_obj) -> Optional[Award]:
    winner = _argmax(names, lambda n: person_value(quant, n, 'total_messages'))
    count = int(person_value(quant, winner, 'total_messages'))
    return Award(title='Most Active', winner=winner, stat=f"{count:,} msgs",
                 emoji='🏆', color=AWARD_COLORS[0])


def _slowest_responder(quant, names, settings_obj) -> Optional[Award]:
    if not timing_per_person(quant):
        return None
    winner = _argmax(names, lambda n: median_response_ms(quant, n))
    rt_ms = median_response_ms(quant, winner)
    if rt_ms <= 0:
        return None
    return Award(title='Slowest Responder', winner=winner, stat=f"avg. {format_response_time(rt_ms)}",
                 emoji='🐌', color=AWARD_COLORS[1])


def _biggest_simp(quant, names, settings_obj) -> Optional[Award]:
    winner = _argmax(names, lambda n: person_value(quant, n, 'reactions_given'))
    reactions = int(person_value(quant, winner, 'reactions_given'))
    if reactions <= settings_obj.AWARD_SIMP_MIN_REACTIONS:
        return None
    return Award(title='Biggest Simp', winner=winner, stat=f"{reactions} reactions",
                 emoji='😍', color=AWARD_COLORS[2])


def _ghost_supreme(quant, names, settings_obj) -> Optional[Award]:
    silence = longest_silence(quant)
    if silence is None or not silence.last_sender:
        return None
    days = silence.duration_ms // DAY_MS
    if days < settings_obj.AWARD_GHOST_MIN_DAYS:
        return None
    return Award(title='Ghost Supreme', winner=silence.last_sender, stat=f"{int(days)} days of silence",
                 emoji='👻', color=AWARD_COLORS[3])


def _emoji_monarch(quant, names, settings_obj) -> Optional[Award]:
    winner = _argmax(names, lambda n: person_value(quant, n, 'emoji_count'))
    count = int(person_value(quant, winner, 'emoji_count'))
    if count <= settings_obj.AWARD_EMOJI_MIN_COUNT:
        return None
    return Award(title='Emoji Monarch', winner=winner, stat=f"{count} emoji",
                 emoji='👑', color=AWARD_COLORS[4])


def _night_owl(quant, names, settings_obj) -> Optional[Award]:
    winner = _argmax(names, lambda n: timing_count(quant, 'late_night_messages', n))
    count = timing_count(quant, 'late_night_messages', winner)
    if count <= settings_obj.AWARD_NIGHT_OWL_MIN_MESSAGES:
        return None
    return Award(title='Night Owl', winner=winner, stat=f"{count} after 22:00",
                 emoji='🦉', color=AWARD_COLORS[5])


AWARD_RULES = [
    _most_active,
    _slowest_responder,
    _biggest_simp,
    _ghost_supreme,
    _emoji_monarch,
    _night_owl,
]


def build_awards(quant: QuantitativeAnalysis, conversation: ParsedConversation,
                 settings_obj: Settings = settings) -> List[Award]:
    names = list(dict.fromkeys(conversation.participant_names))
    if not names or len(names) < settings_obj.AWARD_MIN_PARTICIPANTS:
        logger.debug(f"{len(names)} distinct participants, awards need {settings_obj.AWARD_MIN_PARTICIPANTS}")
        return []

    awards = []
    for rule in AWARD_RULES:
        award = rule(quant, names, settings_obj)
        if award is not None:
            awards.append(award)
    logger.info(f"Built {len(awards)} group chat awards")
    return awards
