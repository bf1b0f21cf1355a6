"""
Badge derivation: fun achievements awarded to participants from their messaging patterns.

Each badge is a BadgeRule: a per-person score map, a winner selection
(highest or lowest positive score) and a minimum the winning score must
exceed. Ties go to whoever comes first in the conversation's participant list.
"""
import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timezone, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from podtekst_analytics.config import settings, Settings
from podtekst_analytics.metrics import (
    longest_silence,
    median_response_ms,
    person_value,
    round_half_up,
    timing_count,
    timing_counts,
)
from podtekst_analytics.models.conversation import ParsedConversation
from podtekst_analytics.models.quantitative import QuantitativeAnalysis
from podtekst_analytics.models.results import Badge

logger = logging.getLogger(__name__)

HEART_PATTERN = re.compile(
    '[❤❣\U0001F493\U0001F496-\U0001F49C\U0001F5A4\U0001F90D\U0001F90E\U0001F9E1\U0001FA77]'
)

Scores = Dict[str, float]
Winner = Tuple[str, float]


# --- Winner selection ---

def find_winner(scores: Scores) -> Optional[Winner]:
    """Highest positive score. Iteration order of 'scores' breaks ties."""
    best = None
    for name, value in scores.items():
        if not math.isfinite(value) or value <= 0:
            continue
        if best is None or value > best[1]:
            best = (name, value)
    return best


def find_lowest(scores: Scores) -> Optional[Winner]:
    """Lowest positive score, for "fastest" style badges."""
    best = None
    for name, value in scores.items():
        if not math.isfinite(value) or value <= 0:
            continue
        if best is None or value < best[1]:
            best = (name, value)
    return best


# --- Formatting ---

def format_duration_ms(ms: float) -> str:
    total_seconds = int(ms // 1000)
    if total_seconds < 60:
        return f"{total_seconds}s"
    minutes = total_seconds // 60
    if minutes < 60:
        return f"{minutes}m"
    hours = minutes // 60
    remaining_minutes = minutes % 60
    if hours < 24:
        return f"{hours}h {remaining_minutes}m" if remaining_minutes else f"{hours}h"
    return f"{hours // 24} days"


def format_silence(ms: float) -> str:
    days = round_half_up(ms / 86_400_000)
    if days == 0:
        return f"{round_half_up(ms / 3_600_000)} hours"
    return f"{days} days"


# --- Per-person score maps ---

def _per_person(attr: str) -> Callable[[QuantitativeAnalysis, ParsedConversation], Scores]:
    def scores(quant, conversation):
        return {name: person_value(quant, name, attr) for name in conversation.participant_names}
    return scores


def _share_of_messages(count: Callable[[QuantitativeAnalysis, str], float]):
    def scores(quant, conversation):
        out = {}
        for name in conversation.participant_names:
            total = person_value(quant, name, 'total_messages')
            out[name] = count(quant, name) / total * 100 if total > 0 else 0
        return out
    return scores


def _early_messages(quant: QuantitativeAnalysis, name: str) -> int:
    if quant.heatmap is None:
        return 0
    matrix = quant.heatmap.per_person.get(name)
    if not matrix:
        return 0
    return sum(sum(row[:8]) for row in matrix)


def _silence_holder(quant, conversation) -> Scores:
    silence = longest_silence(quant)
    if silence is None or not silence.last_sender:
        return {}
    return {silence.last_sender: silence.duration_ms}


def _double_texts(quant, conversation) -> Scores:
    doubles = quant.engagement.double_texts
    return {name: doubles.get(name, 0) for name in conversation.participant_names}


def _response_times(quant, conversation) -> Scores:
    return {name: median_response_ms(quant, name) for name in conversation.participant_names}


def _initiations(quant, conversation) -> Scores:
    return {name: timing_count(quant, 'conversation_initiations', name)
            for name in conversation.participant_names}


def _hearts_given(quant, conversation) -> Scores:
    out = {}
    for name in conversation.participant_names:
        metrics = quant.per_person.get(name)
        reactions = metrics.top_reactions_given if metrics is not None else []
        out[name] = sum(r.get('count', 0) for r in reactions if HEART_PATTERN.search(r.get('emoji', '')))
    return out


def _has_reaction_data(quant, conversation) -> bool:
    # Discord exports carry no reaction actors, so nobody has reactionsGiven
    return any(quant.per_person.get(name) is not None and quant.per_person[name].top_reactions_given
               for name in conversation.participant_names)


def compute_streaks(conversation: ParsedConversation) -> Dict[str, int]:
    """Longest run of consecutive UTC days on which each participant wrote."""
    days_per_person: Dict[str, set] = {}
    for msg in conversation.messages:
        day = datetime.fromtimestamp(msg.timestamp / 1000, tz=timezone.utc).date()
        days_per_person.setdefault(msg.sender, set()).add(day)

    streaks = {}
    for name, days in days_per_person.items():
        ordered = sorted(days)
        best = current = 1
        for prev, curr in zip(ordered, ordered[1:]):
            if curr - prev == timedelta(days=1):
                current += 1
                best = max(best, current)
            else:
                current = 1
        streaks[name] = best
    return streaks


def _streaks(quant, conversation) -> Scores:
    streaks = compute_streaks(conversation)
    return {name: streaks.get(name, 0) for name in conversation.participant_names}


# --- Rules ---

@dataclass(frozen=True)
class BadgeRule:
    id: str
    name: str
    emoji: str
    description: str
    scores: Callable[[QuantitativeAnalysis, ParsedConversation], Scores]
    evidence: Callable[[float, QuantitativeAnalysis, str], str]
    select: Callable[[Scores], Optional[Winner]] = find_winner
    minimum: float = 0  # winning score must be strictly greater
    minimum_setting: Optional[str] = None  # Settings field that overrides minimum
    applies: Optional[Callable[[QuantitativeAnalysis, ParsedConversation], bool]] = None

    def threshold(self, settings_obj: Settings) -> float:
        if self.minimum_setting is None:
            return self.minimum
        return getattr(settings_obj, self.minimum_setting)

    def evaluate(self, quant: QuantitativeAnalysis, conversation: ParsedConversation,
                 settings_obj: Settings = settings) -> Optional[Badge]:
        if self.applies is not None and not self.applies(quant, conversation):
            return None
        winner = self.select(self.scores(quant, conversation))
        if winner is None or winner[1] <= self.threshold(settings_obj):
            return None
        holder, value = winner
        return Badge(
            id=self.id,
            name=self.name,
            emoji=self.emoji,
            description=self.description,
            holder=holder,
            evidence=self.evidence(value, quant, holder),
        )


def _initiator_evidence(value, quant, holder) -> str:
    total = sum(timing_counts(quant, 'conversation_initiations').values())
    pct = value / total * 100 if total > 0 else 0
    return f"Started {pct:.0f}% of conversations"


def _emoji_evidence(value, quant, holder) -> str:
    total = person_value(quant, holder, 'total_messages')
    rate = value / total if total > 0 else 0
    return f"{int(value)} emoji ({rate:.2f} per message)"


BADGE_RULES: List[BadgeRule] = [
    BadgeRule(
        id='night-owl', name='Night Owl', emoji='\U0001F989',
        description='Highest share of messages sent between 22:00 and 4:00',
        scores=_share_of_messages(lambda q, n: timing_count(q, 'late_night_messages', n)),
        evidence=lambda v, q, h: f"{v:.1f}% of messages after 22:00",
    ),
    BadgeRule(
        id='early-bird', name='Early Bird', emoji='\U0001F426',
        description='Highest share of messages sent before 8:00',
        scores=_share_of_messages(_early_messages),
        evidence=lambda v, q, h: f"{v:.1f}% of messages before 8:00",
    ),
    BadgeRule(
        id='ghost-champion', name='Ghosting Champion', emoji='\U0001F47B',
        description='Sent the last message before the longest silence',
        scores=_silence_holder,
        evidence=lambda v, q, h: f"The silence lasted {format_silence(v)}",
    ),
    BadgeRule(
        id='double-texter', name='Double Texter', emoji='\U0001F4AC',
        description='Most often wrote several messages in a row without a reply',
        scores=_double_texts,
        evidence=lambda v, q, h: f"Double texted {int(v)} times",
    ),
    BadgeRule(
        id='novelist', name='Novelist', emoji='\U0001F4D6',
        description='Highest average message length',
        scores=_per_person('average_message_length'),
        evidence=lambda v, q, h: f"{v:.1f} words per message on average",
    ),
    BadgeRule(
        id='speed-demon', name='Speed Demon', emoji='⚡',
        description='Fastest median response time',
        scores=_response_times,
        select=find_lowest,
        evidence=lambda v, q, h: f"Median response: {format_duration_ms(v)}",
    ),
    BadgeRule(
        id='emoji-monarch', name='Emoji Monarch', emoji='\U0001F602',
        description='Sent the most emoji',
        scores=_per_person('emoji_count'),
        minimum_setting='BADGE_EMOJI_MONARCH_MIN_COUNT',
        evidence=_emoji_evidence,
    ),
    BadgeRule(
        id='initiator', name='Initiator', emoji='\U0001F501',
        description='Most often started conversations',
        scores=_initiations,
        evidence=_initiator_evidence,
    ),
    BadgeRule(
        id='heart-bomber', name='Heart Bomber', emoji='❤️',
        description='Most heart reactions given',
        scores=_hearts_given,
        applies=_has_reaction_data,
        evidence=lambda v, q, h: f"{int(v)} heart reactions",
    ),
    BadgeRule(
        id='link-lord', name='Link Lord', emoji='\U0001F4CE',
        description='Most links shared',
        scores=_per_person('links_shared'),
        evidence=lambda v, q, h: f"{int(v)} links shared",
    ),
    BadgeRule(
        id='streak-master', name='Streak Master', emoji='\U0001F525',
        description='Longest run of consecutive days with messages',
        scores=_streaks,
        minimum=1,
        evidence=lambda v, q, h: f"{int(v)} days in a row",
    ),
    BadgeRule(
        id='question-master', name='Detective', emoji='\U0001F50D',
        description='Asked the most questions',
        scores=_per_person('questions_asked'),
        evidence=lambda v, q, h: f"Asked {int(v)} questions",
    ),
    BadgeRule(
        id='mention-magnet', name='Mention Magnet', emoji='\U0001F4E2',
        description='Most often @mentioned by others',
        scores=_per_person('mentions_received'),
        minimum_setting='BADGE_MENTION_MAGNET_MIN',
        evidence=lambda v, q, h: f"{int(v)} mentions",
    ),
    BadgeRule(
        id='reply-king', name='Reply King', emoji='↩️',
        description='Most often replied directly to messages',
        scores=_per_person('replies_sent'),
        minimum_setting='BADGE_REPLY_KING_MIN',
        evidence=lambda v, q, h: f"{int(v)} replies",
    ),
    BadgeRule(
        id='edit-lord', name='Perfectionist', emoji='✏️',
        description='Most often edited their own messages',
        scores=_per_person('edited_messages'),
        minimum_setting='BADGE_EDIT_LORD_MIN',
        evidence=lambda v, q, h: f"{int(v)} edited messages",
    ),
]


def derive_badges(quant: QuantitativeAnalysis, conversation: ParsedConversation,
                  settings_obj: Settings = settings) -> List[Badge]:
    """Evaluate every rule; rules whose signal is too weak are left out, not reported as errors."""
    badges = []
    for rule in BADGE_RULES:
        badge = rule.evaluate(quant, conversation, settings_obj)
        if badge is not None:
            badges.append(badge)
    logger.info(f"Derived {len(badges)} of {len(BADGE_RULES)} badges: {[b.id for b in badges]}")
    return badges
