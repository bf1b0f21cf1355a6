import logging
import math
import re
from collections import Counter
from datetime import datetime, timezone
from typing import Dict, List, Any
from zoneinfo import ZoneInfo

import regex

from podtekst_analytics.config import settings, Settings
from podtekst_analytics.models.conversation import ParsedConversation, UnifiedMessage
from podtekst_analytics.models.quantitative import (
    CURRENT_QUANT_VERSION,
    QuantitativeAnalysis,
    PersonMetrics,
    PersonTiming,
    LongestSilence,
    TimingMetrics,
    EngagementMetrics,
    PatternMetrics,
    HeatmapData,
)

logger = logging.getLogger(__name__)

EMOJI_PATTERN = regex.compile(r'\p{Emoji_Presentation}|\p{Extended_Pictographic}')
URL_PATTERN = re.compile(r'https?://\S+')
TOP_EMOJIS_N = 10
TOP_REACTIONS_N = 5


def count_words(text: str) -> int:
    return len(text.split())


def extract_emojis(text: str) -> List[str]:
    return EMOJI_PATTERN.findall(text)


def median(values: List[float]) -> float:
    if not values:
        return 0
    ordered = sorted(values)
    mid = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[mid - 1] + ordered[mid]) / 2
    return ordered[mid]


def linear_regression_slope(values: List[float]) -> float:
    """Least-squares slope over x = 0..n-1. Non-finite values are dropped."""
    clean = [v for v in values if math.isfinite(v)]
    n = len(clean)
    if n < 2:
        return 0.0
    x_mean = (n - 1) / 2
    y_mean = sum(clean) / n
    numerator = sum((x - x_mean) * (y - y_mean) for x, y in enumerate(clean))
    denominator = sum((x - x_mean) ** 2 for x in range(n))
    if denominator == 0:
        return 0.0
    return numerator / denominator


def _top_n(counter: Counter, n: int) -> List[Dict[str, Any]]:
    return [{"emoji": emoji, "count": count} for emoji, count in counter.most_common(n)]


class _PersonAccumulator:
    def __init__(self):
        self.total_messages = 0
        self.total_words = 0
        self.total_characters = 0
        self.messages_with_emoji = 0
        self.emoji_freq = Counter()
        self.questions_asked = 0
        self.media_shared = 0
        self.links_shared = 0
        self.reactions_given = 0
        self.reactions_received = 0
        self.reactions_given_freq = Counter()
        self.unsent_messages = 0
        self.response_times: List[int] = []
        self.mentions_made = 0
        self.mentions_received = 0
        self.replies_sent = 0
        self.replies_received = 0
        self.edited_messages = 0

    def to_metrics(self, with_discord_counters: bool) -> PersonMetrics:
        metrics = PersonMetrics(
            total_messages=self.total_messages,
            total_words=self.total_words,
            total_characters=self.total_characters,
            average_message_length=self.total_words / self.total_messages if self.total_messages else 0.0,
            average_message_chars=self.total_characters / self.total_messages if self.total_messages else 0.0,
            messages_with_emoji=self.messages_with_emoji,
            emoji_count=sum(self.emoji_freq.values()),
            top_emojis=_top_n(self.emoji_freq, TOP_EMOJIS_N),
            questions_asked=self.questions_asked,
            media_shared=self.media_shared,
            links_shared=self.links_shared,
            reactions_given=self.reactions_given,
            reactions_received=self.reactions_received,
            top_reactions_given=_top_n(self.reactions_given_freq, TOP_REACTIONS_N),
            unsent_messages=self.unsent_messages,
        )
        if with_discord_counters:
            metrics.mentions_made = self.mentions_made
            metrics.mentions_received = self.mentions_received
            metrics.replies_sent = self.replies_sent
            metrics.replies_received = self.replies_received
            metrics.edited_messages = self.edited_messages
        return metrics

    def to_timing(self) -> PersonTiming:
        rts = self.response_times
        if not rts:
            return PersonTiming()
        return PersonTiming(
            average_response_time_ms=sum(rts) / len(rts),
            median_response_time_ms=median(rts),
            fastest_response_ms=min(rts),
            slowest_response_ms=max(rts),
        )


class ConversationAggregator:
    """
    Single pass over a sorted ParsedConversation producing a QuantitativeAnalysis.

    Hour and weekday buckets (heatmap, late night) use settings.TIMEZONE;
    month keys stay in UTC.
    """

    def __init__(self, conversation: ParsedConversation, settings_obj: Settings = settings):
        self.conversation = conversation
        self.settings = settings_obj
        self.zone = ZoneInfo(settings_obj.TIMEZONE)
        self.session_gap_ms = int(settings_obj.SESSION_GAP_HOURS * 3_600_000)
        self.is_discord = conversation.platform == 'discord'

        names = conversation.participant_names
        self.accumulators: Dict[str, _PersonAccumulator] = {name: _PersonAccumulator() for name in names}
        self.initiations: Dict[str, int] = {name: 0 for name in names}
        self.endings: Dict[str, int] = {name: 0 for name in names}
        self.late_night: Dict[str, int] = {name: 0 for name in names}
        self.double_texts: Dict[str, int] = {name: 0 for name in names}
        self.max_consecutive: Dict[str, int] = {name: 0 for name in names}
        self.heatmap_per_person: Dict[str, List[List[int]]] = {name: self._empty_matrix() for name in names}
        self.heatmap_combined = self._empty_matrix()
        self.monthly_volume: Dict[str, Dict[str, int]] = {}
        self.longest_silence = LongestSilence()
        self.total_sessions = 0
        logger.debug(f"Aggregator initialized for '{conversation.title}' ({len(conversation.messages)} messages)")

    @staticmethod
    def _empty_matrix() -> List[List[int]]:
        return [[0] * 24 for _ in range(7)]

    def _ensure_sender(self, sender: str) -> _PersonAccumulator:
        # Loaders reject unknown senders; this keeps direct callers from crashing
        if sender not in self.accumulators:
            logger.warning(f"Sender '{sender}' is not a listed participant; tracking anyway")
            self.accumulators[sender] = _PersonAccumulator()
            for mapping in (self.initiations, self.endings, self.late_night, self.double_texts, self.max_consecutive):
                mapping[sender] = 0
            self.heatmap_per_person[sender] = self._empty_matrix()
        return self.accumulators[sender]

    def _is_late_night(self, local_hour: int) -> bool:
        start, end = self.settings.LATE_NIGHT_START_HOUR, self.settings.LATE_NIGHT_END_HOUR
        if start <= end:
            return start <= local_hour < end
        return local_hour >= start or local_hour < end

    def _count_content(self, acc: _PersonAccumulator, msg: UnifiedMessage) -> None:
        acc.total_messages += 1
        acc.total_words += count_words(msg.content)
        acc.total_characters += len(msg.content)

        emojis = extract_emojis(msg.content)
        if emojis:
            acc.messages_with_emoji += 1
            acc.emoji_freq.update(emojis)

        if '?' in URL_PATTERN.sub('', msg.content):
            acc.questions_asked += 1
        if msg.has_media:
            acc.media_shared += 1
        if msg.has_link:
            acc.links_shared += 1
        if msg.is_unsent:
            acc.unsent_messages += 1

        for reaction in msg.reactions:
            acc.reactions_received += reaction.count or 1
            actor = self.accumulators.get(reaction.actor)
            if actor is not None:
                actor.reactions_given += 1
                actor.reactions_given_freq[reaction.emoji] += 1

    def _count_discord(self, acc: _PersonAccumulator, msg: UnifiedMessage, by_index: Dict[int, UnifiedMessage]) -> None:
        acc.mentions_made += len(msg.mentions)
        for name in msg.mentions:
            mentioned = self.accumulators.get(name)
            if mentioned is not None:
                mentioned.mentions_received += 1
        if msg.reply_to_index is not None:
            acc.replies_sent += 1
            target = by_index.get(msg.reply_to_index)
            if target is not None and target.sender in self.accumulators:
                self.accumulators[target.sender].replies_received += 1
        if msg.is_edited:
            acc.edited_messages += 1

    def _process_messages(self) -> None:
        messages = self.conversation.messages
        by_index = {m.index: m for m in messages} if self.is_discord else {}
        run_sender = None
        run_length = 0

        for i, msg in enumerate(messages):
            sender = msg.sender
            acc = self._ensure_sender(sender)
            prev = messages[i - 1] if i > 0 else None
            gap = msg.timestamp - prev.timestamp if prev is not None else 0

            self._count_content(acc, msg)
            if self.is_discord:
                self._count_discord(acc, msg, by_index)

            # Sessions
            if prev is None:
                self.total_sessions = 1
                self.initiations[sender] += 1
            elif gap >= self.session_gap_ms:
                self.total_sessions += 1
                self.endings[prev.sender] += 1
                self.initiations[sender] += 1

            if prev is not None and gap > self.longest_silence.duration_ms:
                self.longest_silence = LongestSilence(
                    duration_ms=gap,
                    start_timestamp=prev.timestamp,
                    end_timestamp=msg.timestamp,
                    last_sender=prev.sender,
                    next_sender=sender,
                )

            if prev is not None and prev.sender != sender and gap < self.session_gap_ms:
                acc.response_times.append(gap)

            # Consecutive runs
            if sender == run_sender:
                run_length += 1
            else:
                self._close_run(run_sender, run_length)
                run_sender, run_length = sender, 1

            local = datetime.fromtimestamp(msg.timestamp / 1000, tz=self.zone)
            if self._is_late_night(local.hour):
                self.late_night[sender] += 1
            day_of_week = (local.weekday() + 1) % 7  # 0 = Sunday
            self.heatmap_per_person[sender][day_of_week][local.hour] += 1
            self.heatmap_combined[day_of_week][local.hour] += 1

            month = datetime.fromtimestamp(msg.timestamp / 1000, tz=timezone.utc).strftime('%Y-%m')
            if month not in self.monthly_volume:
                self.monthly_volume[month] = {name: 0 for name in self.conversation.participant_names}
            self.monthly_volume[month][sender] = self.monthly_volume[month].get(sender, 0) + 1

        self._close_run(run_sender, run_length)
        if messages:
            self.endings[messages[-1].sender] += 1

    def _close_run(self, sender, length: int) -> None:
        if sender is None:
            return
        if length >= 2:
            self.double_texts[sender] += 1
        self.max_consecutive[sender] = max(self.max_consecutive[sender], length)

    def _build_analysis(self) -> QuantitativeAnalysis:
        total_messages = len(self.conversation.messages)
        per_person = {name: acc.to_metrics(self.is_discord) for name, acc in self.accumulators.items()}

        timing = TimingMetrics(
            per_person={name: acc.to_timing() for name, acc in self.accumulators.items()},
            longest_silence=self.longest_silence,
            late_night_messages=self.late_night,
            conversation_initiations=self.initiations,
            conversation_endings=self.endings,
        )

        engagement = EngagementMetrics(
            total_sessions=self.total_sessions,
            avg_conversation_length=total_messages / self.total_sessions if self.total_sessions else float(total_messages),
            double_texts=self.double_texts,
            max_consecutive=self.max_consecutive,
            message_ratio={
                name: acc.total_messages / total_messages if total_messages else 0.0
                for name, acc in self.accumulators.items()
            },
        )

        monthly = [
            {"month": month, "perPerson": counts, "total": sum(counts.values())}
            for month, counts in sorted(self.monthly_volume.items())
        ]
        patterns = PatternMetrics(
            volume_trend=linear_regression_slope([m["total"] for m in monthly]),
            monthly_volume=monthly,
        )

        return QuantitativeAnalysis(
            per_person=per_person,
            timing=timing,
            engagement=engagement,
            patterns=patterns,
            heatmap=HeatmapData(per_person=self.heatmap_per_person, combined=self.heatmap_combined),
            version=CURRENT_QUANT_VERSION,
        )

    def aggregate(self) -> QuantitativeAnalysis:
        logger.info(f"Aggregating {len(self.conversation.messages)} messages "
                    f"from {len(self.conversation.participants)} participants")
        self._process_messages()
        quant = self._build_analysis()
        logger.info(f"Aggregation complete: {quant.engagement.total_sessions} sessions, "
                    f"longest silence {quant.timing.longest_silence.duration_ms} ms")
        return quant


def compute_quantitative(conversation: ParsedConversation, settings_obj: Settings = settings) -> QuantitativeAnalysis:
    return ConversationAggregator(conversation, settings_obj).aggregate()
