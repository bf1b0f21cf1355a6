"""Conversion between domain dataclasses and the camelCase JSON the web client persists."""
import re
from dataclasses import fields, is_dataclass
from typing import Dict, Any, Optional

from podtekst_analytics.models.conversation import (
    ParsedConversation,
    Participant,
    Reaction,
    UnifiedMessage,
    DateRange,
    ConversationMetadata,
)
from podtekst_analytics.models.quantitative import (
    QuantitativeAnalysis,
    PersonMetrics,
    PersonTiming,
    LongestSilence,
    TimingMetrics,
    EngagementMetrics,
    PatternMetrics,
    HeatmapData,
)

_CAMEL_BOUNDARY = re.compile(r'_([a-z0-9])')
_SNAKE_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def to_camel(name: str) -> str:
    return _CAMEL_BOUNDARY.sub(lambda m: m.group(1).upper(), name)


def to_snake(name: str) -> str:
    return _SNAKE_BOUNDARY.sub('_', name).lower()


def _dump(value: Any) -> Any:
    if is_dataclass(value):
        out = {}
        for f in fields(value):
            item = getattr(value, f.name)
            if item is None:
                continue
            key = '_version' if f.name == 'version' else to_camel(f.name)
            out[key] = _dump(item)
        return out
    if isinstance(value, dict):
        return {k: _dump(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_dump(v) for v in value]
    return value


def _known_kwargs(cls, data: Dict[str, Any]) -> Dict[str, Any]:
    """Snake-case the keys of 'data' and keep only the fields 'cls' declares."""
    names = {f.name for f in fields(cls)}
    kwargs = {}
    for key, value in data.items():
        snake = to_snake(key)
        if snake in names:
            kwargs[snake] = value
    return kwargs


# --- Conversation ---

def conversation_to_dict(conversation: ParsedConversation) -> Dict[str, Any]:
    return _dump(conversation)


def conversation_from_dict(data: Dict[str, Any]) -> ParsedConversation:
    participants = tuple(
        Participant(name=p['name'], platform_id=p.get('platformId'))
        for p in data.get('participants', [])
    )
    messages = []
    for raw in data.get('messages', []):
        reactions = tuple(Reaction(**_known_kwargs(Reaction, r)) for r in raw.get('reactions', []) or [])
        kwargs = _known_kwargs(UnifiedMessage, raw)
        kwargs['reactions'] = reactions
        kwargs['mentions'] = tuple(raw.get('mentions') or ())
        kwargs['timestamp'] = int(kwargs['timestamp'])
        kwargs['is_edited'] = bool(kwargs.get('is_edited', False))
        messages.append(UnifiedMessage(**kwargs))
    messages.sort(key=lambda m: (m.timestamp, m.index))

    raw_meta = data.get('metadata')
    if raw_meta:
        raw_range = raw_meta.get('dateRange', {})
        metadata = ConversationMetadata(
            total_messages=int(raw_meta.get('totalMessages', len(messages))),
            date_range=DateRange(start=int(raw_range.get('start', 0)), end=int(raw_range.get('end', 0))),
            is_group=bool(raw_meta.get('isGroup', len(participants) >= 3)),
            duration_days=int(raw_meta.get('durationDays', 0)),
        )
    else:
        metadata = derive_metadata(messages, len(participants))

    return ParsedConversation(
        platform=data.get('platform', 'messenger'),
        title=data.get('title', ''),
        participants=participants,
        messages=tuple(messages),
        metadata=metadata,
    )


def derive_metadata(messages, participant_count: int) -> ConversationMetadata:
    if messages:
        start, end = messages[0].timestamp, messages[-1].timestamp
    else:
        start = end = 0
    return ConversationMetadata(
        total_messages=len(messages),
        date_range=DateRange(start=start, end=end),
        is_group=participant_count >= 3,
        duration_days=max(1, -(-(end - start) // 86_400_000)) if messages else 0,
    )


# --- Quantitative ---

def quantitative_to_dict(quant: QuantitativeAnalysis) -> Dict[str, Any]:
    return _dump(quant)


def _optional_map(data: Dict[str, Any], key: str) -> Optional[Dict[str, Any]]:
    value = data.get(key)
    return dict(value) if value is not None else None


def quantitative_from_dict(data: Dict[str, Any]) -> QuantitativeAnalysis:
    per_person = {
        name: PersonMetrics(**_known_kwargs(PersonMetrics, metrics))
        for name, metrics in (data.get('perPerson') or {}).items()
    }

    raw_timing = data.get('timing') or {}
    timing_per_person = None
    if raw_timing.get('perPerson') is not None:
        timing_per_person = {
            name: PersonTiming(**_known_kwargs(PersonTiming, t))
            for name, t in raw_timing['perPerson'].items()
        }
    longest_silence = None
    if raw_timing.get('longestSilence') is not None:
        longest_silence = LongestSilence(**_known_kwargs(LongestSilence, raw_timing['longestSilence']))
    timing = TimingMetrics(
        per_person=timing_per_person,
        longest_silence=longest_silence,
        late_night_messages=_optional_map(raw_timing, 'lateNightMessages'),
        conversation_initiations=_optional_map(raw_timing, 'conversationInitiations'),
        conversation_endings=_optional_map(raw_timing, 'conversationEndings'),
    )

    engagement = EngagementMetrics(**_known_kwargs(EngagementMetrics, data.get('engagement') or {}))
    patterns = PatternMetrics(**_known_kwargs(PatternMetrics, data.get('patterns') or {}))

    heatmap = None
    if data.get('heatmap') is not None:
        heatmap = HeatmapData(**_known_kwargs(HeatmapData, data['heatmap']))

    return QuantitativeAnalysis(
        per_person=per_person,
        timing=timing,
        engagement=engagement,
        patterns=patterns,
        heatmap=heatmap,
        version=data.get('_version'),
    )
