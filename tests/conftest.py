"""Shared fixtures and builders for the analytics test suite."""
import sys
from pathlib import Path

import pytest

# Add project root to path so imports work without installing
PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from podtekst_analytics.config import Settings
from podtekst_analytics.db import Database
from podtekst_analytics.models.analysis import StoredAnalysis
from podtekst_analytics.models.conversation import (
    ParsedConversation,
    Participant,
    Reaction,
    UnifiedMessage,
)
from podtekst_analytics.models.quantitative import (
    QuantitativeAnalysis,
    PersonMetrics,
    PersonTiming,
    TimingMetrics,
    EngagementMetrics,
    PatternMetrics,
)
from podtekst_analytics.models.serialization import derive_metadata

MINUTE_MS = 60_000
HOUR_MS = 3_600_000
DAY_MS = 86_400_000

# 2024-01-01T12:00:00Z, a Monday
BASE_TS = 1_704_110_400_000


def make_message(index, sender, timestamp, content="hi", **kwargs) -> UnifiedMessage:
    if 'reactions' in kwargs:
        kwargs['reactions'] = tuple(
            r if isinstance(r, Reaction) else Reaction(emoji=r[0], actor=r[1])
            for r in kwargs['reactions']
        )
    if 'mentions' in kwargs:
        kwargs['mentions'] = tuple(kwargs['mentions'])
    return UnifiedMessage(index=index, sender=sender, content=content, timestamp=timestamp, **kwargs)


def build_conversation(names, messages, platform="messenger", title="Test chat") -> ParsedConversation:
    """messages: UnifiedMessage objects or (sender, timestamp, content) tuples."""
    built = []
    for i, m in enumerate(messages):
        built.append(m if isinstance(m, UnifiedMessage) else make_message(i, *m))
    built.sort(key=lambda m: (m.timestamp, m.index))
    return ParsedConversation(
        platform=platform,
        title=title,
        participants=tuple(Participant(name=n) for n in names),
        messages=tuple(built),
        metadata=derive_metadata(built, len(names)),
    )


def build_quant(per_person=None, timing_per_person=None, longest_silence=None, late_night=None,
                initiations=None, double_texts=None, total_sessions=0, volume_trend=0.0,
                heatmap=None, version=2) -> QuantitativeAnalysis:
    """QuantitativeAnalysis with only the given parts filled in."""
    return QuantitativeAnalysis(
        per_person={name: PersonMetrics(**fields) for name, fields in (per_person or {}).items()},
        timing=TimingMetrics(
            per_person={name: PersonTiming(median_response_time_ms=ms, average_response_time_ms=ms)
                        for name, ms in timing_per_person.items()} if timing_per_person is not None else None,
            longest_silence=longest_silence,
            late_night_messages=late_night,
            conversation_initiations=initiations,
        ),
        engagement=EngagementMetrics(total_sessions=total_sessions, double_texts=double_texts or {}),
        patterns=PatternMetrics(volume_trend=volume_trend),
        heatmap=heatmap,
        version=version,
    )


def build_stored(analysis_id, conversation, quant, created_at, fingerprint="fp") -> StoredAnalysis:
    return StoredAnalysis(
        id=analysis_id,
        title=conversation.title,
        created_at=created_at,
        conversation=conversation,
        quantitative=quant,
        conversation_fingerprint=fingerprint,
    )


@pytest.fixture
def utc_settings():
    return Settings(TIMEZONE="UTC", INPUT_DIR="/nonexistent", OUTPUT_DIR="/nonexistent")


@pytest.fixture
def duo_conversation():
    """Two people, two sessions split by a 10 hour silence."""
    return build_conversation(
        ["Ann", "Bob"],
        [
            make_message(0, "Ann", BASE_TS, "hello?"),
            make_message(1, "Ann", BASE_TS + 1 * MINUTE_MS, "you there 😀😀"),
            make_message(2, "Bob", BASE_TS + 3 * MINUTE_MS, "yes", reactions=[("❤", "Ann")]),
            make_message(3, "Ann", BASE_TS + 5 * MINUTE_MS, "ok"),
            make_message(4, "Bob", BASE_TS + 10 * HOUR_MS, "morning https://x.io/?q=1", has_link=True),
            make_message(5, "Ann", BASE_TS + 10 * HOUR_MS + 2 * MINUTE_MS, "👍"),
        ],
    )


@pytest.fixture
def group_names():
    return ["Ann", "Bob", "Cleo"]


@pytest.fixture
def db_session():
    database = Database("sqlite:///:memory:")
    database.init()
    session = database.get_session()
    yield session
    session.close()
    database.dispose()
