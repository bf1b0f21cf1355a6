"""Conversation fingerprint used to detect re-uploads of the same chat export."""
import hashlib
import json
import logging
from typing import Iterable

from podtekst_analytics.models.conversation import ParsedConversation

logger = logging.getLogger(__name__)

DAY_MS = 86_400_000


def _canonical_payload(participants: Iterable[str], platform: str, first_message_timestamp_ms: float) -> str:
    names = sorted({name.strip().lower() for name in participants})
    start_day = int(first_message_timestamp_ms // DAY_MS) * DAY_MS
    return json.dumps(
        {"participants": names, "platform": platform, "startDay": start_day},
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def _rolling_hash_hex(payload: str) -> str:
    """32-bit multiply-add string hash. Weaker than SHA-256 but deterministic."""
    h = 0
    for ch in payload:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return format(h, "08x")


def compute_fingerprint(participants: Iterable[str], platform: str, first_message_timestamp_ms: float) -> str:
    """
    Hash of the normalized participant set, platform and UTC start day.
    Participant order, case and surrounding whitespace do not matter, and any
    timestamp within the same UTC day gives the same result.
    """
    payload = _canonical_payload(participants, platform, first_message_timestamp_ms)
    try:
        return hashlib.sha256(payload.encode("utf-8")).hexdigest()
    except (ValueError, AttributeError) as e:
        logger.warning(f"SHA-256 unavailable ({e}), falling back to rolling hash for fingerprint.")
        return _rolling_hash_hex(payload)


def fingerprint_conversation(conversation: ParsedConversation) -> str:
    return compute_fingerprint(
        conversation.participant_names,
        conversation.platform,
        conversation.first_timestamp,
    )
