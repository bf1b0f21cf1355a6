"""Domain models for a parsed chat export. Produced upstream, read-only here."""
from dataclasses import dataclass
from typing import List, Optional, Tuple

PLATFORMS = ("messenger", "whatsapp", "instagram", "telegram", "discord")
MESSAGE_TYPES = ("text", "media", "sticker", "link", "call", "system", "unsent")

@dataclass(frozen=True)
class Participant:
    name: str
    platform_id: Optional[str] = None

@dataclass(frozen=True)
class Reaction:
    emoji: str
    actor: str
    timestamp: Optional[int] = None
    count: Optional[int] = None  # Discord aggregates reactions without actors

@dataclass(frozen=True)
class UnifiedMessage:
    index: int
    sender: str
    content: str
    timestamp: int  # Unix ms
    type: str = "text"
    reactions: Tuple[Reaction, ...] = ()
    has_media: bool = False
    has_link: bool = False
    is_unsent: bool = False
    mentions: Tuple[str, ...] = ()
    reply_to_index: Optional[int] = None
    is_edited: bool = False

@dataclass(frozen=True)
class DateRange:
    start: int
    end: int

@dataclass(frozen=True)
class ConversationMetadata:
    total_messages: int
    date_range: DateRange
    is_group: bool = False
    duration_days: int = 0

@dataclass(frozen=True)
class ParsedConversation:
    """Chronologically sorted messages plus participants of one export."""
    platform: str
    title: str
    participants: Tuple[Participant, ...]
    messages: Tuple[UnifiedMessage, ...]
    metadata: ConversationMetadata

    @property
    def participant_names(self) -> List[str]:
        return [p.name for p in self.participants]

    @property
    def first_timestamp(self) -> int:
        if self.messages:
            return self.messages[0].timestamp
        return self.metadata.date_range.start
