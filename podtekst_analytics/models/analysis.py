"""Persisted unit of work: a conversation together with its quantitative snapshot."""
from dataclasses import dataclass
from typing import Optional

from podtekst_analytics.models.conversation import ParsedConversation
from podtekst_analytics.models.quantitative import QuantitativeAnalysis

@dataclass
class StoredAnalysis:
    id: str
    title: str
    created_at: int  # Unix ms
    conversation: ParsedConversation
    quantitative: QuantitativeAnalysis
    conversation_fingerprint: Optional[str] = None
