"""Report generation: one conversation in, one AnalysisReport out."""
import logging
import time
import traceback
import uuid
from typing import Optional, Union

from sqlalchemy.orm import Session

from podtekst_analytics.awards import build_awards
from podtekst_analytics.badges import derive_badges
from podtekst_analytics.config import settings, Settings
from podtekst_analytics.delta import compute_delta
from podtekst_analytics.fingerprint import fingerprint_conversation
from podtekst_analytics.models.analysis import StoredAnalysis
from podtekst_analytics.models.conversation import ParsedConversation
from podtekst_analytics.models.quantitative import needs_recompute
from podtekst_analytics.models.results import AnalysisFailure, AnalysisReport
from podtekst_analytics.ranking import compute_ranking_percentiles
from podtekst_analytics.services.aggregator import compute_quantitative
from podtekst_analytics.services.conversation_loader import ConversationLoader
from podtekst_analytics.services.storage import AnalysisStorageService

logger = logging.getLogger(__name__)

ReportResult = Union[AnalysisReport, AnalysisFailure]


def _now_ms() -> int:
    return int(time.time() * 1000)


class AnalysisReportGenerator:
    """Runs the analytics pipeline for one conversation and stores the result."""

    def __init__(self, settings_obj: Settings, db_session: Session):
        self.settings = settings_obj
        self.storage = AnalysisStorageService(db_session)
        self.loader = ConversationLoader(settings_obj.INPUT_DIR)

    def _refresh_if_outdated(self, analysis: StoredAnalysis) -> StoredAnalysis:
        """Recompute and re-store snapshots written before the local-time bucketing fix."""
        if not needs_recompute(analysis.quantitative):
            return analysis
        logger.info(f"Analysis {analysis.id} has quant version {analysis.quantitative.version}, recomputing")
        analysis.quantitative = compute_quantitative(analysis.conversation, self.settings)
        self.storage.save(analysis)
        return analysis

    def build_report(self, conversation: ParsedConversation, analysis_id: Optional[str] = None,
                     created_at: Optional[int] = None) -> AnalysisReport:
        analysis = StoredAnalysis(
            id=analysis_id or uuid.uuid4().hex,
            title=conversation.title,
            created_at=created_at if created_at is not None else _now_ms(),
            conversation=conversation,
            quantitative=compute_quantitative(conversation, self.settings),
            conversation_fingerprint=fingerprint_conversation(conversation),
        )
        logger.info(f"Analysis {analysis.id} fingerprint: {analysis.conversation_fingerprint}")

        previous = self.storage.get_latest_by_fingerprint(analysis.conversation_fingerprint, exclude_id=analysis.id)
        delta = None
        if previous is not None:
            previous = self._refresh_if_outdated(previous)
            delta = compute_delta(analysis, previous)

        quant = analysis.quantitative
        report = AnalysisReport(
            analysis_id=analysis.id,
            title=analysis.title,
            created_at=analysis.created_at,
            fingerprint=analysis.conversation_fingerprint,
            is_reupload=previous is not None,
            quant_version=quant.version,
            ranking_percentiles=compute_ranking_percentiles(quant),
            badges=derive_badges(quant, conversation, self.settings),
            awards=build_awards(quant, conversation, self.settings),
            delta=delta,
        )

        self.storage.save(analysis)
        return report

    def generate(self) -> ReportResult:
        try:
            conversation = self.loader.load()
            if conversation is None:
                return AnalysisFailure(error=f"No readable conversation JSON in {self.settings.INPUT_DIR}")
            if not conversation.messages:
                logger.error("Conversation has no messages.")
                return AnalysisFailure(error="Conversation has no messages")
            return self.build_report(conversation)

        except ValueError as ve:
            logger.error(f"ValueError during analysis pipeline: {str(ve)}")
            return AnalysisFailure(error=f"Data processing error: {str(ve)}")
        except Exception as e:
            logger.error(f"Unexpected error during analysis pipeline: {str(e)}")
            logger.error(traceback.format_exc())
            return AnalysisFailure(error=f"Unexpected pipeline error: {str(e)}")
