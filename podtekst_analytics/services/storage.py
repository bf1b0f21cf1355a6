"""Database storage service for analyses."""
import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from podtekst_analytics.models.analysis import StoredAnalysis
from podtekst_analytics.models.db import StoredAnalysisRecord
from podtekst_analytics.models.serialization import (
    conversation_from_dict,
    conversation_to_dict,
    quantitative_from_dict,
    quantitative_to_dict,
)

logger = logging.getLogger(__name__)

class AnalysisStorageService:
    """Handles database operations for stored analyses. Commit is left to the caller."""

    def __init__(self, session: Session):
        self.session = session

    @staticmethod
    def _to_record(analysis: StoredAnalysis) -> StoredAnalysisRecord:
        return StoredAnalysisRecord(
            id=analysis.id,
            title=analysis.title,
            created_at=analysis.created_at,
            fingerprint=analysis.conversation_fingerprint,
            platform=analysis.conversation.platform,
            participant_count=len(analysis.conversation.participants),
            quant_version=analysis.quantitative.version,
            conversation_json=conversation_to_dict(analysis.conversation),
            quantitative_json=quantitative_to_dict(analysis.quantitative),
        )

    @staticmethod
    def _from_record(record: StoredAnalysisRecord) -> StoredAnalysis:
        return StoredAnalysis(
            id=record.id,
            title=record.title,
            created_at=record.created_at,
            conversation=conversation_from_dict(record.conversation_json),
            quantitative=quantitative_from_dict(record.quantitative_json),
            conversation_fingerprint=record.fingerprint,
        )

    def save(self, analysis: StoredAnalysis) -> StoredAnalysis:
        """Insert or overwrite the record with this analysis' id."""
        try:
            self.session.merge(self._to_record(analysis))
            self.session.flush()
            logger.info(f"StoredAnalysis {analysis.id} prepared (fingerprint: {analysis.conversation_fingerprint}). "
                        f"DB commit handled by caller.")
            return analysis
        except SQLAlchemyError as e:
            logger.error(f"DB error saving analysis {analysis.id}: {e}")
            raise

    def load(self, analysis_id: str) -> Optional[StoredAnalysis]:
        try:
            record = self.session.get(StoredAnalysisRecord, analysis_id)
            if record is None:
                logger.info(f"No stored analysis with id {analysis_id}")
                return None
            return self._from_record(record)
        except SQLAlchemyError as e:
            logger.error(f"DB error loading analysis {analysis_id}: {e}")
            raise

    def get_latest_by_fingerprint(self, fingerprint: str, exclude_id: Optional[str] = None) -> Optional[StoredAnalysis]:
        """Most recent analysis of the same conversation, other than exclude_id."""
        try:
            query = self.session.query(StoredAnalysisRecord).filter_by(fingerprint=fingerprint)
            if exclude_id is not None:
                query = query.filter(StoredAnalysisRecord.id != exclude_id)
            record = query.order_by(StoredAnalysisRecord.created_at.desc()).first()
            if record:
                logger.info(f"Found previous analysis {record.id} for fingerprint {fingerprint[:12]}")
                return self._from_record(record)
            logger.info(f"No previous analysis found for fingerprint {fingerprint[:12]}")
            return None
        except SQLAlchemyError as e:
            logger.error(f"DB error fetching latest analysis for {fingerprint}: {e}")
            raise

    def list_by_fingerprint(self, fingerprint: str) -> List[StoredAnalysis]:
        """All analyses of one conversation, oldest first."""
        try:
            records = (
                self.session.query(StoredAnalysisRecord)
                .filter_by(fingerprint=fingerprint)
                .order_by(StoredAnalysisRecord.created_at.asc())
                .all()
            )
            return [self._from_record(r) for r in records]
        except SQLAlchemyError as e:
            logger.error(f"DB error listing analyses for {fingerprint}: {e}")
            raise

    def delete(self, analysis_id: str) -> bool:
        try:
            record = self.session.get(StoredAnalysisRecord, analysis_id)
            if record is None:
                return False
            self.session.delete(record)
            self.session.flush()
            logger.info(f"StoredAnalysis {analysis_id} deleted. DB commit handled by caller.")
            return True
        except SQLAlchemyError as e:
            logger.error(f"DB error deleting analysis {analysis_id}: {e}")
            raise
