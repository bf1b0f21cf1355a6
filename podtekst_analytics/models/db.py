"""SQLAlchemy database models for persisted analyses."""
from sqlalchemy import Column, Integer, String, BigInteger, JSON
from sqlalchemy.orm import declarative_base

Base = declarative_base()

class StoredAnalysisRecord(Base):
    """
    One analysis of one conversation upload. The conversation and its
    quantitative snapshot are kept as camelCase JSON, the same shape the
    upload was read in.
    """
    __tablename__ = 'stored_analyses'

    id = Column(String, primary_key=True)
    title = Column(String, nullable=False, default='')
    created_at = Column(BigInteger, nullable=False, index=True)  # Unix ms
    fingerprint = Column(String, nullable=True, index=True)

    platform = Column(String, nullable=False)
    participant_count = Column(Integer, default=0)
    quant_version = Column(Integer, nullable=True)  # None = written before _version existed

    conversation_json = Column(JSON, nullable=False)
    quantitative_json = Column(JSON, nullable=False)
