from datetime import datetime

from sqlalchemy import (
    Column, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint,
)
from ..core.db import Base

class Insight(Base):
    __tablename__ = "insights"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    source_id = Column(Integer, ForeignKey("sources.id"), index=True, nullable=False)

    theme = Column(String(16), nullable=False, default="other")  # Theme enum value
    theme_label = Column(String, nullable=True)                  # theme as sent
    text = Column(Text, nullable=False)
    confidence = Column(Float, nullable=False)
    provenance_score = Column(Float, nullable=False)  # confidence * source trust at ingest time

    content_fingerprint = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "source_id", "content_fingerprint", name="uq_insight_source_fingerprint"
        ),
        Index("ix_insights_company_theme", "company_id", "theme"),
    )
