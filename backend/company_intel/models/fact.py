"""
Fact model: one extracted data point about a company.

Facts are append-only. A fact that repeats an existing
metric/date/value for the same company carries the same
content_fingerprint and is rejected by the unique constraint.
"""
from datetime import datetime

from sqlalchemy import (
    Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text, UniqueConstraint,
)

from ..core.db import Base


class Fact(Base):
    __tablename__ = "facts"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Foreign keys
    company_id = Column(Integer, ForeignKey("companies.id"), nullable=False)
    source_id = Column(Integer, ForeignKey("sources.id"), index=True, nullable=False)
    metric_id = Column(Integer, ForeignKey("metrics_dictionary.id"), index=True, nullable=False)

    # Value
    as_of_date = Column(Date, nullable=True)
    metric_key = Column(String, nullable=False)     # as sent by the extractor
    raw_value = Column(Text, nullable=False)
    numeric_value = Column(Float, nullable=True)    # NULL when raw_value is not numeric
    unit = Column(String(32), nullable=True)
    qualifier = Column(String, nullable=True)
    quote = Column(Text, nullable=True)

    # Scores in [0, 1]
    extraction_confidence = Column(Float, nullable=True)
    impact_score = Column(Float, nullable=False, default=0.0)

    content_fingerprint = Column(String(64), nullable=False)  # SHA256, see services.dedup
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "content_fingerprint", name="uq_fact_company_fingerprint"),
        Index("ix_facts_company_metric_date", "company_id", "metric_id", "as_of_date"),
    )
