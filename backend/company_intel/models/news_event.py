from datetime import datetime

from sqlalchemy import (
    Column, Date, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint,
)
from ..core.db import Base

class NewsEvent(Base):
    __tablename__ = "news_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id"), index=True, nullable=False)
    source_id = Column(Integer, ForeignKey("sources.id"), index=True, nullable=False)

    event_date = Column(Date, nullable=False)
    headline = Column(String, nullable=False)
    summary = Column(Text, nullable=True)
    full_text = Column(Text, nullable=True)  # capped at NEWS_FULL_TEXT_MAX_CHARS
    theme = Column(String(16), nullable=False, default="other")
    importance = Column(Float, nullable=False)

    content_fingerprint = Column(String(64), nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "company_id", "source_id", "content_fingerprint", name="uq_news_source_fingerprint"
        ),
    )
