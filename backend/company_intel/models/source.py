from datetime import datetime

from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, UniqueConstraint,
)
from ..core.db import Base

class Source(Base):
    __tablename__ = "sources"

    id = Column(Integer, primary_key=True, autoincrement=True)
    company_id = Column(Integer, ForeignKey("companies.id"), index=True, nullable=False)
    url = Column(String, nullable=False)
    title = Column(String, nullable=False)
    doc_type = Column(String(32), nullable=False, default="other")
    published_at = Column(DateTime, nullable=True)
    language = Column(String(16), nullable=True)
    version = Column(Integer, nullable=False, default=1)
    content_fingerprint = Column(String(64), nullable=True)  # caller-supplied source_md5

    # Provenance, written once when the row is created
    publisher_domain = Column(String, nullable=True)
    publisher_name = Column(String, nullable=True)
    publisher_type = Column(String(16), nullable=False, default="other")
    is_official = Column(Boolean, nullable=False, default=False)
    trust_score = Column(Float, nullable=False, default=0.5)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        UniqueConstraint("company_id", "url", name="uq_source_company_url"),
    )
