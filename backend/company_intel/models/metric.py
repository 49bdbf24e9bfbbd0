from sqlalchemy import Column, Integer, String
from ..core.db import Base

class MetricDictionary(Base):
    __tablename__ = "metrics_dictionary"

    id = Column(Integer, primary_key=True, autoincrement=True)
    key_slug = Column(String, unique=True, index=True, nullable=False)
    label = Column(String, nullable=False)         # metric_key as first seen
    bucket = Column(String, nullable=True)         # fact "domain", e.g. "financials"
    primary_source = Column(String, nullable=True) # publisher that introduced the metric
