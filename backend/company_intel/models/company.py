from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime
from ..core.db import Base

class Company(Base):
    __tablename__ = "companies"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String, unique=True, index=True, nullable=False)  # slugify(name), never rewritten
    name = Column(String, nullable=False)
    domain = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
