"""Daily per-domain analytics collected from the provider"""
from sqlalchemy import (
    Column, Integer, DateTime, ForeignKey, BigInteger,
    Float, Date, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base


class DomainAnalytics(Base):
    """One row per domain and day, overwritten when collected again"""
    __tablename__ = "domain_analytics"

    id = Column(Integer, primary_key=True, index=True)

    day = Column(Date, nullable=False, index=True)

    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False, index=True)
    domain = relationship("Domain", backref="analytics")

    requests_count = Column(BigInteger, default=0)
    unique_visitors = Column(Integer, default=0)
    bandwidth_bytes = Column(BigInteger, default=0)

    # Percentages, 0-100
    cache_hit_rate = Column(Float, default=0)
    error_rate = Column(Float, default=0)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('day', 'domain_id', name='uq_domain_analytics'),
        Index('ix_domain_analytics_day_domain', 'day', 'domain_id'),
    )
