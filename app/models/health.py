"""Health check log models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, JSON, Enum as SQLEnum, Index
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base


class HealthStatus(str, enum.Enum):
    """Probe classification, ordered by severity"""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    HealthStatus.HEALTHY: 0,
    HealthStatus.DEGRADED: 1,
    HealthStatus.UNHEALTHY: 2,
}


class CheckType(str, enum.Enum):
    """What triggered the probe"""
    SCHEDULED = "scheduled"
    MANUAL = "manual"


class HealthCheck(Base):
    """One probe result. Rows are append-only."""
    __tablename__ = "domain_health_checks"

    id = Column(Integer, primary_key=True, index=True)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False)

    performed_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    check_type = Column(SQLEnum(CheckType), default=CheckType.SCHEDULED, nullable=False)
    status = Column(SQLEnum(HealthStatus), nullable=False)

    response_time_ms = Column(Integer, nullable=True)
    ssl_days_remaining = Column(Integer, nullable=True)
    error_message = Column(Text, nullable=True)

    # HTTP status code, breaches, etc.
    raw_detail = Column(JSON, default=dict, nullable=False)

    # Relationships
    domain = relationship("Domain", back_populates="health_checks")

    __table_args__ = (
        Index("ix_health_checks_domain_performed", "domain_id", "performed_at"),
    )
