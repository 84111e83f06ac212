"""Alert models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Float, Text, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base


class AlertSeverity(str, enum.Enum):
    """Alert severity"""
    WARNING = "warning"
    HIGH = "high"
    CRITICAL = "critical"


class AlertType(str, enum.Enum):
    """Condition that raised the alert"""
    HEALTH = "health"
    LATENCY = "latency"
    SSL_EXPIRY = "ssl_expiry"
    CONSECUTIVE_FAILURES = "consecutive_failures"


class Alert(Base):
    """Threshold breach raised by a probe or a sweep"""
    __tablename__ = "domain_alerts"

    id = Column(Integer, primary_key=True, index=True)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False, index=True)

    alert_type = Column(SQLEnum(AlertType), nullable=False)
    severity = Column(SQLEnum(AlertSeverity), nullable=False)
    metric_value = Column(Float, nullable=True)
    threshold_value = Column(Float, nullable=True)
    message = Column(Text, nullable=False)

    resolved = Column(Boolean, default=False, nullable=False, index=True)
    resolved_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    domain = relationship("Domain", back_populates="alerts")
