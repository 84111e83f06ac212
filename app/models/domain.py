"""Domain models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, JSON, Enum as SQLEnum
from sqlalchemy.orm import relationship
import enum

from app.core.database import Base


class DomainType(str, enum.Enum):
    """Domain ownership type"""
    CUSTOM = "custom"  # tenant supplied hostname
    SUBDOMAIN = "subdomain"  # subdomain of the platform zone


class DomainStatus(str, enum.Enum):
    """Domain lifecycle status"""
    PENDING = "pending"
    VERIFYING = "verifying"
    ACTIVE = "active"
    FAILED = "failed"
    SUSPENDED = "suspended"


class SSLStatus(str, enum.Enum):
    """Certificate status as last reported by the provider"""
    NONE = "none"
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"


class Domain(Base):
    """
    Tenant custom domain.

    `provider_hostname_ref` is set once the provider accepts registration. A
    domain suspended while still `pending` keeps a null ref; retrying
    registration fills it in without lifting the suspension.
    """
    __tablename__ = "domains"

    id = Column(Integer, primary_key=True, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    hostname = Column(String(255), unique=True, nullable=False, index=True)
    domain_type = Column(SQLEnum(DomainType), default=DomainType.CUSTOM, nullable=False)
    status = Column(SQLEnum(DomainStatus), default=DomainStatus.PENDING, nullable=False, index=True)

    # Provider references
    provider_hostname_ref = Column(String(64), nullable=True)
    provider_zone_ref = Column(String(64), nullable=True)

    # SSL
    ssl_status = Column(SQLEnum(SSLStatus), default=SSLStatus.NONE, nullable=False)
    ssl_expires_at = Column(DateTime, nullable=True)

    # Monitoring
    consecutive_failures = Column(Integer, default=0, nullable=False)

    # Last provider response, verification and registration errors
    provider_metadata = Column("metadata", JSON, default=dict, nullable=False)

    verified_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    dns_records = relationship("DNSRecord", back_populates="domain", cascade="all, delete-orphan")
    health_checks = relationship("HealthCheck", back_populates="domain", cascade="all, delete-orphan")
    alerts = relationship("Alert", back_populates="domain", cascade="all, delete-orphan")

    def merge_metadata(self, **values) -> None:
        """Replace the JSON column so the change is picked up on flush"""
        self.provider_metadata = {**(self.provider_metadata or {}), **values}
