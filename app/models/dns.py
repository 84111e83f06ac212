"""DNS record models"""
from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean, Text, UniqueConstraint
from sqlalchemy.orm import relationship

from app.core.database import Base


class DNSRecordStatus:
    """Sync status of a record against the provider"""
    PENDING = "pending"
    ACTIVE = "active"
    ERROR = "error"


class DNSRecord(Base):
    """DNS record model"""
    __tablename__ = "dns_records"

    id = Column(Integer, primary_key=True, index=True)
    domain_id = Column(Integer, ForeignKey("domains.id", ondelete="CASCADE"), nullable=False, index=True)

    # DNS fields
    record_type = Column(String(10), nullable=False)  # A, AAAA, CNAME, MX, TXT, SRV, NS, CAA
    name = Column(String(255), nullable=False)
    value = Column(Text, nullable=False)
    ttl = Column(Integer, default=3600, nullable=False)

    # Priority for MX, SRV records
    priority = Column(Integer, nullable=True)

    # Proxied through CDN
    proxied = Column(Boolean, default=False, nullable=False)

    # Provider sync state
    provider_record_ref = Column(String(64), nullable=True)
    status = Column(String(16), default=DNSRecordStatus.PENDING, nullable=False)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    domain = relationship("Domain", back_populates="dns_records")

    __table_args__ = (
        UniqueConstraint("domain_id", "record_type", "name", name="uq_dns_record_key"),
    )
