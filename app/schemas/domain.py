"""Domain schemas"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import AliasChoices, BaseModel, Field
from enum import Enum


HOSTNAME_PATTERN = r"^([a-zA-Z0-9]([a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?\.)+[a-zA-Z]{2,63}\.?$"


class DomainStatusEnum(str, Enum):
    """Domain status enum"""
    PENDING = "pending"
    VERIFYING = "verifying"
    ACTIVE = "active"
    FAILED = "failed"
    SUSPENDED = "suspended"


class DomainTypeEnum(str, Enum):
    """Domain type enum"""
    CUSTOM = "custom"
    SUBDOMAIN = "subdomain"


class SSLStatusEnum(str, Enum):
    """SSL status enum"""
    NONE = "none"
    PENDING = "pending"
    ACTIVE = "active"
    EXPIRED = "expired"


class DomainCreate(BaseModel):
    """Schema for domain creation"""
    hostname: str = Field(..., min_length=3, max_length=253, pattern=HOSTNAME_PATTERN)
    domain_type: DomainTypeEnum = DomainTypeEnum.CUSTOM
    # Only honoured for admins; tenants always create for themselves
    tenant_id: Optional[str] = Field(None, max_length=64)


class DomainResponse(BaseModel):
    """Schema for domain response"""
    id: int
    tenant_id: str
    hostname: str
    domain_type: DomainTypeEnum
    status: DomainStatusEnum
    provider_hostname_ref: Optional[str] = None
    provider_zone_ref: Optional[str] = None
    ssl_status: SSLStatusEnum
    ssl_expires_at: Optional[datetime] = None
    consecutive_failures: int = 0
    metadata: Dict[str, Any] = Field(default_factory=dict, validation_alias=AliasChoices("provider_metadata", "metadata"))
    verified_at: Optional[datetime] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class VerificationResult(BaseModel):
    """Outcome of a provider verification check"""
    verified: bool
    status: str
    ssl_status: Optional[str] = None
    verification_errors: List[str] = Field(default_factory=list)


class SSLProvisionResponse(BaseModel):
    """Outcome of a forced SSL issuance"""
    ssl_status: Optional[str] = None
    expires_at: Optional[datetime] = None
    validation_method: Optional[str] = None
