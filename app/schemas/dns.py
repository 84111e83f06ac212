"""DNS schemas"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field


class DNSRecordCreate(BaseModel):
    """Desired DNS record"""
    record_type: str = Field(..., pattern="^(A|AAAA|CNAME|MX|TXT|SRV|NS|CAA)$")
    name: str = Field(..., min_length=1, max_length=255)
    value: str = Field(..., min_length=1)
    ttl: int = Field(default=3600, ge=1, le=86400)
    priority: Optional[int] = Field(None, ge=0, le=65535)
    proxied: bool = Field(default=False)


class DNSReconcileRequest(BaseModel):
    """Desired record set for a domain"""
    records: List[DNSRecordCreate]


class DNSRecordResponse(BaseModel):
    """Schema for DNS record response"""
    id: int
    domain_id: int
    record_type: str
    name: str
    value: str
    ttl: int
    priority: Optional[int] = None
    proxied: bool
    provider_record_ref: Optional[str] = None
    status: str
    error_message: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RecordResult(BaseModel):
    """Per-record reconciliation outcome"""
    record: DNSRecordResponse
    success: bool
    provider_ref: Optional[str] = None
    error: Optional[str] = None


class DNSReconcileResponse(BaseModel):
    results: List[RecordResult]
    succeeded: int
    failed: int
