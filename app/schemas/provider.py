"""Provider capability result schemas"""
from datetime import datetime
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field


class SSLInfo(BaseModel):
    """Certificate state of a custom hostname"""
    status: Optional[str] = None
    expires_at: Optional[datetime] = None
    validation_method: Optional[str] = None


class HostnameInfo(BaseModel):
    """Custom hostname as seen by the provider"""
    ref: str
    status: str
    zone_ref: Optional[str] = None
    ssl: SSLInfo = Field(default_factory=SSLInfo)
    verification_errors: List[str] = Field(default_factory=list)
    raw: Dict[str, Any] = Field(default_factory=dict)


class AnalyticsSnapshot(BaseModel):
    """Traffic totals for one zone and one day"""
    requests_count: int = 0
    unique_visitors: int = 0
    bandwidth_bytes: int = 0
    cache_hit_rate: float = 0.0
    error_rate: float = 0.0
