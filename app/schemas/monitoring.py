"""Health, alert and analytics schemas"""
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field

from app.models.alert import AlertSeverity, AlertType
from app.models.health import CheckType, HealthStatus
from app.schemas.domain import DomainResponse


class Breach(BaseModel):
    """A metric that crossed one of the health thresholds"""
    condition: AlertType
    status: HealthStatus
    metric_value: float
    threshold_value: float
    message: str


class ProbeOutcome(BaseModel):
    """Result of one network probe before it is persisted"""
    status: HealthStatus
    response_time_ms: int
    ssl_days_remaining: Optional[int] = None
    error_message: Optional[str] = None
    raw_detail: Dict[str, Any] = Field(default_factory=dict)
    breaches: List[Breach] = Field(default_factory=list)


class HealthCheckResponse(BaseModel):
    id: int
    domain_id: int
    performed_at: datetime
    check_type: CheckType
    status: HealthStatus
    response_time_ms: Optional[int] = None
    ssl_days_remaining: Optional[int] = None
    error_message: Optional[str] = None
    raw_detail: Dict[str, Any] = Field(default_factory=dict)

    class Config:
        from_attributes = True


class DomainHealthResponse(BaseModel):
    """Current domain state plus recent probe history"""
    domain: DomainResponse
    current_status: Optional[HealthStatus] = None
    recent_checks: List[HealthCheckResponse]


class AlertResponse(BaseModel):
    id: int
    domain_id: int
    alert_type: AlertType
    severity: AlertSeverity
    metric_value: Optional[float] = None
    threshold_value: Optional[float] = None
    message: str
    resolved: bool
    resolved_at: Optional[datetime] = None
    created_at: datetime

    class Config:
        from_attributes = True


class MonitoringJob(str, Enum):
    HEALTH = "health"
    SSL_EXPIRY = "ssl_expiry"
    ANALYTICS = "analytics"


class MonitoringRunRequest(BaseModel):
    """Trigger payload: `{}` runs the default sweep, `{domain_id}` checks one domain"""
    domain_id: Optional[int] = None
    job: MonitoringJob = MonitoringJob.HEALTH


class DomainAnalyticsResponse(BaseModel):
    day: date
    requests_count: int
    unique_visitors: int
    bandwidth_bytes: int
    cache_hit_rate: float
    error_rate: float

    class Config:
        from_attributes = True
