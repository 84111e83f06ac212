from app.models.domain import Domain, DomainStatus, DomainType, SSLStatus
from app.models.dns import DNSRecord, DNSRecordStatus
from app.models.health import HealthCheck, HealthStatus, CheckType
from app.models.alert import Alert, AlertSeverity, AlertType
from app.models.analytics import DomainAnalytics
