"""Alert emitter"""
import logging
from datetime import datetime
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotFoundError
from app.models.alert import Alert, AlertSeverity, AlertType
from app.models.domain import Domain

logger = logging.getLogger(__name__)


class AlertService:
    """
    Persists threshold breaches as alerts.

    Every breach inserts a new row unless deduplication is enabled, in which
    case an open alert for the same domain and condition is returned instead.
    """

    def __init__(self, db: AsyncSession, deduplicate: Optional[bool] = None):
        self.db = db
        self.deduplicate = settings.ALERT_DEDUPLICATE if deduplicate is None else deduplicate

    async def _open_alert(self, domain_id: int, alert_type: AlertType) -> Optional[Alert]:
        result = await self.db.execute(
            select(Alert)
            .where(
                Alert.domain_id == domain_id,
                Alert.alert_type == alert_type,
                Alert.resolved.is_(False),
            )
            .order_by(Alert.created_at.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def raise_alert(
        self,
        domain_id: int,
        metric_value: Optional[float],
        threshold_value: Optional[float],
        severity: AlertSeverity,
        message: str,
        alert_type: AlertType = AlertType.HEALTH,
    ) -> Alert:
        """Insert an alert; the caller commits"""
        if self.deduplicate:
            existing = await self._open_alert(domain_id, alert_type)
            if existing is not None:
                logger.debug(f"Alert {existing.id} already open for domain {domain_id} ({alert_type.value})")
                return existing

        alert = Alert(
            domain_id=domain_id,
            alert_type=alert_type,
            severity=severity,
            metric_value=metric_value,
            threshold_value=threshold_value,
            message=message,
            resolved=False,
            created_at=datetime.utcnow(),
        )
        self.db.add(alert)
        await self.db.flush()
        logger.warning(f"[{severity.value}] domain {domain_id}: {message}")
        return alert

    async def resolve(self, alert_id: int) -> Alert:
        """Mark an alert as resolved. Resolving twice keeps the first timestamp."""
        result = await self.db.execute(select(Alert).where(Alert.id == alert_id))
        alert = result.scalar_one_or_none()
        if not alert:
            raise NotFoundError(f"Alert {alert_id} not found")

        if not alert.resolved:
            alert.resolved = True
            alert.resolved_at = datetime.utcnow()
            await self.db.commit()
            await self.db.refresh(alert)
        return alert

    async def list_alerts(
        self,
        resolved: Optional[bool] = False,
        tenant_id: Optional[str] = None,
        domain_id: Optional[int] = None,
        limit: int = 100,
    ) -> List[Alert]:
        """List alerts, newest first"""
        query = select(Alert)
        if resolved is not None:
            query = query.where(Alert.resolved.is_(resolved))
        if domain_id is not None:
            query = query.where(Alert.domain_id == domain_id)
        if tenant_id is not None:
            query = query.join(Domain, Domain.id == Alert.domain_id).where(Domain.tenant_id == tenant_id)
        result = await self.db.execute(query.order_by(Alert.created_at.desc(), Alert.id.desc()).limit(limit))
        return list(result.scalars().all())
