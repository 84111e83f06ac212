"""Monitoring sweeps: health, SSL expiry and analytics collection"""
import asyncio
import logging
from datetime import date, datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.core.exceptions import ProviderError
from app.models.alert import AlertSeverity, AlertType
from app.models.domain import Domain, DomainStatus, SSLStatus
from app.models.health import CheckType, HealthCheck, HealthStatus
from app.schemas.monitoring import ProbeOutcome
from app.services.alert_service import AlertService
from app.services.analytics_service import AnalyticsService
from app.services.domain_service import DomainService
from app.services.health_service import HealthProber, breach_severity, ssl_days_remaining, worst_breach
from app.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)


def ssl_alert_severity(days_remaining: int) -> AlertSeverity:
    if days_remaining <= 7:
        return AlertSeverity.CRITICAL
    if days_remaining <= 14:
        return AlertSeverity.HIGH
    return AlertSeverity.WARNING


_SSL_THRESHOLDS = {
    AlertSeverity.CRITICAL: 7,
    AlertSeverity.HIGH: 14,
}


class MonitoringService:
    """
    Sweep implementations.

    Each sweep isolates per-domain failures: an error is logged and counted,
    the domain's partial writes are rolled back and the loop continues. Only
    a failure to load the domain list aborts a sweep.
    """

    @staticmethod
    async def _apply_outcome(
        db: AsyncSession,
        domain: Domain,
        outcome: ProbeOutcome,
        check_type: CheckType,
        prober: HealthProber,
        alerts: AlertService,
        config: Settings = settings,
    ) -> Dict[str, Any]:
        """Persist one probe, raise its alert and track consecutive failures"""
        check = await prober.record(db, domain, outcome, check_type)

        raised = 0
        breach = worst_breach(outcome.breaches) if outcome.status != HealthStatus.HEALTHY else None
        if breach is not None:
            await alerts.raise_alert(
                domain.id,
                breach.metric_value,
                breach.threshold_value,
                breach_severity(breach),
                f"{domain.hostname}: {breach.message}",
                alert_type=breach.condition,
            )
            raised += 1

        failed = False
        if check_type == CheckType.SCHEDULED:
            if outcome.status == HealthStatus.UNHEALTHY:
                domain.consecutive_failures = (domain.consecutive_failures or 0) + 1
            else:
                domain.consecutive_failures = 0

            threshold = config.MONITOR_FAILURE_THRESHOLD
            if domain.consecutive_failures >= threshold and domain.status == DomainStatus.ACTIVE:
                reason = f"{domain.consecutive_failures} consecutive unhealthy checks"
                await DomainService(db).mark_failed(domain, reason)
                await alerts.raise_alert(
                    domain.id,
                    domain.consecutive_failures,
                    threshold,
                    AlertSeverity.CRITICAL,
                    f"{domain.hostname}: {reason}, domain marked as failed",
                    alert_type=AlertType.CONSECUTIVE_FAILURES,
                )
                raised += 1
                failed = True

        await db.commit()
        return {"check": check, "alerts": raised, "failed": failed}

    @staticmethod
    async def run_health_sweep(
        db: AsyncSession,
        prober: Optional[HealthProber] = None,
        alerts: Optional[AlertService] = None,
        config: Settings = settings,
    ) -> Dict[str, Any]:
        """
        Probe every active domain.

        Network checks run concurrently in a bounded pool; persistence and
        alerting then happen domain by domain on the shared session.
        """
        prober = prober or HealthProber(config=config)
        alerts = alerts or AlertService(db)

        domains = await DomainService(db).list_active()
        targets = [(d.id, d.hostname) for d in domains]
        logger.info(f"Starting health sweep for {len(targets)} active domains")

        semaphore = asyncio.Semaphore(max(1, config.MONITOR_CONCURRENCY))

        async def _check(domain: Domain) -> ProbeOutcome:
            async with semaphore:
                return await prober.check(domain, timeout=config.PROBE_TIMEOUT_SCHEDULED)

        outcomes = await asyncio.gather(*(_check(d) for d in domains), return_exceptions=True)

        summary = {
            "checked": 0,
            "healthy": 0,
            "degraded": 0,
            "unhealthy": 0,
            "errors": 0,
            "alerts": 0,
            "failed": 0,
        }
        for (domain_id, hostname), outcome in zip(targets, outcomes):
            try:
                if isinstance(outcome, Exception):
                    raise outcome
                domain = await db.get(Domain, domain_id)
                if domain is None:
                    continue
                applied = await MonitoringService._apply_outcome(
                    db, domain, outcome, CheckType.SCHEDULED, prober, alerts, config
                )
            except Exception as e:
                logger.error(f"Health check failed for {hostname}: {e}", exc_info=True)
                summary["errors"] += 1
                await db.rollback()
                continue

            summary["checked"] += 1
            summary[outcome.status.value] += 1
            summary["alerts"] += applied["alerts"]
            summary["failed"] += int(applied["failed"])
            logger.info(f"Domain {hostname}: {outcome.status.value} ({outcome.response_time_ms}ms)")

        logger.info(
            f"Health sweep completed: {summary['checked']} checked, {summary['healthy']} healthy, "
            f"{summary['degraded']} degraded, {summary['unhealthy']} unhealthy, "
            f"{summary['errors']} errors, {summary['alerts']} alerts"
        )
        return summary

    @staticmethod
    async def run_single_check(
        db: AsyncSession,
        domain_id: int,
        prober: Optional[HealthProber] = None,
        alerts: Optional[AlertService] = None,
        config: Settings = settings,
    ) -> HealthCheck:
        """On-demand check of one domain, logged as `manual`"""
        prober = prober or HealthProber(config=config)
        alerts = alerts or AlertService(db)

        domain = await DomainService(db).get(domain_id)
        outcome = await prober.check(domain, timeout=config.PROBE_TIMEOUT_MANUAL)
        applied = await MonitoringService._apply_outcome(
            db, domain, outcome, CheckType.MANUAL, prober, alerts, config
        )
        logger.info(f"Manual check of {domain.hostname}: {outcome.status.value}")
        return applied["check"]

    @staticmethod
    async def run_ssl_expiry_sweep(
        db: AsyncSession,
        alerts: Optional[AlertService] = None,
        now: Optional[datetime] = None,
        config: Settings = settings,
    ) -> Dict[str, Any]:
        """Raise one alert per domain whose certificate expires within the alert window"""
        alerts = alerts or AlertService(db)
        now = now or datetime.utcnow()
        window = config.SSL_ALERT_WINDOW_DAYS

        domains = await DomainService(db).list_ssl_expiring(window, now=now)
        targets = [(d.id, d.hostname) for d in domains]
        summary = {"checked": len(targets), "critical": 0, "high": 0, "warning": 0, "expired": 0, "errors": 0}

        for domain_id, hostname in targets:
            try:
                domain = await db.get(Domain, domain_id)
                days = ssl_days_remaining(domain.ssl_expires_at, now)
                severity = ssl_alert_severity(days)
                if days <= 0:
                    message = f"{hostname}: SSL certificate expired"
                else:
                    message = f"{hostname}: SSL certificate expires in {days} days"
                await alerts.raise_alert(
                    domain.id,
                    days,
                    _SSL_THRESHOLDS.get(severity, window),
                    severity,
                    message,
                    alert_type=AlertType.SSL_EXPIRY,
                )
                if days <= 0:
                    domain.ssl_status = SSLStatus.EXPIRED
                    domain.ssl_expires_at = None
                    domain.merge_metadata(ssl_expired_at=now.isoformat())
                    summary["expired"] += 1
                await db.commit()
            except Exception as e:
                logger.error(f"SSL expiry check failed for {hostname}: {e}", exc_info=True)
                summary["errors"] += 1
                await db.rollback()
                continue
            summary[severity.value] += 1

        logger.info(
            f"SSL expiry sweep completed: {summary['checked']} expiring, {summary['critical']} critical, "
            f"{summary['high']} high, {summary['warning']} warning, {summary['errors']} errors"
        )
        return summary

    @staticmethod
    async def collect_analytics(
        db: AsyncSession,
        provider: ProviderClient,
        day: Optional[date] = None,
    ) -> Dict[str, Any]:
        """Fetch one day (yesterday by default) of analytics for every zoned domain"""
        day = day or (datetime.utcnow() - timedelta(days=1)).date()

        result = await db.execute(
            select(Domain.id, Domain.hostname, Domain.provider_zone_ref)
            .where(Domain.provider_zone_ref.is_not(None))
            .order_by(Domain.id)
        )
        targets = result.all()
        summary = {"day": day.isoformat(), "domains": len(targets), "collected": 0, "errors": 0}

        for domain_id, hostname, zone_ref in targets:
            try:
                snapshot = await provider.fetch_analytics(zone_ref, day)
                await AnalyticsService.upsert_daily(db, domain_id, day, snapshot)
                await db.commit()
            except ProviderError as e:
                logger.warning(f"Analytics for {hostname} unavailable: {e.message}")
                summary["errors"] += 1
                await db.rollback()
                continue
            except Exception as e:
                logger.error(f"Analytics collection failed for {hostname}: {e}", exc_info=True)
                summary["errors"] += 1
                await db.rollback()
                continue
            summary["collected"] += 1

        logger.info(f"Analytics collected for {summary['collected']}/{summary['domains']} domains ({day})")
        return summary

