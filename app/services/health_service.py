"""Domain health probing and classification"""
import asyncio
import logging
import math
import time
from datetime import datetime
from typing import Callable, List, Optional, Tuple

import httpx
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings
from app.models.alert import AlertSeverity, AlertType
from app.models.domain import Domain
from app.models.health import CheckType, HealthCheck, HealthStatus
from app.schemas.monitoring import Breach, ProbeOutcome

logger = logging.getLogger(__name__)


def ssl_days_remaining(expires_at: Optional[datetime], now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until expiry, rounded up; negative once expired"""
    if expires_at is None:
        return None
    now = now or datetime.utcnow()
    return math.ceil((expires_at - now).total_seconds() / 86400)


def classify(
    http_status: Optional[int],
    response_time_ms: Optional[int],
    days_remaining: Optional[int],
    error: Optional[str] = None,
    config: Settings = settings,
) -> Tuple[HealthStatus, List[Breach]]:
    """
    Classify a probe.

    HTTP, SSL and latency rules each contribute a breach; the final status is
    the most severe one, so no rule can downgrade another.
    """
    breaches: List[Breach] = []

    if error is not None or http_status is None:
        breaches.append(Breach(
            condition=AlertType.HEALTH,
            status=HealthStatus.UNHEALTHY,
            metric_value=0,
            threshold_value=0,
            message=f"No response: {error or 'unknown error'}",
        ))
    elif http_status >= 500:
        breaches.append(Breach(
            condition=AlertType.HEALTH,
            status=HealthStatus.UNHEALTHY,
            metric_value=http_status,
            threshold_value=500,
            message=f"Server error: HTTP {http_status}",
        ))
    elif http_status >= 400:
        breaches.append(Breach(
            condition=AlertType.HEALTH,
            status=HealthStatus.DEGRADED,
            metric_value=http_status,
            threshold_value=400,
            message=f"Client error: HTTP {http_status}",
        ))

    if days_remaining is not None:
        if days_remaining < config.SSL_UNHEALTHY_DAYS:
            breaches.append(Breach(
                condition=AlertType.SSL_EXPIRY,
                status=HealthStatus.UNHEALTHY,
                metric_value=days_remaining,
                threshold_value=config.SSL_UNHEALTHY_DAYS,
                message=f"SSL certificate expires in {days_remaining} days",
            ))
        elif days_remaining < config.SSL_DEGRADED_DAYS:
            breaches.append(Breach(
                condition=AlertType.SSL_EXPIRY,
                status=HealthStatus.DEGRADED,
                metric_value=days_remaining,
                threshold_value=config.SSL_DEGRADED_DAYS,
                message=f"SSL certificate expires in {days_remaining} days",
            ))

    if response_time_ms is not None:
        if response_time_ms > config.LATENCY_UNHEALTHY_MS:
            breaches.append(Breach(
                condition=AlertType.LATENCY,
                status=HealthStatus.UNHEALTHY,
                metric_value=response_time_ms,
                threshold_value=config.LATENCY_UNHEALTHY_MS,
                message=f"Response time {response_time_ms}ms",
            ))
        elif response_time_ms > config.LATENCY_DEGRADED_MS:
            breaches.append(Breach(
                condition=AlertType.LATENCY,
                status=HealthStatus.DEGRADED,
                metric_value=response_time_ms,
                threshold_value=config.LATENCY_DEGRADED_MS,
                message=f"Response time {response_time_ms}ms",
            ))

    status = max((b.status for b in breaches), key=lambda s: s.severity, default=HealthStatus.HEALTHY)
    return status, breaches


def breach_severity(breach: Breach) -> AlertSeverity:
    """Alert severity for a single breach"""
    if breach.status == HealthStatus.UNHEALTHY:
        if breach.condition == AlertType.SSL_EXPIRY:
            return AlertSeverity.CRITICAL
        return AlertSeverity.HIGH
    return AlertSeverity.WARNING


_ALERT_RANK = {AlertSeverity.WARNING: 0, AlertSeverity.HIGH: 1, AlertSeverity.CRITICAL: 2}


def worst_breach(breaches: List[Breach]) -> Optional[Breach]:
    """The breach that should drive the alert for a non-healthy probe"""
    if not breaches:
        return None
    return max(breaches, key=lambda b: _ALERT_RANK[breach_severity(b)])


class HealthProber:
    """
    Probes a domain over HTTPS.

    `clock` measures elapsed time and `now` is used for certificate expiry,
    both injectable so tests do not depend on the wall clock.
    """

    def __init__(
        self,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = datetime.utcnow,
        config: Settings = settings,
    ):
        self.transport = transport
        self.clock = clock
        self.now = now
        self.config = config

    async def check(self, domain: Domain, timeout: Optional[float] = None) -> ProbeOutcome:
        """HEAD https://{hostname}. Never raises; failures become `unhealthy`."""
        timeout = timeout or self.config.PROBE_TIMEOUT_SCHEDULED
        url = f"https://{domain.hostname}"
        http_status = None
        error = None
        raw_detail = {"url": url}

        started = self.clock()
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self.transport) as client:
                # httpx limits each phase separately; bound the whole request
                response = await asyncio.wait_for(client.head(url, follow_redirects=False), timeout)
            http_status = response.status_code
            raw_detail["http_status"] = http_status
        except (httpx.TimeoutException, asyncio.TimeoutError):
            error = f"Timed out after {timeout:g}s"
        except httpx.HTTPError as e:
            error = str(e) or type(e).__name__
        except Exception as e:
            logger.warning(f"Unexpected error probing {domain.hostname}: {e}", exc_info=True)
            error = str(e) or type(e).__name__
        response_time_ms = int(round((self.clock() - started) * 1000))

        if error is not None:
            raw_detail["error"] = error

        days = ssl_days_remaining(domain.ssl_expires_at, self.now())
        status, breaches = classify(http_status, response_time_ms, days, error, self.config)
        raw_detail["breaches"] = [b.condition.value for b in breaches]

        return ProbeOutcome(
            status=status,
            response_time_ms=response_time_ms,
            ssl_days_remaining=days,
            error_message=error,
            raw_detail=raw_detail,
            breaches=breaches,
        )

    async def record(
        self,
        db: AsyncSession,
        domain: Domain,
        outcome: ProbeOutcome,
        check_type: CheckType = CheckType.SCHEDULED,
    ) -> HealthCheck:
        """Append the outcome to the health log; the caller commits"""
        check = HealthCheck(
            domain_id=domain.id,
            tenant_id=domain.tenant_id,
            performed_at=self.now(),
            check_type=check_type,
            status=outcome.status,
            response_time_ms=outcome.response_time_ms,
            ssl_days_remaining=outcome.ssl_days_remaining,
            error_message=outcome.error_message,
            raw_detail=outcome.raw_detail,
        )
        db.add(check)
        await db.flush()
        return check

    async def probe(
        self,
        db: AsyncSession,
        domain: Domain,
        check_type: CheckType = CheckType.SCHEDULED,
        timeout: Optional[float] = None,
    ) -> HealthCheck:
        """Check one domain and persist the result"""
        if timeout is None and check_type == CheckType.MANUAL:
            timeout = self.config.PROBE_TIMEOUT_MANUAL
        outcome = await self.check(domain, timeout)
        check = await self.record(db, domain, outcome, check_type)
        await db.commit()
        return check


async def get_recent_checks(db: AsyncSession, domain_id: int, limit: int = 20) -> List[HealthCheck]:
    result = await db.execute(
        select(HealthCheck)
        .where(HealthCheck.domain_id == domain_id)
        .order_by(HealthCheck.performed_at.desc(), HealthCheck.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())
