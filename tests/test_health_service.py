"""Health classification and probing tests"""
import asyncio
from datetime import timedelta

import httpx
import pytest
from sqlalchemy import select

from app.models.alert import AlertType
from app.models.health import CheckType, HealthCheck, HealthStatus
from app.services.health_service import (
    HealthProber,
    breach_severity,
    classify,
    ssl_days_remaining,
    worst_breach,
)
from app.models.alert import AlertSeverity
from tests.conftest import NOW


def fixed_clock(*values):
    ticks = iter(values)
    return lambda: next(ticks)


def make_prober(handler, clock=None) -> HealthProber:
    return HealthProber(
        transport=httpx.MockTransport(handler),
        clock=clock or fixed_clock(0.0, 0.12),
        now=lambda: NOW,
    )


def test_ssl_days_remaining_rounds_up():
    assert ssl_days_remaining(None, NOW) is None
    assert ssl_days_remaining(NOW + timedelta(days=45), NOW) == 45
    assert ssl_days_remaining(NOW + timedelta(days=4, hours=1), NOW) == 5
    assert ssl_days_remaining(NOW - timedelta(days=2), NOW) == -2


@pytest.mark.parametrize("http_status,latency,days,expected", [
    (200, 120, 45, HealthStatus.HEALTHY),
    (200, 120, None, HealthStatus.HEALTHY),
    (301, 120, 45, HealthStatus.HEALTHY),
    (404, 120, 45, HealthStatus.DEGRADED),
    (503, 120, 45, HealthStatus.UNHEALTHY),
    (200, 5001, 45, HealthStatus.DEGRADED),
    (200, 5000, 45, HealthStatus.HEALTHY),
    (200, 10001, 45, HealthStatus.UNHEALTHY),
    (200, 120, 29, HealthStatus.DEGRADED),
    (200, 120, 30, HealthStatus.HEALTHY),
    (200, 120, 6, HealthStatus.UNHEALTHY),
    (200, 120, 7, HealthStatus.DEGRADED),
])
def test_classify_thresholds(http_status, latency, days, expected):
    status, _ = classify(http_status, latency, days)
    assert status == expected


def test_classify_never_downgrades_severity():
    # A slow response must not mask an expiring certificate, and vice versa
    status, breaches = classify(200, 6000, 3)
    assert status == HealthStatus.UNHEALTHY
    assert {b.condition for b in breaches} == {AlertType.LATENCY, AlertType.SSL_EXPIRY}

    status, _ = classify(404, 120, 3)
    assert status == HealthStatus.UNHEALTHY


def test_classify_error_is_unhealthy():
    status, breaches = classify(None, 15000, None, error="Timed out after 15s")
    assert status == HealthStatus.UNHEALTHY
    assert breaches[0].condition == AlertType.HEALTH
    assert "Timed out" in breaches[0].message


def test_worst_breach_prefers_critical_ssl():
    _, breaches = classify(503, 120, 5)
    breach = worst_breach(breaches)
    assert breach.condition == AlertType.SSL_EXPIRY
    assert breach_severity(breach) == AlertSeverity.CRITICAL


async def test_check_healthy_site(create_domain):
    domain = await create_domain(ssl_days=45)
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["method"] = request.method
        seen["url"] = f"{request.url.scheme}://{request.url.host}"
        return httpx.Response(200)

    outcome = await make_prober(handler).check(domain, timeout=15)

    assert seen == {"method": "HEAD", "url": "https://shop.example.com"}
    assert outcome.status == HealthStatus.HEALTHY
    assert outcome.response_time_ms == 120
    assert outcome.ssl_days_remaining == 45
    assert outcome.breaches == []
    assert outcome.raw_detail["http_status"] == 200


async def test_check_does_not_follow_redirects(create_domain):
    domain = await create_domain(ssl_days=45)
    urls = []

    def handler(request: httpx.Request) -> httpx.Response:
        urls.append(request.url.host)
        return httpx.Response(301, headers={"Location": "https://elsewhere.example.com/"})

    outcome = await make_prober(handler).check(domain)

    assert urls == ["shop.example.com"]
    assert outcome.status == HealthStatus.HEALTHY


async def test_check_timeout_is_unhealthy_and_never_raises(create_domain):
    domain = await create_domain(ssl_days=45)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    outcome = await make_prober(handler, clock=fixed_clock(0.0, 15.0)).check(domain, timeout=15)

    assert outcome.status == HealthStatus.UNHEALTHY
    assert outcome.error_message == "Timed out after 15s"
    assert outcome.raw_detail["error"] == "Timed out after 15s"


async def test_check_slow_response_hits_total_timeout(create_domain):
    domain = await create_domain(ssl_days=45)

    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200)

    outcome = await make_prober(handler, clock=fixed_clock(0.0, 0.05)).check(domain, timeout=0.05)

    assert outcome.status == HealthStatus.UNHEALTHY
    assert "http_status" not in outcome.raw_detail
    assert outcome.error_message == "Timed out after 0.05s"


async def test_check_connection_error_is_unhealthy(create_domain):
    domain = await create_domain(ssl_days=45)

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("Name or service not known", request=request)

    outcome = await make_prober(handler).check(domain)

    assert outcome.status == HealthStatus.UNHEALTHY
    assert "Name or service not known" in outcome.error_message


async def test_probe_persists_manual_check(db, create_domain):
    domain = await create_domain(ssl_days=5)

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200)

    check = await make_prober(handler).probe(db, domain, CheckType.MANUAL)

    rows = (await db.execute(select(HealthCheck))).scalars().all()
    assert len(rows) == 1
    assert rows[0].id == check.id
    assert check.check_type == CheckType.MANUAL
    assert check.status == HealthStatus.UNHEALTHY
    assert check.ssl_days_remaining == 5
    assert check.tenant_id == "tenant-1"
    assert check.performed_at == NOW
    assert check.raw_detail["breaches"] == ["ssl_expiry"]
