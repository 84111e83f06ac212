"""Alert emitter tests"""
import pytest

from app.core.exceptions import NotFoundError
from app.models.alert import AlertSeverity, AlertType
from app.services.alert_service import AlertService


async def test_every_breach_inserts_a_row_by_default(db, create_domain):
    domain = await create_domain()
    alerts = AlertService(db, deduplicate=False)

    first = await alerts.raise_alert(domain.id, 503, 500, AlertSeverity.HIGH, "Server error: HTTP 503")
    second = await alerts.raise_alert(domain.id, 503, 500, AlertSeverity.HIGH, "Server error: HTTP 503")
    await db.commit()

    assert first.id != second.id
    assert len(await alerts.list_alerts()) == 2


async def test_deduplicate_returns_open_alert(db, create_domain):
    domain = await create_domain()
    alerts = AlertService(db, deduplicate=True)

    first = await alerts.raise_alert(domain.id, 503, 500, AlertSeverity.HIGH, "Server error: HTTP 503")
    second = await alerts.raise_alert(domain.id, 502, 500, AlertSeverity.HIGH, "Server error: HTTP 502")
    other = await alerts.raise_alert(
        domain.id, 6, 7, AlertSeverity.CRITICAL, "SSL certificate expires in 6 days",
        alert_type=AlertType.SSL_EXPIRY,
    )
    await db.commit()

    assert second.id == first.id
    assert other.id != first.id

    await alerts.resolve(first.id)
    third = await alerts.raise_alert(domain.id, 503, 500, AlertSeverity.HIGH, "Server error: HTTP 503")
    assert third.id != first.id


async def test_resolve_is_idempotent(db, create_domain):
    domain = await create_domain()
    alerts = AlertService(db)
    alert = await alerts.raise_alert(domain.id, 503, 500, AlertSeverity.HIGH, "Server error: HTTP 503")
    await db.commit()

    resolved = await alerts.resolve(alert.id)
    resolved_at = resolved.resolved_at
    again = await alerts.resolve(alert.id)

    assert again.resolved is True
    assert resolved_at is not None
    assert again.resolved_at == resolved_at
    assert await alerts.list_alerts() == []
    assert len(await alerts.list_alerts(resolved=True)) == 1


async def test_resolve_unknown_alert(db):
    with pytest.raises(NotFoundError):
        await AlertService(db).resolve(999)


async def test_list_alerts_filters_by_tenant(db, create_domain):
    mine = await create_domain(hostname="mine.example.com", tenant_id="tenant-1")
    theirs = await create_domain(hostname="theirs.example.com", tenant_id="tenant-2")
    alerts = AlertService(db)
    await alerts.raise_alert(mine.id, 404, 400, AlertSeverity.WARNING, "Client error: HTTP 404")
    await alerts.raise_alert(theirs.id, 404, 400, AlertSeverity.WARNING, "Client error: HTTP 404")
    await db.commit()

    listed = await alerts.list_alerts(tenant_id="tenant-1")

    assert [a.domain_id for a in listed] == [mine.id]
    assert len(await alerts.list_alerts(resolved=None)) == 2
