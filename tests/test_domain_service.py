"""Domain registry lifecycle tests"""
from datetime import datetime

import pytest
from pydantic import ValidationError

from app.core.exceptions import ConflictError, NotProvisionedError, ProviderRejected, ProviderUnavailable
from app.models.domain import DomainStatus, DomainType, SSLStatus
from app.schemas.domain import DomainCreate
from app.schemas.provider import SSLInfo
from app.services.domain_service import DomainService, normalize_hostname
from tests.conftest import NOW


def test_normalize_hostname():
    assert normalize_hostname("  Shop.Example.COM. ") == "shop.example.com"


def test_domain_create_validates_hostname():
    long_label = "a" * 60
    assert DomainCreate(hostname="shop.example.com").hostname == "shop.example.com"
    assert DomainCreate(hostname=".".join([long_label] * 4) + ".com")

    for hostname in ("not a host", "example", "-shop.example.com", ".".join([long_label] * 5) + ".com"):
        with pytest.raises(ValidationError):
            DomainCreate(hostname=hostname)


async def test_add_domain_registers_with_provider(db, provider):
    service = DomainService(db, provider)

    domain = await service.add_domain("tenant-1", "Shop.Example.com", DomainType.CUSTOM)

    assert domain.id is not None
    assert domain.hostname == "shop.example.com"
    assert domain.status == DomainStatus.VERIFYING
    assert domain.provider_hostname_ref == "ch-1"
    assert domain.provider_zone_ref == "zone-default"
    assert domain.ssl_status == SSLStatus.PENDING
    assert domain.ssl_expires_at is None
    assert domain.provider_metadata["provider_status"] == "pending"
    assert domain.provider_metadata["verification_errors"] == ["custom hostname does not CNAME to this zone."]
    assert provider.calls == [("register_hostname", "shop.example.com")]


async def test_add_domain_rejects_duplicates(db, provider):
    service = DomainService(db, provider)
    await service.add_domain("tenant-1", "shop.example.com")

    with pytest.raises(ConflictError):
        await service.add_domain("tenant-2", "SHOP.example.com")

    assert len(await service.list_all()) == 1


async def test_provider_failure_leaves_domain_pending(db, provider):
    provider.register_error = ProviderUnavailable("Provider error: upstream down", status_code=503)
    service = DomainService(db, provider)

    domain = await service.add_domain("tenant-1", "shop.example.com")

    assert domain.status == DomainStatus.PENDING
    assert domain.provider_hostname_ref is None
    assert domain.provider_metadata["registration_error"] == "Provider error: upstream down"
    assert domain.provider_metadata["registration_error_type"] == "ProviderUnavailable"

    provider.register_error = None
    domain = await service.retry_registration(domain.id)

    assert domain.status == DomainStatus.VERIFYING
    assert domain.provider_hostname_ref == "ch-1"
    assert "registration_error" not in domain.provider_metadata


async def test_retry_registration_is_noop_once_registered(db, provider):
    service = DomainService(db, provider)
    domain = await service.add_domain("tenant-1", "shop.example.com")

    again = await service.retry_registration(domain.id)

    assert again.provider_hostname_ref == "ch-1"
    assert [c[0] for c in provider.calls] == ["register_hostname"]


async def test_verify_requires_provider_ref(db, provider, create_domain):
    domain = await create_domain(status=DomainStatus.PENDING, provider_hostname_ref=None, verified=False)

    with pytest.raises(NotProvisionedError):
        await DomainService(db, provider).verify_domain(domain.id)


async def test_verify_pending_keeps_verifying(db, provider):
    service = DomainService(db, provider)
    domain = await service.add_domain("tenant-1", "shop.example.com")
    provider.verification_errors = ["TXT record not found"]

    result = await service.verify_domain(domain.id)

    assert result.verified is False
    assert result.status == "pending"
    assert result.verification_errors == ["TXT record not found"]
    domain = await service.get(domain.id)
    assert domain.status == DomainStatus.VERIFYING
    assert domain.verified_at is None
    assert domain.provider_metadata["verification_errors"] == ["TXT record not found"]


async def test_verify_active_stamps_verified_at_once(db, provider):
    service = DomainService(db, provider)
    domain = await service.add_domain("tenant-1", "shop.example.com")
    provider.hostname_status = "active"

    first = await service.verify_domain(domain.id)
    domain = await service.get(domain.id)
    verified_at = domain.verified_at

    second = await service.verify_domain(domain.id)
    domain = await service.get(domain.id)

    assert first.verified is True
    assert second.verified is True
    assert domain.status == DomainStatus.ACTIVE
    assert verified_at is not None
    assert domain.verified_at == verified_at


async def test_verify_propagates_provider_rejection(db, provider):
    service = DomainService(db, provider)
    domain = await service.add_domain("tenant-1", "shop.example.com")
    provider.status_error = ProviderRejected("Provider error: invalid hostname", status_code=200)

    with pytest.raises(ProviderRejected):
        await service.verify_domain(domain.id)

    domain = await service.get(domain.id)
    assert domain.status == DomainStatus.VERIFYING


async def test_verify_keeps_suspension(db, provider, create_domain):
    domain = await create_domain(status=DomainStatus.SUSPENDED)
    provider.hostname_status = "active"

    result = await DomainService(db, provider).verify_domain(domain.id)

    assert result.verified is True
    domain = await DomainService(db).get(domain.id)
    assert domain.status == DomainStatus.SUSPENDED


async def test_retry_registration_keeps_suspension(db, provider):
    provider.register_error = ProviderUnavailable("Provider error: upstream down", status_code=503)
    service = DomainService(db, provider)
    domain = await service.add_domain("tenant-1", "shop.example.com")
    await service.suspend_domain(domain.id)

    provider.register_error = None
    domain = await service.retry_registration(domain.id)

    assert domain.status == DomainStatus.SUSPENDED
    assert domain.provider_hostname_ref == "ch-1"

    domain = await service.reactivate_domain(domain.id)
    assert domain.status == DomainStatus.VERIFYING


async def test_verify_failed_domain_resets_failure_count(db, provider, create_domain):
    domain = await create_domain(status=DomainStatus.FAILED)
    domain.consecutive_failures = 3
    await db.commit()
    provider.hostname_status = "active"

    await DomainService(db, provider).verify_domain(domain.id)

    domain = await DomainService(db).get(domain.id)
    assert domain.status == DomainStatus.ACTIVE
    assert domain.consecutive_failures == 0


async def test_provision_ssl_persists_active_certificate(db, provider, create_domain):
    domain = await create_domain()
    expires = datetime(2026, 4, 15, 10, 0, 0)
    provider.ssl = SSLInfo(status="active", expires_at=expires, validation_method="http")

    ssl = await DomainService(db, provider).provision_ssl(domain.id)

    assert ssl.status == "active"
    domain = await DomainService(db).get(domain.id)
    assert domain.ssl_status == SSLStatus.ACTIVE
    assert domain.ssl_expires_at == expires


async def test_provision_ssl_never_regresses(db, provider, create_domain):
    domain = await create_domain(ssl_days=60)
    expires = domain.ssl_expires_at
    provider.ssl = SSLInfo(status="pending_validation", validation_method="http")

    ssl = await DomainService(db, provider).provision_ssl(domain.id)

    assert ssl.status == "pending_validation"
    domain = await DomainService(db).get(domain.id)
    assert domain.ssl_status == SSLStatus.ACTIVE
    assert domain.ssl_expires_at == expires


async def test_provision_ssl_requires_provider_ref(db, provider, create_domain):
    domain = await create_domain(status=DomainStatus.PENDING, provider_hostname_ref=None, verified=False)

    with pytest.raises(NotProvisionedError):
        await DomainService(db, provider).provision_ssl(domain.id)


async def test_suspend_is_idempotent(db, create_domain):
    domain = await create_domain()
    service = DomainService(db)

    first = await service.suspend_domain(domain.id)
    suspended_at = first.provider_metadata["suspended_at"]
    second = await service.suspend_domain(domain.id)

    assert second.status == DomainStatus.SUSPENDED
    assert second.provider_metadata["suspended_from"] == "active"
    assert second.provider_metadata["suspended_at"] == suspended_at


async def test_reactivate_verified_domain(db, create_domain):
    domain = await create_domain(status=DomainStatus.FAILED)
    domain.consecutive_failures = 4
    await db.commit()

    domain = await DomainService(db).reactivate_domain(domain.id)

    assert domain.status == DomainStatus.ACTIVE
    assert domain.consecutive_failures == 0


async def test_reactivate_unverified_domain(db, create_domain):
    domain = await create_domain(status=DomainStatus.SUSPENDED, verified=False)

    domain = await DomainService(db).reactivate_domain(domain.id)

    assert domain.status == DomainStatus.VERIFYING


async def test_reactivate_unregistered_domain(db, create_domain):
    domain = await create_domain(status=DomainStatus.SUSPENDED, provider_hostname_ref=None, verified=False)

    domain = await DomainService(db).reactivate_domain(domain.id)

    assert domain.status == DomainStatus.PENDING


async def test_list_ssl_expiring(db, create_domain):
    await create_domain(hostname="soon.example.com", ssl_days=10)
    await create_domain(hostname="later.example.com", ssl_days=90)
    await create_domain(hostname="nossl.example.com")

    domains = await DomainService(db).list_ssl_expiring(30, now=NOW)

    assert [d.hostname for d in domains] == ["soon.example.com"]
