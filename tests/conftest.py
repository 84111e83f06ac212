"""Pytest configuration and fixtures."""
import itertools
import os
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

# Settings are read at import time
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")
os.environ.setdefault("PROVIDER_ZONE_ID", "zone-default")
os.environ.setdefault("PROVIDER_API_TOKEN", "test-token")

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from app.core.database import Base
from app.core.exceptions import ProviderError
from app.models.domain import Domain, DomainStatus, DomainType, SSLStatus
import app.models  # noqa: F401
from app.schemas.provider import AnalyticsSnapshot, HostnameInfo, SSLInfo
from app.services.provider_client import ProviderClient

NOW = datetime(2026, 1, 15, 12, 0, 0)


class FakeProvider(ProviderClient):
    """In-memory provider that records every call"""

    def __init__(self):
        self.calls: List[tuple] = []
        self._ids = itertools.count(1)
        self.zone_ref: Optional[str] = "zone-default"
        self.hostname_status = "pending"
        self.verification_errors: List[str] = []
        self.ssl = SSLInfo(status="pending_validation", validation_method="http")
        self.register_error: Optional[ProviderError] = None
        self.status_error: Optional[ProviderError] = None
        self.dns_errors: Dict[str, Exception] = {}
        self.records: Dict[str, Dict[str, Any]] = {}
        self.snapshots: Dict[str, AnalyticsSnapshot] = {}
        self.analytics_errors: Dict[str, ProviderError] = {}

    async def register_hostname(self, hostname: str) -> HostnameInfo:
        self.calls.append(("register_hostname", hostname))
        if self.register_error is not None:
            raise self.register_error
        ref = f"ch-{next(self._ids)}"
        return HostnameInfo(
            ref=ref,
            status="pending",
            zone_ref=self.zone_ref,
            ssl=SSLInfo(status="initializing", validation_method="http"),
            verification_errors=["custom hostname does not CNAME to this zone."],
            raw={"id": ref, "hostname": hostname},
        )

    async def get_hostname_status(self, hostname_ref: str) -> HostnameInfo:
        self.calls.append(("get_hostname_status", hostname_ref))
        if self.status_error is not None:
            raise self.status_error
        return HostnameInfo(
            ref=hostname_ref,
            status=self.hostname_status,
            ssl=self.ssl,
            verification_errors=self.verification_errors,
        )

    async def force_ssl_issuance(self, hostname_ref: str) -> SSLInfo:
        self.calls.append(("force_ssl_issuance", hostname_ref))
        return self.ssl

    async def upsert_dns_record(self, zone_ref: str, record: Any, record_ref: Optional[str] = None) -> str:
        self.calls.append(("upsert_dns_record", zone_ref, record.record_type, record.name, record_ref))
        if record.name in self.dns_errors:
            raise self.dns_errors[record.name]
        ref = record_ref or f"rec-{next(self._ids)}"
        self.records[ref] = {"type": record.record_type, "name": record.name, "content": record.value}
        return ref

    async def fetch_analytics(self, zone_ref: str, day: date) -> AnalyticsSnapshot:
        self.calls.append(("fetch_analytics", zone_ref, day))
        if zone_ref in self.analytics_errors:
            raise self.analytics_errors[zone_ref]
        return self.snapshots.get(zone_ref, AnalyticsSnapshot())


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db(engine):
    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def create_domain(db):
    """Insert a domain directly, bypassing the provider"""

    async def _create(
        hostname: str = "shop.example.com",
        tenant_id: str = "tenant-1",
        status: DomainStatus = DomainStatus.ACTIVE,
        provider_hostname_ref: Optional[str] = "ch-existing",
        provider_zone_ref: Optional[str] = None,
        ssl_days: Optional[int] = None,
        verified: bool = True,
    ) -> Domain:
        domain = Domain(
            tenant_id=tenant_id,
            hostname=hostname,
            domain_type=DomainType.CUSTOM,
            status=status,
            provider_hostname_ref=provider_hostname_ref,
            provider_zone_ref=provider_zone_ref,
            ssl_status=SSLStatus.ACTIVE if ssl_days is not None else SSLStatus.NONE,
            ssl_expires_at=NOW + timedelta(days=ssl_days) if ssl_days is not None else None,
            provider_metadata={},
            verified_at=NOW if verified else None,
        )
        db.add(domain)
        await db.commit()
        await db.refresh(domain)
        return domain

    return _create
