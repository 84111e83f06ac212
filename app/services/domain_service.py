"""Domain registry: lifecycle and provider registration"""
import logging
from datetime import datetime, timedelta
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, NotFoundError, NotProvisionedError, ProviderError
from app.models.domain import Domain, DomainStatus, DomainType, SSLStatus
from app.schemas.domain import VerificationResult
from app.schemas.provider import SSLInfo
from app.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)


def normalize_hostname(hostname: str) -> str:
    return hostname.strip().rstrip(".").lower()


def apply_ssl_info(domain: Domain, ssl: SSLInfo) -> bool:
    """
    Promote the domain's SSL state from a provider response.

    Only an active certificate with a known expiry is persisted; anything
    else leaves a previously active certificate untouched.
    """
    if ssl.status == "active" and ssl.expires_at:
        domain.ssl_status = SSLStatus.ACTIVE
        domain.ssl_expires_at = ssl.expires_at
        return True
    if ssl.status and domain.ssl_status == SSLStatus.NONE:
        domain.ssl_status = SSLStatus.PENDING
    return False


class DomainService:
    """Domain service for database and provider operations"""

    def __init__(self, db: AsyncSession, provider: Optional[ProviderClient] = None):
        self.db = db
        self.provider = provider

    def _require_provider(self) -> ProviderClient:
        if self.provider is None:
            raise RuntimeError("DomainService was created without a provider client")
        return self.provider

    async def get_by_id(self, domain_id: int) -> Optional[Domain]:
        """Get domain by ID"""
        result = await self.db.execute(select(Domain).where(Domain.id == domain_id))
        return result.scalar_one_or_none()

    async def get(self, domain_id: int) -> Domain:
        """Get domain by ID or raise NotFoundError"""
        domain = await self.get_by_id(domain_id)
        if not domain:
            raise NotFoundError(f"Domain {domain_id} not found")
        return domain

    async def get_by_hostname(self, hostname: str) -> Optional[Domain]:
        """Get domain by hostname"""
        result = await self.db.execute(
            select(Domain).where(Domain.hostname == normalize_hostname(hostname))
        )
        return result.scalar_one_or_none()

    async def list_by_tenant(self, tenant_id: str) -> List[Domain]:
        """List domains by tenant"""
        result = await self.db.execute(
            select(Domain)
            .where(Domain.tenant_id == tenant_id)
            .order_by(Domain.created_at.desc())
        )
        return list(result.scalars().all())

    async def list_all(self) -> List[Domain]:
        result = await self.db.execute(select(Domain).order_by(Domain.created_at.desc()))
        return list(result.scalars().all())

    async def list_active(self) -> List[Domain]:
        """Domains eligible for health sweeps"""
        result = await self.db.execute(
            select(Domain)
            .where(Domain.status == DomainStatus.ACTIVE)
            .order_by(Domain.id)
        )
        return list(result.scalars().all())

    async def list_ssl_expiring(
        self,
        within_days: int,
        now: Optional[datetime] = None,
        tenant_id: Optional[str] = None,
    ) -> List[Domain]:
        """Domains whose certificate expires within `within_days` (already expired included)"""
        now = now or datetime.utcnow()
        query = select(Domain).where(
            Domain.ssl_status == SSLStatus.ACTIVE,
            Domain.ssl_expires_at.is_not(None),
            Domain.ssl_expires_at <= now + timedelta(days=within_days),
        )
        if tenant_id is not None:
            query = query.where(Domain.tenant_id == tenant_id)
        result = await self.db.execute(query.order_by(Domain.ssl_expires_at))
        return list(result.scalars().all())

    async def add_domain(
        self,
        tenant_id: str,
        hostname: str,
        domain_type: DomainType = DomainType.CUSTOM,
    ) -> Domain:
        """
        Create a domain and register it with the provider.

        The row is committed as `pending` before the provider is called. A
        provider failure is recorded in metadata and the pending domain is
        returned so registration can be retried later.
        """
        hostname = normalize_hostname(hostname)
        if await self.get_by_hostname(hostname):
            raise ConflictError(f"Domain {hostname} is already registered")

        domain = Domain(
            tenant_id=tenant_id,
            hostname=hostname,
            domain_type=DomainType(domain_type),
            status=DomainStatus.PENDING,
            ssl_status=SSLStatus.NONE,
            provider_metadata={},
        )
        self.db.add(domain)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError(f"Domain {hostname} is already registered")
        await self.db.refresh(domain)
        logger.info(f"Created domain {hostname} (id={domain.id}) for tenant {tenant_id}")

        return await self._register(domain)

    async def retry_registration(self, domain_id: int) -> Domain:
        """Re-run provider registration for a domain stuck in `pending`"""
        domain = await self.get(domain_id)
        if domain.provider_hostname_ref:
            return domain
        return await self._register(domain)

    async def _register(self, domain: Domain) -> Domain:
        provider = self._require_provider()
        try:
            info = await provider.register_hostname(domain.hostname)
        except ProviderError as e:
            logger.warning(f"Provider registration failed for {domain.hostname}: {e.message}")
            domain.merge_metadata(
                registration_error=e.message,
                registration_error_type=type(e).__name__,
                registration_failed_at=datetime.utcnow().isoformat(),
            )
            await self.db.commit()
            await self.db.refresh(domain)
            return domain

        domain.provider_hostname_ref = info.ref
        if info.zone_ref:
            domain.provider_zone_ref = info.zone_ref
        # Suspension is only lifted by an admin
        if domain.status != DomainStatus.SUSPENDED:
            domain.status = DomainStatus.VERIFYING
        apply_ssl_info(domain, info.ssl)
        metadata = dict(domain.provider_metadata or {})
        for key in ("registration_error", "registration_error_type", "registration_failed_at"):
            metadata.pop(key, None)
        metadata.update(
            provider_status=info.status,
            verification_errors=info.verification_errors,
        )
        domain.provider_metadata = metadata
        await self.db.commit()
        await self.db.refresh(domain)
        logger.info(f"Registered {domain.hostname} with provider (ref={info.ref})")
        return domain

    async def verify_domain(self, domain_id: int) -> VerificationResult:
        """
        Check the provider's verification status.

        Safe to call repeatedly: an unchanged provider status yields the same
        domain state. A suspended domain keeps its suspension.
        """
        domain = await self.get(domain_id)
        if not domain.provider_hostname_ref:
            raise NotProvisionedError(f"Domain {domain.hostname} is not registered with the provider")

        info = await self._require_provider().get_hostname_status(domain.provider_hostname_ref)
        verified = info.status == "active"

        if domain.status != DomainStatus.SUSPENDED:
            if domain.status == DomainStatus.FAILED:
                domain.consecutive_failures = 0
            if verified:
                domain.status = DomainStatus.ACTIVE
                if domain.verified_at is None:
                    domain.verified_at = datetime.utcnow()
            else:
                domain.status = DomainStatus.VERIFYING
        apply_ssl_info(domain, info.ssl)
        domain.merge_metadata(
            provider_status=info.status,
            verification_errors=info.verification_errors,
        )
        await self.db.commit()
        await self.db.refresh(domain)

        logger.info(f"Verification of {domain.hostname}: provider status {info.status}")
        return VerificationResult(
            verified=verified,
            status=info.status,
            ssl_status=info.ssl.status,
            verification_errors=info.verification_errors,
        )

    async def provision_ssl(self, domain_id: int) -> SSLInfo:
        """Force certificate issuance; never regresses an active certificate"""
        domain = await self.get(domain_id)
        if not domain.provider_hostname_ref:
            raise NotProvisionedError(f"Domain {domain.hostname} is not registered with the provider")

        ssl = await self._require_provider().force_ssl_issuance(domain.provider_hostname_ref)
        if ssl.status == "active" and ssl.expires_at:
            domain.ssl_status = SSLStatus.ACTIVE
            domain.ssl_expires_at = ssl.expires_at
            domain.merge_metadata(ssl_validation_method=ssl.validation_method)
            await self.db.commit()
            await self.db.refresh(domain)
            logger.info(f"SSL active for {domain.hostname} until {ssl.expires_at}")
        else:
            logger.info(f"SSL for {domain.hostname} not active yet (provider status {ssl.status})")
        return ssl

    async def suspend_domain(self, domain_id: int) -> Domain:
        """Suspend a domain. Suspending a suspended domain is a no-op."""
        domain = await self.get(domain_id)
        if domain.status == DomainStatus.SUSPENDED:
            return domain

        domain.merge_metadata(
            suspended_from=domain.status.value,
            suspended_at=datetime.utcnow().isoformat(),
        )
        domain.status = DomainStatus.SUSPENDED
        await self.db.commit()
        await self.db.refresh(domain)
        logger.info(f"Suspended domain {domain.hostname}")
        return domain

    async def reactivate_domain(self, domain_id: int) -> Domain:
        """
        Bring a suspended or failed domain back into the lifecycle.

        Verified domains return to `active`; others resume verification.
        """
        domain = await self.get(domain_id)
        if not domain.provider_hostname_ref:
            domain.status = DomainStatus.PENDING
        elif domain.verified_at is not None:
            domain.status = DomainStatus.ACTIVE
        else:
            domain.status = DomainStatus.VERIFYING
        domain.consecutive_failures = 0
        await self.db.commit()
        await self.db.refresh(domain)
        logger.info(f"Reactivated domain {domain.hostname} as {domain.status.value}")
        return domain

    async def mark_failed(self, domain: Domain, reason: str) -> Domain:
        """Move a domain to `failed`; the caller commits"""
        domain.status = DomainStatus.FAILED
        domain.merge_metadata(
            failure_reason=reason,
            failed_at=datetime.utcnow().isoformat(),
        )
        await self.db.flush()
        logger.warning(f"Domain {domain.hostname} marked as failed: {reason}")
        return domain
