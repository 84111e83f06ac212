"""Domain endpoints"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_accessible_domain, get_current_admin, get_current_principal, get_provider
from app.core.config import settings
from app.core.database import get_db
from app.core.security import Principal
from app.models.domain import Domain, DomainType
from app.schemas.domain import DomainCreate, DomainResponse, SSLProvisionResponse, VerificationResult
from app.schemas.monitoring import DomainAnalyticsResponse, DomainHealthResponse, HealthCheckResponse
from app.services.analytics_service import AnalyticsService
from app.services.domain_service import DomainService
from app.services.health_service import get_recent_checks
from app.services.provider_client import ProviderClient

router = APIRouter()


@router.get("", response_model=List[DomainResponse])
async def list_domains(
    tenant_id: Optional[str] = Query(None, description="Admins only: filter by tenant"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List domains of the caller's tenant"""
    service = DomainService(db)
    if principal.is_admin:
        if tenant_id:
            return await service.list_by_tenant(tenant_id)
        return await service.list_all()
    return await service.list_by_tenant(principal.tenant_id)


@router.post("", response_model=DomainResponse, status_code=status.HTTP_201_CREATED)
async def add_domain(
    domain_create: DomainCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """
    Register a custom hostname.

    The domain is returned as `verifying` once the provider accepted it, or
    as `pending` with `metadata.registration_error` if the provider failed.
    """
    tenant_id = principal.tenant_id
    if principal.is_admin and domain_create.tenant_id:
        tenant_id = domain_create.tenant_id
    if not tenant_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="tenant_id is required"
        )

    service = DomainService(db, provider)
    return await service.add_domain(tenant_id, domain_create.hostname, DomainType(domain_create.domain_type.value))


@router.get("/ssl-expiring", response_model=List[DomainResponse])
async def list_ssl_expiring(
    days: int = Query(30, ge=0, le=365),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Domains whose certificate expires within `days` days"""
    tenant_id = None if principal.is_admin else principal.tenant_id
    return await DomainService(db).list_ssl_expiring(days, tenant_id=tenant_id)


@router.get("/{domain_id}", response_model=DomainResponse)
async def get_domain(domain: Domain = Depends(get_accessible_domain)):
    """Get domain"""
    return domain


@router.post("/{domain_id}/register", response_model=DomainResponse)
async def retry_registration(
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """Retry provider registration of a pending domain"""
    return await DomainService(db, provider).retry_registration(domain.id)


@router.post("/{domain_id}/verify", response_model=VerificationResult)
async def verify_domain(
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """Check verification status with the provider"""
    return await DomainService(db, provider).verify_domain(domain.id)


@router.post("/{domain_id}/ssl", response_model=SSLProvisionResponse)
async def provision_ssl(
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """Force SSL certificate issuance"""
    ssl = await DomainService(db, provider).provision_ssl(domain.id)
    return SSLProvisionResponse(
        ssl_status=ssl.status,
        expires_at=ssl.expires_at,
        validation_method=ssl.validation_method,
    )


@router.post("/{domain_id}/suspend", response_model=DomainResponse)
async def suspend_domain(
    domain_id: int,
    admin: Principal = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Suspend a domain (admin)"""
    return await DomainService(db).suspend_domain(domain_id)


@router.post("/{domain_id}/reactivate", response_model=DomainResponse)
async def reactivate_domain(
    domain_id: int,
    admin: Principal = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Reactivate a suspended or failed domain (admin)"""
    return await DomainService(db).reactivate_domain(domain_id)


@router.get("/{domain_id}/health", response_model=DomainHealthResponse)
async def get_domain_health(
    limit: int = Query(settings.HEALTH_HISTORY_LIMIT, ge=1, le=500),
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
):
    """Current health and recent checks of a domain"""
    checks = await get_recent_checks(db, domain.id, limit)
    return DomainHealthResponse(
        domain=DomainResponse.model_validate(domain),
        current_status=checks[0].status if checks else None,
        recent_checks=[HealthCheckResponse.model_validate(c) for c in checks],
    )


@router.get("/{domain_id}/analytics", response_model=List[DomainAnalyticsResponse])
async def get_domain_analytics(
    days: int = Query(30, ge=1, le=365),
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
):
    """Daily analytics collected from the provider"""
    return await AnalyticsService.get_domain_analytics(db, domain.id, days)
