"""DNS endpoints"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_accessible_domain, get_provider
from app.core.database import get_db
from app.models.domain import Domain
from app.schemas.dns import DNSReconcileRequest, DNSReconcileResponse, DNSRecordResponse
from app.services.dns_service import DNSService
from app.services.provider_client import ProviderClient

router = APIRouter()


@router.get("/domains/{domain_id}/records", response_model=List[DNSRecordResponse])
async def list_dns_records(
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """List all DNS records for domain"""
    return await DNSService(db, provider).list_records(domain.id)


@router.put("/domains/{domain_id}/records", response_model=DNSReconcileResponse)
async def reconcile_dns_records(
    payload: DNSReconcileRequest,
    domain: Domain = Depends(get_accessible_domain),
    db: AsyncSession = Depends(get_db),
    provider: ProviderClient = Depends(get_provider),
):
    """
    Sync the desired record set with the provider.

    Always returns 200 with per-record results; failed records are stored
    with `status=error` and are retried on the next call.
    """
    results = await DNSService(db, provider).reconcile(domain.id, payload.records)
    succeeded = sum(1 for r in results if r.success)
    return DNSReconcileResponse(
        results=results,
        succeeded=succeeded,
        failed=len(results) - succeeded,
    )
