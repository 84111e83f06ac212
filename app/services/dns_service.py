"""DNS reconciliation against the provider"""
import logging
from typing import List, Optional, Sequence
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import NotProvisionedError, ProviderError
from app.models.dns import DNSRecord, DNSRecordStatus
from app.schemas.dns import DNSRecordCreate, DNSRecordResponse, RecordResult
from app.services.domain_service import DomainService
from app.services.provider_client import ProviderClient

logger = logging.getLogger(__name__)


def normalize_record_name(name: str) -> str:
    return name.strip().rstrip(".").lower()


class DNSService:
    """Keeps a domain's provider DNS records in line with the desired set"""

    def __init__(
        self,
        db: AsyncSession,
        provider: ProviderClient,
        default_zone: Optional[str] = settings.PROVIDER_ZONE_ID,
    ):
        self.db = db
        self.provider = provider
        self.default_zone = default_zone

    async def list_records(self, domain_id: int) -> List[DNSRecord]:
        """List all DNS records for domain"""
        result = await self.db.execute(
            select(DNSRecord)
            .where(DNSRecord.domain_id == domain_id)
            .order_by(DNSRecord.name, DNSRecord.record_type)
        )
        return list(result.scalars().all())

    async def _find(self, domain_id: int, record_type: str, name: str) -> Optional[DNSRecord]:
        result = await self.db.execute(
            select(DNSRecord).where(
                DNSRecord.domain_id == domain_id,
                DNSRecord.record_type == record_type,
                DNSRecord.name == name,
            )
        )
        return result.scalar_one_or_none()

    async def reconcile(self, domain_id: int, desired: Sequence[DNSRecordCreate]) -> List[RecordResult]:
        """
        Upsert each desired record with the provider.

        Records are keyed by (domain, type, name); a stored provider reference
        switches the call to update mode so re-running never duplicates
        provider records. Each record commits on its own and a provider
        failure only marks that record as `error`.
        """
        domain = await DomainService(self.db).get(domain_id)
        zone = domain.provider_zone_ref or self.default_zone
        if not zone:
            raise NotProvisionedError(f"Domain {domain.hostname} has no provider zone")

        results: List[RecordResult] = []
        for item in desired:
            record_type = item.record_type.upper()
            name = normalize_record_name(item.name)

            record = await self._find(domain.id, record_type, name)
            if record is None:
                record = DNSRecord(domain_id=domain.id, record_type=record_type, name=name)
                self.db.add(record)
            record.value = item.value
            record.ttl = item.ttl
            record.priority = item.priority
            record.proxied = item.proxied

            error = None
            try:
                provider_ref = await self.provider.upsert_dns_record(zone, record, record.provider_record_ref)
            except ProviderError as e:
                error = e.message
            except Exception as e:
                logger.error(f"Unexpected error syncing {record_type} {name} for {domain.hostname}: {e}", exc_info=True)
                error = str(e) or type(e).__name__

            if error is None:
                record.provider_record_ref = provider_ref
                record.status = DNSRecordStatus.ACTIVE
                record.error_message = None
            else:
                logger.warning(f"DNS record {record_type} {name} for {domain.hostname} failed: {error}")
                record.status = DNSRecordStatus.ERROR
                record.error_message = error

            await self.db.commit()
            await self.db.refresh(record)
            results.append(
                RecordResult(
                    record=DNSRecordResponse.model_validate(record),
                    success=error is None,
                    provider_ref=record.provider_record_ref if error is None else None,
                    error=error,
                )
            )

        succeeded = sum(1 for r in results if r.success)
        logger.info(f"Reconciled {len(results)} DNS records for {domain.hostname}: {succeeded} ok, {len(results) - succeeded} failed")
        return results
