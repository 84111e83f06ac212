"""Analytics storage and querying"""
import logging
from datetime import date, datetime, timedelta
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.analytics import DomainAnalytics
from app.schemas.provider import AnalyticsSnapshot

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Service for analytics operations"""

    @staticmethod
    async def upsert_daily(
        db: AsyncSession,
        domain_id: int,
        day: date,
        snapshot: AnalyticsSnapshot,
    ) -> DomainAnalytics:
        """
        Store one day of analytics for a domain.

        Collecting the same day again overwrites the previous values.
        The caller commits.
        """
        result = await db.execute(
            select(DomainAnalytics).where(
                DomainAnalytics.domain_id == domain_id,
                DomainAnalytics.day == day,
            )
        )
        row = result.scalar_one_or_none()
        if row is None:
            row = DomainAnalytics(domain_id=domain_id, day=day, created_at=datetime.utcnow())
            db.add(row)

        row.requests_count = snapshot.requests_count
        row.unique_visitors = snapshot.unique_visitors
        row.bandwidth_bytes = snapshot.bandwidth_bytes
        row.cache_hit_rate = snapshot.cache_hit_rate
        row.error_rate = snapshot.error_rate
        row.updated_at = datetime.utcnow()

        await db.flush()
        return row

    @staticmethod
    async def get_domain_analytics(
        db: AsyncSession,
        domain_id: int,
        days: int = 30,
    ) -> List[DomainAnalytics]:
        """Daily rows for the last `days` days, newest first"""
        since = (datetime.utcnow() - timedelta(days=days)).date()
        result = await db.execute(
            select(DomainAnalytics)
            .where(
                DomainAnalytics.domain_id == domain_id,
                DomainAnalytics.day >= since,
            )
            .order_by(DomainAnalytics.day.desc())
        )
        return list(result.scalars().all())
