"""Monitoring endpoints"""
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_accessible_domain, get_current_admin, get_current_principal, get_prober
from app.core.database import get_db
from app.core.security import Principal
from app.schemas.monitoring import AlertResponse, HealthCheckResponse, MonitoringJob, MonitoringRunRequest
from app.services.alert_service import AlertService
from app.services.health_service import HealthProber
from app.services.monitoring_service import MonitoringService

logger = logging.getLogger(__name__)

router = APIRouter()


def _enqueue(job: MonitoringJob) -> str:
    from app.tasks.monitoring_tasks import collect_analytics, run_health_sweep, run_ssl_expiry_sweep

    tasks = {
        MonitoringJob.HEALTH: run_health_sweep,
        MonitoringJob.SSL_EXPIRY: run_ssl_expiry_sweep,
        MonitoringJob.ANALYTICS: collect_analytics,
    }
    result = tasks[job].delay()
    logger.info(f"Queued {job.value} monitoring job: {result.id}")
    return result.id


@router.post("/run")
async def run_monitoring(
    payload: MonitoringRunRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    prober: HealthProber = Depends(get_prober),
):
    """
    Trigger monitoring.

    With `domain_id` the domain is checked inline and the stored check is
    returned. Without it the sweep named by `job` is queued (admin only).
    """
    if payload.domain_id is not None:
        domain = await get_accessible_domain(payload.domain_id, principal, db)
        check = await MonitoringService.run_single_check(db, domain.id, prober=prober)
        return {
            "status": "completed",
            "check": HealthCheckResponse.model_validate(check),
        }

    await get_current_admin(principal)
    task_id = _enqueue(payload.job)
    return {
        "status": "queued",
        "job": payload.job.value,
        "task_id": task_id,
    }


@router.get("/alerts", response_model=List[AlertResponse])
async def list_alerts(
    resolved: Optional[bool] = Query(False),
    domain_id: Optional[int] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List alerts, unresolved only by default"""
    tenant_id = None if principal.is_admin else principal.tenant_id
    return await AlertService(db).list_alerts(
        resolved=resolved,
        tenant_id=tenant_id,
        domain_id=domain_id,
        limit=limit,
    )


@router.post("/alerts/{alert_id}/resolve", response_model=AlertResponse)
async def resolve_alert(
    alert_id: int,
    admin: Principal = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db),
):
    """Mark an alert as resolved (admin)"""
    return await AlertService(db).resolve(alert_id)
