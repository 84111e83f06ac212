"""Scheduled monitoring tasks"""
import asyncio
import logging
import uuid
from datetime import date
from typing import Optional

from app.core.config import settings
from app.core.redis import redis_client
from app.services.monitoring_service import MonitoringService
from app.services.provider_client import get_provider_client
from app.tasks import celery_app
from app.tasks.utils import create_task_db_session

logger = logging.getLogger(__name__)

HEALTH_SWEEP_LOCK = "lock:monitoring:health_sweep"


@celery_app.task(name="app.tasks.monitoring.run_health_sweep")
def run_health_sweep():
    """Probe all active domains"""
    return asyncio.run(_run_health_sweep())


async def _keep_lock(owner: str, ttl: int, interval: float):
    """Renew the sweep lock until cancelled or until it is lost"""
    while True:
        await asyncio.sleep(interval)
        if not await redis_client.extend_lock(HEALTH_SWEEP_LOCK, ttl, owner):
            logger.warning("Health sweep lock lost, another sweep may start")
            return


async def _run_health_sweep():
    owner = uuid.uuid4().hex
    ttl = settings.HEALTH_SWEEP_LOCK_SECONDS
    await redis_client.connect()
    try:
        if not await redis_client.acquire_lock(HEALTH_SWEEP_LOCK, ttl, owner):
            logger.info("Previous health sweep still running, skipping")
            return {"status": "skipped"}

        task_engine, session_factory = create_task_db_session()
        heartbeat = asyncio.create_task(_keep_lock(owner, ttl, ttl / 3))
        try:
            async with session_factory() as db:
                summary = await MonitoringService.run_health_sweep(db)
            return {"status": "success", **summary}
        except Exception as e:
            logger.error(f"Health sweep failed: {e}", exc_info=True)
            return {"status": "error", "error": str(e)}
        finally:
            heartbeat.cancel()
            await task_engine.dispose()
            await redis_client.release_lock(HEALTH_SWEEP_LOCK, owner)
    finally:
        await redis_client.disconnect()


@celery_app.task(name="app.tasks.monitoring.run_ssl_expiry_sweep")
def run_ssl_expiry_sweep():
    """Raise alerts for certificates expiring within the alert window"""
    async def _run():
        task_engine, session_factory = create_task_db_session()
        try:
            async with session_factory() as db:
                summary = await MonitoringService.run_ssl_expiry_sweep(db)
            return {"status": "success", **summary}
        except Exception as e:
            logger.error(f"SSL expiry sweep failed: {e}", exc_info=True)
            return {"status": "error", "error": str(e)}
        finally:
            await task_engine.dispose()

    return asyncio.run(_run())


@celery_app.task(name="app.tasks.monitoring.collect_analytics")
def collect_analytics(day: Optional[str] = None):
    """
    Collect provider analytics for one day.
    Runs once a day and processes the previous day unless `day` (ISO date) is given.
    """
    async def _run():
        task_engine, session_factory = create_task_db_session()
        target = date.fromisoformat(day) if day else None
        try:
            async with get_provider_client() as provider, session_factory() as db:
                summary = await MonitoringService.collect_analytics(db, provider, target)
            return {"status": "success", **summary}
        except Exception as e:
            logger.error(f"Analytics collection failed: {e}", exc_info=True)
            return {"status": "error", "error": str(e)}
        finally:
            await task_engine.dispose()

    return asyncio.run(_run())
