"""Celery configuration"""
import logging
from celery import Celery
from celery.schedules import crontab
from app.core.config import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

celery_app = Celery(
    "tenant_domains",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "app.tasks.monitoring_tasks",
    ]
)

celery_app.conf.task_routes = {
    "app.tasks.monitoring.*": {"queue": "monitoring"},
}

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
)

# Periodic tasks
celery_app.conf.beat_schedule = {
    "run-health-sweep": {
        "task": "app.tasks.monitoring.run_health_sweep",
        "schedule": crontab(minute=settings.HEALTH_SWEEP_MINUTES),
    },
    "run-ssl-expiry-sweep": {
        "task": "app.tasks.monitoring.run_ssl_expiry_sweep",
        "schedule": crontab(hour=settings.SSL_SWEEP_HOUR, minute=0),
    },
    "collect-domain-analytics": {
        "task": "app.tasks.monitoring.collect_analytics",
        "schedule": crontab(hour=settings.ANALYTICS_HOUR, minute=15),
    },
}
