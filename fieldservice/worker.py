"""
ARQ worker for the status scans
Contract lifecycle scan runs once a day, the job overdue scan every hour
"""

import logging
import os
from typing import Callable

from arq.connections import RedisSettings
from arq.cron import cron

# Relationships resolve across all model modules, so load them up front
from . import models, models_job, models_notification  # noqa: F401
from .config import CONTRACT_SCAN_HOUR, CONTRACT_SCAN_MINUTE
from .database import SessionLocal
from .services.status_automation import mark_overdue_jobs, update_contract_statuses

logger = logging.getLogger(__name__)


def get_redis_settings() -> RedisSettings:
    """REDIS_URL (redis:// or rediss://) wins over the individual REDIS_* variables"""
    redis_url = os.getenv("REDIS_URL")
    if redis_url:
        settings = RedisSettings.from_dsn(redis_url)
    else:
        settings = RedisSettings(
            host=os.getenv("REDIS_HOST", "localhost"),
            port=int(os.getenv("REDIS_PORT", "6379")),
            password=os.getenv("REDIS_PASSWORD"),
            ssl=os.getenv("REDIS_SSL", "false").lower() == "true",
        )
    settings.conn_timeout = 15
    settings.conn_retry_delay = 1
    return settings


def _run_scan(name: str, scan: Callable) -> dict:
    db = SessionLocal()
    try:
        summary = scan(db)
        logger.info(f"📊 {name} finished: {summary}")
        return summary
    except Exception as e:
        logger.error(f"❌ {name} failed: {e}")
        raise
    finally:
        db.close()


async def contract_status_scan_task(ctx):
    """
    Daily: end date passed → overdue, end date within 3 months →
    renewal_needed, next recurring service within a month → job_creation_needed
    """
    logger.info("🔄 Contract status scan starting")
    return _run_scan("Contract status scan", update_contract_statuses)


async def job_overdue_scan_task(ctx):
    """Hourly: jobs two days past their scheduled start become overdue"""
    logger.info("🔄 Job overdue scan starting")
    return _run_scan("Job overdue scan", mark_overdue_jobs)


class WorkerSettings:
    functions = [contract_status_scan_task, job_overdue_scan_task]
    redis_settings = get_redis_settings()

    max_jobs = int(os.getenv("ARQ_MAX_JOBS", "4"))
    job_timeout = int(os.getenv("ARQ_JOB_TIMEOUT", "600"))
    keep_result = int(os.getenv("ARQ_KEEP_RESULT", "3600"))
    max_tries = 3

    cron_jobs = [
        cron(contract_status_scan_task, hour=CONTRACT_SCAN_HOUR, minute=CONTRACT_SCAN_MINUTE),
        cron(job_overdue_scan_task, minute=15),
    ]
