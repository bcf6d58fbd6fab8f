"""
Status Scan Background Worker Runner
Run this as a separate process: python run_worker.py
Pass --once to run both scans immediately and exit (for external schedulers)
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from arq.worker import run_worker

from fieldservice.worker import WorkerSettings, contract_status_scan_task, job_overdue_scan_task

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def run_once():
    await contract_status_scan_task({})
    await job_overdue_scan_task({})


if __name__ == "__main__":
    try:
        if "--once" in sys.argv:
            logger.info("🚀 Running status scans once...")
            asyncio.run(run_once())
        else:
            logger.info("🚀 Starting status scan worker...")
            run_worker(WorkerSettings)
    except KeyboardInterrupt:
        logger.info("👋 Worker stopped by user")
    except Exception as e:
        logger.error(f"❌ Worker crashed: {e}")
        sys.exit(1)
