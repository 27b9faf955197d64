"""
No-show and reminder sweeps
Run periodically (e.g. every 15 minutes from cron): python run_sweeps.py
"""

import asyncio
import logging
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from glam_booking.database import SessionLocal
from glam_booking.domain.scheduling.calendar import get_business_calendar
from glam_booking.sweeps import run_sweeps

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)


async def main():
    db = SessionLocal()
    try:
        result = await run_sweeps(db, get_business_calendar())
        logger.info(
            f"✅ Sweeps done: {len(result['no_shows'])} no-show(s), "
            f"{len(result['reminders'])} reminder(s)"
        )
    finally:
        db.close()


if __name__ == "__main__":
    logger.info("🚀 Starting appointment sweeps...")
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("👋 Sweeps stopped by user")
    except Exception as e:
        logger.error(f"❌ Sweeps crashed: {e}")
        sys.exit(1)
