"""
Periodic worker: staleness sweep, schedule refresh and weekly chart.

Every tick is a self-contained unit of work. It re-ensures the schema,
opens its own session and keeps the three jobs independent, so a failure in
one does not stop the others.
"""

import argparse
import time

import structlog

from outage_monitor.core.config import settings
from outage_monitor.core.logging import configure_logging
from outage_monitor.core.timeutils import now_ms, to_local
from outage_monitor.database.connection import SessionLocal, init_database
from outage_monitor.services.chart_lifecycle import update_weekly_chart
from outage_monitor.services.device_status import sweep_stale_devices
from outage_monitor.services.schedule_cache import refresh_schedule_cache
from outage_monitor.services.telegram import TelegramClient

logger = structlog.get_logger(__name__)

def _run_job(name: str, job, *args):
    db = SessionLocal()
    try:
        return job(db, *args)
    except Exception as e:
        db.rollback()
        logger.error("Job failed", job=name, error=str(e))
        return None
    finally:
        db.close()

def check_devices(now: int = None, messenger: TelegramClient = None):
    init_database()
    return _run_job("check_devices", sweep_stale_devices, now, messenger)

def refresh_schedule(now: int = None):
    init_database()
    return _run_job("refresh_schedule", refresh_schedule_cache, settings.outage_group, now)

def update_chart(now: int = None, messenger: TelegramClient = None):
    init_database()
    return _run_job("update_chart", update_weekly_chart, now, messenger)

def is_due(minute: int, every_minutes: int) -> bool:
    return every_minutes > 0 and minute % every_minutes == 0

def run_tick(now: int = None) -> dict:
    """One scheduled invocation"""
    now = now or now_ms()
    minute = to_local(now).minute
    messenger = TelegramClient()

    results = {"sweep": check_devices(now, messenger)}
    if is_due(minute, settings.schedule_refresh_minutes):
        results["schedule"] = refresh_schedule(now)
    if is_due(minute, settings.chart_update_minutes):
        results["chart"] = update_chart(now, messenger)
    return results

def run_forever(interval: int = None):
    interval = interval or settings.tick_interval_seconds
    logger.info("Starting outage monitor worker", interval=interval)
    while True:
        try:
            run_tick()
        except Exception as e:
            logger.error("Worker tick failed", error=str(e))
        time.sleep(interval)

def main(argv=None):
    parser = argparse.ArgumentParser(description="Outage monitor periodic worker")
    parser.add_argument("--once", action="store_true", help="run a single tick and exit")
    parser.add_argument("--interval", type=int, default=None, help="seconds between ticks")
    args = parser.parse_args(argv)

    configure_logging()
    if args.once:
        run_tick()
    else:
        try:
            run_forever(args.interval)
        except KeyboardInterrupt:
            logger.info("Received interrupt signal")

if __name__ == "__main__":
    main()
