"""
Schedule cache: pulls the published outage schedule and keeps one
ScheduleDay row per (local date, group). Readers get "no schedule" for
missing or corrupted days; nothing here raises on feed problems.
"""

import json
from datetime import date, timedelta
from typing import Dict, Iterable, Optional, Tuple

import requests
import structlog
from sqlalchemy.orm import Session

from outage_monitor.core.config import settings
from outage_monitor.core.timeutils import DAY_MS, local_date_str, now_ms as current_ms
from outage_monitor.models import ScheduleDay
from outage_monitor.services.schedule import parse_day, is_valid_day

logger = structlog.get_logger(__name__)

def fetch_feed(url: str = None, timeout: int = None) -> Optional[dict]:
    """Download the schedule feed. None when unreachable or malformed."""
    url = url or settings.schedule_feed_url
    try:
        response = requests.get(url, timeout=timeout or settings.http_timeout)
        if response.status_code != 200:
            logger.warning("Schedule feed returned error", status_code=response.status_code)
            return None
        return response.json()
    except requests.RequestException as e:
        logger.warning("Schedule feed unreachable", error=str(e))
        return None
    except ValueError as e:
        logger.warning("Schedule feed is not valid JSON", error=str(e))
        return None

def extract_group_days(feed: dict, group: str) -> Dict[str, list]:
    """Map local date -> 48 slots for every day the feed publishes for group.

    Day keys in the feed are epoch seconds of the local midnight.
    """
    try:
        days = feed["fact"]["data"]
    except (KeyError, TypeError):
        logger.warning("Schedule feed has no fact.data section")
        return {}
    if not isinstance(days, dict):
        logger.warning("Schedule feed fact.data is not an object")
        return {}

    result = {}
    for day_key, groups in days.items():
        if not isinstance(groups, dict) or group not in groups:
            continue
        if not isinstance(groups[group], dict):
            logger.warning("Skipping malformed schedule day", day_key=day_key, group=group)
            continue
        try:
            day_ms = int(day_key) * 1000
        except (TypeError, ValueError):
            logger.warning("Skipping schedule day with bad key", day_key=day_key)
            continue
        result[local_date_str(day_ms)] = parse_day(groups[group])
    return result

def upsert_schedule_day(db: Session, day: str, group: str, slots: list, now: int):
    """Last write wins per (date, group)."""
    db.merge(ScheduleDay(date=day, group_name=group, slots=json.dumps(slots), updated_at=now))

def refresh_schedule_cache(db: Session, group: str = None, now: int = None, feed: dict = None) -> int:
    """Fetch the feed (unless given) and upsert all days for group. Returns rows written."""
    group = group if group is not None else settings.outage_group
    now = now or current_ms()

    if feed is None:
        feed = fetch_feed()
    if feed is None:
        return 0

    days = extract_group_days(feed, group)
    for day, slots in days.items():
        upsert_schedule_day(db, day, group, slots, now)
    db.commit()

    logger.info("Schedule cache refreshed", group=group, days=len(days))
    return len(days)

def _decode_slots(row: ScheduleDay) -> Optional[list]:
    try:
        slots = json.loads(row.slots)
    except (TypeError, ValueError):
        logger.warning("Corrupted schedule row", date=row.date, group=row.group_name)
        return None
    if not isinstance(slots, list) or not is_valid_day(slots):
        logger.warning("Schedule row does not have 48 slots", date=row.date, group=row.group_name)
        return None
    return [bool(s) for s in slots]

def load_schedule_days(db: Session, group: str, dates: Iterable[str]) -> Dict[str, list]:
    """Slots for the requested local dates; absent or corrupted days are left out."""
    dates = list(dates)
    if not dates:
        return {}

    rows = db.query(ScheduleDay).filter(
        ScheduleDay.group_name == group,
        ScheduleDay.date.in_(dates),
    ).all()

    result = {}
    for row in rows:
        slots = _decode_slots(row)
        if slots is not None:
            result[row.date] = slots
    return result

def load_today_tomorrow(db: Session, group: str, now: int) -> Tuple[Optional[list], Optional[list]]:
    today = local_date_str(now)
    tomorrow = (date.fromisoformat(today) + timedelta(days=1)).isoformat()
    days = load_schedule_days(db, group, [today, tomorrow])
    return days.get(today), days.get(tomorrow)

def schedule_group_for(device_group: str) -> str:
    """Devices without their own group follow the deployment-wide one."""
    return device_group or settings.outage_group
