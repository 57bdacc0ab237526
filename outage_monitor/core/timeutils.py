"""
Time helpers. Timestamps are stored as epoch milliseconds; calendar days,
weeks and schedule slots are computed in the configured local time zone.
"""

import time
from datetime import datetime, timezone
from functools import lru_cache
from zoneinfo import ZoneInfo

from outage_monitor.core.config import settings

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS

@lru_cache(maxsize=None)
def _zone(name: str) -> ZoneInfo:
    return ZoneInfo(name)

def local_tz() -> ZoneInfo:
    return _zone(settings.timezone)

def now_ms() -> int:
    return int(time.time() * 1000)

def to_local(ms: int, tz: ZoneInfo = None) -> datetime:
    """Convert epoch milliseconds to an aware datetime in the local zone."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).astimezone(tz or local_tz())

def to_ms(dt: datetime) -> int:
    """Convert an aware datetime to epoch milliseconds."""
    return int(dt.timestamp() * 1000)

def local_date_str(ms: int, tz: ZoneInfo = None) -> str:
    return to_local(ms, tz).strftime("%Y-%m-%d")

def clock_str(ms: int, tz: ZoneInfo = None) -> str:
    return to_local(ms, tz).strftime("%H:%M")
