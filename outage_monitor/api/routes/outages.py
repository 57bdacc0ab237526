"""
Outage history and statistics endpoints
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from outage_monitor.api.dependencies import require_api_key
from outage_monitor.core.timeutils import DAY_MS, now_ms
from outage_monitor.database.connection import get_database
from outage_monitor.schemas.outage import DeviceStats, OutageListResponse, OutageResponse, StatsResponse
from outage_monitor.services import ledger

router = APIRouter(dependencies=[Depends(require_api_key)])

MAX_PERIOD_DAYS = 90

def clamp_days(days: int) -> int:
    return min(max(days, 1), MAX_PERIOD_DAYS)

def parse_period(period: str) -> int:
    """'7d' -> 7; anything unparsable falls back to a week"""
    try:
        days = int(period.strip().rstrip("d"))
    except (AttributeError, ValueError):
        days = 7
    return clamp_days(days or 7)

@router.get("/outages", response_model=OutageListResponse)
def get_outages(days: int = Query(7), db: Session = Depends(get_database)):
    """Outages started within the last N days"""
    days = clamp_days(days)
    outages = ledger.get_outages(db, now_ms() - days * DAY_MS)
    return OutageListResponse(outages=[OutageResponse(**o) for o in outages], days=days)

@router.get("/stats", response_model=StatsResponse)
def get_stats(period: str = Query("7d"), db: Session = Depends(get_database)):
    """Closed-outage totals and uptime per device"""
    days = parse_period(period)
    total_seconds = days * 24 * 60 * 60
    rows = ledger.get_stats(db, now_ms() - days * DAY_MS)

    stats = [
        DeviceStats(
            device_id=row["device_id"],
            device_name=row["device_name"],
            group_name=row["group_name"],
            outage_count=row["outage_count"],
            total_outage_seconds=row["total_outage_seconds"],
            total_outage_hours=round(row["total_outage_seconds"] / 3600, 2),
            uptime_percent=round((total_seconds - row["total_outage_seconds"]) / total_seconds * 100, 2),
        )
        for row in rows
    ]
    return StatsResponse(stats=stats, period_days=days)
