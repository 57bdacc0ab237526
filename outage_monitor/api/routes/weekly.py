"""
Weekly report endpoint
"""

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from outage_monitor.api.dependencies import require_api_key
from outage_monitor.core.timeutils import DAY_MS, now_ms
from outage_monitor.database.connection import get_database
from outage_monitor.schemas.weekly import ChartDaySchema, IntervalSchema, WeeklyResponse, WeeklyStatsSchema
from outage_monitor.services.weekly import build_weekly_chart, round1

router = APIRouter(dependencies=[Depends(require_api_key)])

@router.get("/weekly", response_model=WeeklyResponse)
def get_weekly(weeks_ago: int = Query(0, ge=0, le=52), db: Session = Depends(get_database)):
    """Statistics snapshot for the current week, or a finished earlier one"""
    now = now_ms()
    ref = now - weeks_ago * 7 * DAY_MS
    chart = build_weekly_chart(db, ref, now, complete=weeks_ago > 0)

    days = []
    for day in chart.days:
        past = not day.is_future
        days.append(ChartDaySchema(
            label=day.label,
            day_date=day.day_date,
            is_today=day.is_today,
            is_future=day.is_future,
            now_hour=day.now_hour,
            outages=[IntervalSchema(start_hour=o.start_hour, end_hour=o.end_hour) for o in day.outages],
            schedule=list(day.schedule),
            actual_on_hours=round1(day.actual_on_hours) if past else None,
            expected_on_hours=round1(day.scheduled_hours()[0]) if past and day.has_schedule else None,
        ))

    stats = chart.stats
    return WeeklyResponse(
        week_start=chart.week.start_ms,
        week_end=chart.week.end_ms,
        week_label=chart.week_label,
        group=chart.group,
        complete=chart.complete,
        days=days,
        stats=WeeklyStatsSchema(uptime_percent=stats.uptime_percent, **asdict(stats)),
    )
