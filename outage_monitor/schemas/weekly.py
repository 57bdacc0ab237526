"""
Weekly report Pydantic schemas
"""

from pydantic import BaseModel
from typing import Optional
from datetime import date

class IntervalSchema(BaseModel):
    start_hour: float
    end_hour: float

class ChartDaySchema(BaseModel):
    label: str
    day_date: date
    is_today: bool
    is_future: bool
    now_hour: Optional[float] = None
    outages: list[IntervalSchema]
    schedule: list[bool]
    actual_on_hours: Optional[float] = None
    expected_on_hours: Optional[float] = None

class WeeklyStatsSchema(BaseModel):
    total_power_on_hours: float
    total_power_off_hours: float
    scheduled_on_hours: float
    scheduled_off_hours: float
    diff_minutes: int
    diff_percent: float
    outage_count: int
    longest_on: float
    longest_off: float
    avg_outage: float
    elapsed_hours: float
    uptime_percent: float

class WeeklyResponse(BaseModel):
    week_start: int
    week_end: int
    week_label: str
    group: str
    complete: bool
    days: list[ChartDaySchema]
    stats: WeeklyStatsSchema
