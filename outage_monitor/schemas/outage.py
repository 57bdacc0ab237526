"""
Outage and statistics Pydantic schemas
"""

from pydantic import BaseModel, Field
from typing import Optional

class OutageResponse(BaseModel):
    id: int
    device_id: str
    start_time: int
    end_time: Optional[int] = None
    duration: Optional[int] = Field(None, description="Whole seconds, set once closed")
    device_name: str
    device_group: str

class OutageListResponse(BaseModel):
    outages: list[OutageResponse]
    days: int

class DeviceStats(BaseModel):
    device_id: str
    device_name: str
    group_name: str
    outage_count: int
    total_outage_seconds: int
    total_outage_hours: float
    uptime_percent: float

class StatsResponse(BaseModel):
    stats: list[DeviceStats]
    period_days: int
