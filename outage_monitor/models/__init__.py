# Models package
from .device import Device, DeviceState, DEFAULT_DEVICE_ID
from .ping import Ping
from .outage import Outage
from .schedule_day import ScheduleDay
from .chart_state import WeeklyChartState, CHART_STATE_ID

__all__ = ['Device', 'DeviceState', 'DEFAULT_DEVICE_ID', 'Ping', 'Outage', 'ScheduleDay', 'WeeklyChartState', 'CHART_STATE_ID']
