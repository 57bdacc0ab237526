"""Power outage monitor: heartbeat tracking, schedule reconciliation and weekly reports"""

__version__ = "1.0.0"
