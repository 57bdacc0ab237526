"""
Tracking row for the live weekly chart message
"""

from sqlalchemy import Column, Integer, BigInteger
from outage_monitor.database.connection import Base

CHART_STATE_ID = 1

class WeeklyChartState(Base):
    """The one live chart message (only one row, id=1)"""

    __tablename__ = "telegram_chart"

    id = Column(Integer, primary_key=True, default=CHART_STATE_ID)
    message_id = Column(BigInteger, nullable=False)
    week_start = Column(BigInteger, nullable=False)  # Monday 00:00 local, epoch ms

    def __repr__(self):
        return f"<WeeklyChartState(message_id={self.message_id}, week_start={self.week_start})>"
