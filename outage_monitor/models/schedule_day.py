"""
Cached outage schedule, one row per local date and group
"""

from sqlalchemy import Column, String, Text, BigInteger
from outage_monitor.database.connection import Base

class ScheduleDay(Base):
    """48 half-hour slots for one local day, stored as a JSON array of booleans"""

    __tablename__ = "schedule_days"

    date = Column(String(10), primary_key=True)  # YYYY-MM-DD, local
    group_name = Column(String(64), primary_key=True)
    slots = Column(Text, nullable=False)
    updated_at = Column(BigInteger, nullable=False)

    def __repr__(self):
        return f"<ScheduleDay(date={self.date}, group={self.group_name})>"
