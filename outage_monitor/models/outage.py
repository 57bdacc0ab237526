"""
Outage intervals inferred from missed heartbeats
"""

from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, Index, text
from sqlalchemy.orm import relationship
from outage_monitor.database.connection import Base

class Outage(Base):
    """An interval during which a device was offline.

    end_time and duration are NULL while the outage is ongoing. Rows are
    immutable once closed.
    """

    __tablename__ = "outages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(64), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    start_time = Column(BigInteger, nullable=False)
    end_time = Column(BigInteger)
    duration = Column(Integer)  # whole seconds

    device = relationship("Device", back_populates="outages")

    __table_args__ = (
        Index("idx_outages_device", "device_id", "start_time"),
        # At most one open outage per device
        Index(
            "uq_outages_open_per_device",
            "device_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
    )

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    def __repr__(self):
        return f"<Outage(device_id={self.device_id}, start={self.start_time}, end={self.end_time})>"
