"""
Heartbeat log
"""

from sqlalchemy import Column, Integer, String, BigInteger, ForeignKey, Index
from sqlalchemy.orm import relationship
from outage_monitor.database.connection import Base

class Ping(Base):
    """Append-only heartbeat record"""

    __tablename__ = "pings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    device_id = Column(String(64), ForeignKey("devices.id", ondelete="CASCADE"), nullable=False)
    timestamp = Column(BigInteger, nullable=False)

    device = relationship("Device", back_populates="pings")

    __table_args__ = (
        Index("idx_pings_device_time", "device_id", "timestamp"),
    )

    def __repr__(self):
        return f"<Ping(device_id={self.device_id}, timestamp={self.timestamp})>"
