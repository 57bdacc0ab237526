"""
Device model for monitored pingers
"""

from sqlalchemy import Column, String, BigInteger, Index
from sqlalchemy.orm import relationship
from outage_monitor.database.connection import Base

DEFAULT_DEVICE_ID = "default"

class DeviceState:
    """Values of Device.status"""
    UNKNOWN = "unknown"
    ONLINE = "online"
    OFFLINE = "offline"

class Device(Base):
    """A power-availability pinger. Timestamps are epoch milliseconds."""

    __tablename__ = "devices"

    id = Column(String(64), primary_key=True)
    key = Column(String(64), unique=True, nullable=True)  # ping key; the default device has none
    name = Column(String(255), nullable=False)
    group_name = Column(String(64), nullable=False, default="")  # schedule-matching key
    status = Column(String(16), nullable=False, default=DeviceState.UNKNOWN)
    last_ping = Column(BigInteger)
    last_status_change = Column(BigInteger)
    created_at = Column(BigInteger, nullable=False)

    # Relationships
    pings = relationship("Ping", back_populates="device", cascade="all, delete-orphan")
    outages = relationship("Outage", back_populates="device", cascade="all, delete-orphan")

    __table_args__ = (
        Index("idx_devices_status", "status"),
    )

    def __repr__(self):
        return f"<Device(id={self.id}, name={self.name}, status={self.status})>"
