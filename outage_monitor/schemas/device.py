"""
Device Pydantic schemas
"""

from pydantic import BaseModel, Field
from typing import Optional

class DeviceResponse(BaseModel):
    """Schema for device response"""
    id: str
    name: str
    group_name: str = ""
    status: str = Field("unknown", description="unknown, online or offline")
    last_ping: Optional[int] = Field(None, description="Epoch milliseconds")
    last_status_change: Optional[int] = Field(None, description="Epoch milliseconds")
    created_at: int

    class Config:
        from_attributes = True

class DeviceListResponse(BaseModel):
    """Schema for device list response"""
    devices: list[DeviceResponse]

class DeviceStatus(BaseModel):
    """Current state of one device"""
    id: str
    name: str
    group_name: str
    status: str
    last_ping: Optional[int] = None
    last_ping_ago: Optional[int] = Field(None, description="Seconds since the last heartbeat")
    last_status_change: Optional[int] = None

class StatusResponse(BaseModel):
    devices: list[DeviceStatus]
    timestamp: int

class RegisterRequest(BaseModel):
    """Schema for registering a pinger"""
    name: Optional[str] = Field(None, description="Device name")
    group_name: Optional[str] = Field(None, description="Outage schedule group")

class RegisterResponse(BaseModel):
    id: str
    key: str
    name: str
    group_name: str
    ping_url: str
