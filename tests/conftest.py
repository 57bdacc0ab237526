import os
import sys
from datetime import datetime
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from outage_monitor.core.config import settings
from outage_monitor.database.connection import init_database
from outage_monitor.models import Device, DeviceState

KYIV = ZoneInfo("Europe/Kyiv")

def local_ms(year, month, day, hour=0, minute=0, second=0):
    """Epoch milliseconds of a Kyiv wall-clock time"""
    return int(datetime(year, month, day, hour, minute, second, tzinfo=KYIV).timestamp() * 1000)

@pytest.fixture(autouse=True)
def test_settings(monkeypatch):
    """Deterministic settings for every test"""
    monkeypatch.setattr(settings, "timezone", "Europe/Kyiv")
    monkeypatch.setattr(settings, "stale_threshold_seconds", 300)
    monkeypatch.setattr(settings, "outage_start_from_last_ping", True)
    monkeypatch.setattr(settings, "outage_group", "GPV1.1")
    monkeypatch.setattr(settings, "chart_device_id", None)
    monkeypatch.setattr(settings, "telegram_bot_token", None)
    monkeypatch.setattr(settings, "telegram_chat_id", None)
    monkeypatch.setattr(settings, "api_key", "test-api-key")
    return settings

@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_database(bind=engine)
    yield engine
    engine.dispose()

@pytest.fixture
def db_session(db_engine):
    Session = sessionmaker(bind=db_engine, autocommit=False, autoflush=False)
    session = Session()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def mock_messenger():
    """Messaging sink that accepts everything"""
    messenger = MagicMock()
    messenger.send_message.return_value = True
    messenger.send_photo.return_value = 101
    messenger.edit_message_photo.return_value = True
    return messenger

@pytest.fixture
def make_device(db_session):
    def _make(device_id="pinger-1", status=DeviceState.UNKNOWN, last_ping=None,
              last_status_change=None, group_name="", key=None):
        device = Device(
            id=device_id,
            key=key or f"key-{device_id}",
            name=f"Pinger {device_id}",
            group_name=group_name,
            status=status,
            last_ping=last_ping,
            last_status_change=last_status_change,
            created_at=local_ms(2024, 1, 1),
        )
        db_session.add(device)
        db_session.commit()
        return device
    return _make
