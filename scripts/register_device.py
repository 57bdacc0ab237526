#!/usr/bin/env python3
"""
Register a pinger and print its ping URL
"""

import argparse
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from outage_monitor.core.timeutils import now_ms
from outage_monitor.database.connection import SessionLocal, init_database
from outage_monitor.services import ledger

def register(name, group_name=""):
    init_database()
    session = SessionLocal()
    try:
        device = ledger.register_device(session, name, group_name, now_ms())
        session.commit()
        return device.id, device.key
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

def main():
    parser = argparse.ArgumentParser(description=__doc__.strip())
    parser.add_argument("name", help="display name of the device")
    parser.add_argument("--group", default="", help="outage schedule group")
    parser.add_argument("--base-url", default="", help="public URL of the API")
    args = parser.parse_args()

    name = args.name.strip()
    if not name:
        parser.error("device name is required")

    device_id, key = register(name, args.group.strip())
    print(f"Registered device {device_id}")
    print(f"Ping URL: {args.base_url.rstrip('/')}/ping?key={key}")

if __name__ == "__main__":
    main()
