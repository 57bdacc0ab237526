"""
Shared route dependencies
"""

import hmac
from typing import Optional

from fastapi import HTTPException, Query

from outage_monitor.core.config import settings

def is_api_key(key: Optional[str]) -> bool:
    if not key or not settings.api_key:
        return False
    return hmac.compare_digest(key, settings.api_key)

def require_api_key(key: Optional[str] = Query(None)) -> str:
    """Reject requests without the deployment API key"""
    if not is_api_key(key):
        raise HTTPException(status_code=401, detail="Unauthorized")
    return key
