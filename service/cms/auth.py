"""
Bearer-token guard for the admin routes.
"""

from __future__ import annotations

import hmac
from typing import Optional

from fastapi import Header, HTTPException

from cms.config import get_settings


def require_admin(authorization: Optional[str] = Header(default=None)) -> None:
    """
    Require ``Authorization: Bearer <ADMIN_API_TOKEN>`` when a token is
    configured. Without a configured token admin routes are open (local dev).
    """
    token = get_settings().admin_api_token
    if not token:
        return
    scheme, _, supplied = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not hmac.compare_digest(supplied.strip(), token):
        raise HTTPException(status_code=401, detail="Unauthorized")


def is_admin_request(authorization: Optional[str]) -> bool:
    try:
        require_admin(authorization)
    except HTTPException:
        return False
    return True
