"""
FastAPI dependencies.
"""

from typing import Optional

from fastapi import Header, HTTPException, status

from app.database import get_db


OWNER_HEADER = "X-User-Id"

__all__ = ["get_db", "get_current_owner", "OWNER_HEADER"]


def get_current_owner(
    x_user_id: Optional[str] = Header(None, alias=OWNER_HEADER)
) -> str:
    """
    Resolve the authenticated owner id from the session header.

    The identity layer in front of this service sets the header; the id is
    passed explicitly into every service call.
    """
    owner_id = (x_user_id or "").strip()
    if not owner_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized",
        )
    return owner_id
