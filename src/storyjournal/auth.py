"""Request user resolution.

Sign-in is handled by the hosted auth service in front of this API; it
forwards the resolved user in the ``X-User-Id`` / ``X-User-Email`` headers.
"""

from fastapi import Header, HTTPException
from pydantic import BaseModel


class CurrentUser(BaseModel):
    """Signed-in user."""

    id: str
    email: str | None = None


async def get_current_user(
    x_user_id: str | None = Header(default=None),
    x_user_email: str | None = Header(default=None),
) -> CurrentUser:
    """Resolve the signed-in user or reject the request."""
    if not x_user_id or not x_user_id.strip():
        raise HTTPException(status_code=401, detail="Not signed in")
    return CurrentUser(id=x_user_id.strip(), email=x_user_email)
