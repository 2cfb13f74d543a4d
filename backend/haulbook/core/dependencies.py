"""
Request dependencies for FastAPI.

Authentication lives in the gateway in front of this service; it forwards the
signed-in user's name, which is recorded in the audit trail.
"""

from typing import Optional
from fastapi import Header


async def get_actor_username(
    x_actor_username: Optional[str] = Header(default=None, max_length=120)
) -> Optional[str]:
    """
    Username of the caller for audit purposes.

    Returns:
        The X-Actor-Username header value, or None for system/anonymous calls
    """
    if x_actor_username is None:
        return None
    return x_actor_username.strip() or None
