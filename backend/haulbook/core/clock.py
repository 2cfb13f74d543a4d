"""
Current-date source.

Status derivation and aged-balance checks compare against "today". Endpoints
receive it through this dependency so tests can pin the date with
app.dependency_overrides.
"""

from datetime import date


async def get_today() -> date:
    """FastAPI dependency returning the server's local calendar date."""
    return date.today()
