"""Shared dependencies for API endpoints.

Annotated aliases so endpoint signatures stay short and tests can swap
implementations through app.dependency_overrides.
"""

from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from booklink.core.clock import Clock, get_clock
from booklink.core.database import get_db


def get_client_ip(request: Request) -> str | None:
    """Client address as seen by the ASGI server, None if unknown."""
    return request.client.host if request.client else None


DbSession = Annotated[AsyncSession, Depends(get_db)]
ClockDep = Annotated[Clock, Depends(get_clock)]
ClientIp = Annotated[str | None, Depends(get_client_ip)]
