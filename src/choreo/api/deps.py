"""API dependencies."""

from typing import Optional

from fastapi import Header, Request

from ..studio import Studio, StudioRegistry


def get_registry(request: Request) -> StudioRegistry:
    return request.app.state.registry


def get_studio(
    request: Request,
    x_session_id: Optional[str] = Header(None),
) -> Studio:
    """Select the caller's studio from the X-Session-ID header."""
    return get_registry(request).get(x_session_id)
