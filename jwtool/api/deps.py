"""FastAPI dependencies for settings and vault authentication."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from jwtool.core.settings import ToolkitSettings

_security = HTTPBearer(auto_error=False)


def load_settings() -> ToolkitSettings:
    return ToolkitSettings()


Settings = Annotated[ToolkitSettings, Depends(load_settings)]


async def require_api_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_security)],
    settings: Settings,
) -> None:
    """Check the JWTOOL_API_TOKEN Bearer token when one is configured."""
    expected = settings.api_token
    if not expected:
        return
    if credentials is None or not secrets.compare_digest(
        credentials.credentials, expected
    ):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
