"""
Bearer token gate for the upload and chat routes.

A single shared token (AUTH_TOKEN). When it is not configured the gate is open.
"""
import secrets
from typing import Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app import config

security = HTTPBearer(auto_error=False)


async def require_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> None:
    """
    Reject the request unless it carries ``Authorization: Bearer <AUTH_TOKEN>``.

    Raises:
        HTTPException: 401 when a token is configured and the request's token
        is missing or wrong.
    """
    expected = config.AUTH_TOKEN
    if not expected:
        return
    token = credentials.credentials if credentials else ""
    if not token or not secrets.compare_digest(token, expected):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing bearer token",
            headers={"WWW-Authenticate": "Bearer"},
        )
