"""FastAPI dependencies for API token authentication."""

import hashlib
from typing import Annotated

from fastapi import Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.engine import get_db
from ..db.models import APIToken
from ..db.repositories import APITokenRepository

# Bearer token security scheme
security = HTTPBearer(auto_error=False)

SCOPE_HIERARCHY = {"read": 0, "write": 1, "admin": 2}


def hash_token(raw_token: str) -> str:
    """SHA-256 hex digest stored in place of the raw token."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


async def get_current_token(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Security(security)],
    session: Annotated[AsyncSession, Depends(get_db)],
) -> APIToken | None:
    """Get the current API token if provided and valid.

    Returns None if no token provided (for optional auth).
    Raises HTTPException if token provided but invalid.
    """
    if credentials is None:
        return None

    repo = APITokenRepository(session)
    token = await repo.get_by_hash(hash_token(credentials.credentials))

    if token is None:
        raise HTTPException(
            status_code=401,
            detail="Invalid or expired API token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    await repo.update_last_used(token.id)

    return token


async def require_api_token(
    token: Annotated[APIToken | None, Depends(get_current_token)],
) -> APIToken:
    """Require a valid API token."""
    if token is None:
        raise HTTPException(
            status_code=401,
            detail="API token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return token


def require_scope(required_scope: str):
    """Create a dependency that resolves the owner of a token with enough scope.

    Scope hierarchy: admin > write > read
    """

    async def check_scope(
        token: Annotated[APIToken, Depends(require_api_token)],
    ) -> str:
        token_level = SCOPE_HIERARCHY.get(token.scope, 0)
        required_level = SCOPE_HIERARCHY.get(required_scope, 0)

        if token_level < required_level:
            raise HTTPException(
                status_code=403,
                detail=f"Insufficient permissions. Required scope: {required_scope}, your scope: {token.scope}",
            )
        return token.owner_id

    return check_scope
