"""
Request dependencies: wired components and session checks.

Session rules:
- no bearer token at all              -> 401 "Access Denied"
- token present but not trustworthy   -> 403 "Invalid Session"
- admin-only route, non-admin caller  -> 403 "Admin rights required"
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spendwise.models.schemas import TokenClaims
from spendwise.orchestrator import AppComponents
from spendwise.services.auth import InvalidTokenError, TokenService


bearer_scheme = HTTPBearer(auto_error=False)


def get_components(request: Request) -> AppComponents:
    return request.app.state.components


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> TokenClaims:
    """Resolve the caller from the Authorization header."""
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access Denied")

    try:
        return tokens.verify(credentials.credentials)
    except InvalidTokenError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid Session")


async def require_admin(claims: TokenClaims = Depends(get_current_user)) -> TokenClaims:
    """Allow only callers holding the admin role."""
    if not claims.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin rights required")
    return claims
