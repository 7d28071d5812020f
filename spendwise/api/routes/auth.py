"""Sign-in and session introspection."""

from fastapi import APIRouter, Depends, status
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from spendwise.api.dependencies import get_components, get_current_user, get_token_service
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.schemas import LoginRequest, LoginResponse, SessionUser, TokenClaims
from spendwise.orchestrator import AppComponents
from spendwise.services.auth import TokenService, verify_password


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login", response_model=LoginResponse)
async def login(
    body: LoginRequest,
    components: AppComponents = Depends(get_components),
    tokens: TokenService = Depends(get_token_service),
):
    user = await components.storage.get_user_by_username(body.username)

    if user is None or not await run_in_threadpool(verify_password, body.password, user.password):
        await components.audit_logger.log(AuditEventBuilder.login_failed(body.username))
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "error": "Invalid credentials"},
        )

    await components.audit_logger.log(AuditEventBuilder.login_succeeded(user.username))
    return LoginResponse(
        token=tokens.issue(user),
        user=SessionUser(username=user.username, role=user.role),
    )


@router.get("/me", response_model=TokenClaims)
async def me(claims: TokenClaims = Depends(get_current_user)):
    return claims
