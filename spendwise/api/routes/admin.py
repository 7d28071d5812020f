"""User management. Every route here requires the admin role."""

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool

from spendwise.api.dependencies import get_components, require_admin
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.schemas import CreateUserRequest, SuccessResponse, TokenClaims
from spendwise.models.transaction import PublicUser, Role, User
from spendwise.orchestrator import AppComponents
from spendwise.services.auth import hash_password
from spendwise.services.storage import DuplicateError


router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[PublicUser])
async def list_users(
    _: TokenClaims = Depends(require_admin),
    components: AppComponents = Depends(get_components),
):
    return [user.public() for user in await components.storage.list_users()]


@router.post("/users", response_model=SuccessResponse)
async def create_user(
    body: CreateUserRequest,
    claims: TokenClaims = Depends(require_admin),
    components: AppComponents = Depends(get_components),
):
    storage = components.storage
    if await storage.get_user_by_username(body.username) is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User exists")

    user = User(
        id=await storage.next_id(),
        username=body.username,
        password=await run_in_threadpool(hash_password, body.password),
        role=body.role or Role.VIEWER,
    )
    try:
        await storage.add_user(user)
    except DuplicateError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User exists")

    await components.audit_logger.log(
        AuditEventBuilder.user_created(
            user_id=user.id,
            username=user.username,
            role=user.role.value,
            actor=claims.username,
        )
    )
    return SuccessResponse()


@router.delete("/users/{user_id}", response_model=SuccessResponse)
async def delete_user(
    user_id: int,
    claims: TokenClaims = Depends(require_admin),
    components: AppComponents = Depends(get_components),
):
    protected = components.settings.app.default_admin_username
    for user in await components.storage.list_users():
        if user.id == user_id and user.username == protected:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Protected account")

    removed = await components.storage.delete_user(user_id)
    await components.audit_logger.log(
        AuditEventBuilder.user_deleted(user_id=user_id, removed=removed, actor=claims.username)
    )
    return SuccessResponse()
