"""Assistant chat and spending intelligence."""

import time

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from spendwise.agents import AssistantUnavailableError
from spendwise.api.dependencies import get_components, get_current_user
from spendwise.insights import budget_usage, detect_subscriptions, health_report, spending_summary
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.schemas import (
    BudgetUsage,
    ChatRequest,
    ChatResponse,
    HealthReport,
    SpendingSummary,
    TokenClaims,
)
from spendwise.models.transaction import Transaction
from spendwise.orchestrator import AppComponents
from spendwise.services.storage import StorageError


logger = structlog.get_logger(__name__)

assistant_router = APIRouter(prefix="/ai", tags=["assistant"])
router = APIRouter(prefix="/intel", tags=["intel"])


@assistant_router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    claims: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    try:
        transactions = await components.storage.list_transactions()
        answer, provider = await components.assistant.answer(body.query, transactions)
    except (AssistantUnavailableError, StorageError) as e:
        logger.error("assistant_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "error": str(e)},
        )

    await components.audit_logger.log(
        AuditEventBuilder.assistant_answered(
            provider=provider,
            question_length=len(body.query),
            actor=claims.username,
        )
    )
    return ChatResponse(answer=answer)


@router.get("/subscriptions", response_model=list[Transaction])
async def subscriptions(
    _: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return detect_subscriptions(await components.storage.list_transactions())


@router.get("/budgets", response_model=list[BudgetUsage])
async def budgets(
    _: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return budget_usage(
        await components.storage.list_transactions(),
        components.settings.app.budget_limits,
    )


@router.get("/summary", response_model=SpendingSummary)
async def summary(
    _: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return spending_summary(await components.storage.list_transactions())


@router.get("/health", response_model=HealthReport)
async def health(
    request: Request,
    _: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return health_report(
        uptime_seconds=time.monotonic() - request.app.state.started_at,
        provider_status=components.chain.status(),
        database_size=await components.storage.document_size(),
        record_count=await components.storage.transaction_count(),
    )
