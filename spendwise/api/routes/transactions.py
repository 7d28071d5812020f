"""Transaction history, manual entries and receipt uploads."""

from typing import Optional

from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from fastapi.responses import JSONResponse

from spendwise.api.dependencies import get_components, get_current_user, require_admin
from spendwise.insights import search_transactions
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.schemas import (
    ManualTransactionRequest,
    SuccessResponse,
    TokenClaims,
    UploadResponse,
)
from spendwise.models.transaction import Transaction, today_iso
from spendwise.orchestrator import AppComponents, NoFilesError, UploadedReceipt


router = APIRouter(tags=["transactions"])


@router.get("/transactions", response_model=list[Transaction])
async def list_transactions(
    q: Optional[str] = Query(default=None, description="Filter on item or category"),
    _: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    return search_transactions(await components.storage.list_transactions(), q)


@router.post("/transactions/manual", response_model=SuccessResponse)
async def add_manual_transaction(
    body: ManualTransactionRequest,
    claims: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    storage = components.storage
    payload = {"date": today_iso()}
    payload.update(body.model_dump(exclude_none=True))
    # Ids are always allocated by the store
    payload["id"] = await storage.next_id()

    transaction = await storage.add_transaction(Transaction.model_validate(payload))
    await components.audit_logger.log(
        AuditEventBuilder.transaction_saved(
            transaction_id=transaction.id,
            item=transaction.item,
            amount=transaction.amount,
            actor=claims.username,
        )
    )
    return SuccessResponse()


@router.delete("/transactions", response_model=SuccessResponse)
async def clear_transactions(
    claims: TokenClaims = Depends(require_admin),
    components: AppComponents = Depends(get_components),
):
    removed = await components.storage.clear_transactions()
    await components.audit_logger.log(
        AuditEventBuilder.transactions_cleared(count=removed, actor=claims.username)
    )
    return SuccessResponse()


@router.post("/upload", response_model=UploadResponse)
async def upload_receipts(
    invoices: Optional[list[UploadFile]] = File(default=None),
    claims: TokenClaims = Depends(get_current_user),
    components: AppComponents = Depends(get_components),
):
    receipts = []
    for upload in invoices or []:
        receipts.append(
            UploadedReceipt(
                content=await upload.read(),
                mime_type=upload.content_type or "application/octet-stream",
                filename=upload.filename,
            )
        )

    try:
        results = await components.ingestion.process_batch(receipts, actor=claims.username)
    except NoFilesError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "error": str(e)},
        )

    return UploadResponse(results=results)
