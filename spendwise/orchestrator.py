"""
Main Orchestrator for Spend Wise

This module ties together all the components and defines the
receipt ingestion flow:

    upload(s) -> provider chain (primary, then fallback) -> parse -> store

The flow is strictly sequential: one file at a time, one provider at a
time. If no provider can read a receipt, a placeholder transaction
("Unrecognized Receipt", amount 0, category "Other") is stored anyway,
so the user sees every upload in their history and can fix it by hand.

Failures are contained at two levels:
- the provider chain absorbs any provider exception
- the batch absorbs any per-file failure (oversize file, storage error)
"""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

import structlog

from spendwise.agents import (
    AssistantAgent,
    GeminiProvider,
    OpenAIProvider,
    ProviderChain,
)
from spendwise.audit import AuditLogger, create_correlation_id
from spendwise.config import Settings, get_settings
from spendwise.models.audit import AuditEventBuilder
from spendwise.models.schemas import UploadOutcome
from spendwise.models.transaction import ReceiptClassification, Transaction
from spendwise.services.storage import FinanceStorageInterface, JsonFileStore


logger = structlog.get_logger(__name__)


class NoFilesError(Exception):
    """An upload batch contained no files."""
    pass


class ReceiptTooLargeError(Exception):
    """An uploaded file exceeds the configured size limit."""
    pass


@dataclass
class UploadedReceipt:
    """One file of an upload batch, fully read into memory."""

    content: bytes
    mime_type: str = "application/octet-stream"
    filename: Optional[str] = None


class ReceiptIngestionFlow:
    """
    Orchestrates the receipt upload flow.

    Flow:
    1. Upload   -> size check, audit
    2. Classify -> ProviderChain (OpenAI, then Gemini)
    3. Parse    -> ReceiptClassification -> Transaction with defaults
    4. Save     -> prepend to the flat-file store
    """

    def __init__(
        self,
        storage: FinanceStorageInterface,
        chain: ProviderChain,
        audit_logger: Optional[AuditLogger] = None,
        max_upload_size_bytes: Optional[int] = None,
    ):
        self._storage = storage
        self._chain = chain
        self._audit_logger = audit_logger or AuditLogger()
        self._max_upload_size_bytes = (
            max_upload_size_bytes or get_settings().app.max_upload_size_bytes
        )

    async def process_receipt(
        self,
        receipt: UploadedReceipt,
        correlation_id: Optional[UUID] = None,
        actor: Optional[str] = None,
    ) -> Transaction:
        """
        Classify a single receipt and store the resulting transaction.

        Raises:
            ReceiptTooLargeError: If the file exceeds the size limit
            StorageError: If the transaction cannot be saved
        """
        correlation_id = correlation_id or create_correlation_id()

        await self._audit_logger.log(
            AuditEventBuilder.receipt_uploaded(
                filename=receipt.filename,
                file_size=len(receipt.content),
                mime_type=receipt.mime_type,
                correlation_id=correlation_id,
                actor=actor,
            )
        )

        if len(receipt.content) > self._max_upload_size_bytes:
            limit_mb = self._max_upload_size_bytes / (1024 * 1024)
            reason = f"File exceeds the {limit_mb:g} MB upload limit"
            await self._audit_logger.log(
                AuditEventBuilder.receipt_rejected(
                    filename=receipt.filename,
                    reason=reason,
                    correlation_id=correlation_id,
                )
            )
            raise ReceiptTooLargeError(reason)

        classification, provider = await self._chain.classify_receipt(
            receipt.content,
            receipt.mime_type,
            correlation_id=correlation_id,
        )
        if classification is None:
            await self._audit_logger.log(
                AuditEventBuilder.receipt_unrecognized(
                    filename=receipt.filename,
                    correlation_id=correlation_id,
                )
            )
            classification = ReceiptClassification.unrecognized()

        transaction = classification.to_transaction(await self._storage.next_id())
        await self._storage.add_transaction(transaction)

        logger.info(
            "receipt_processed",
            filename=receipt.filename,
            provider=provider,
            transaction_id=transaction.id,
        )
        await self._audit_logger.log(
            AuditEventBuilder.transaction_saved(
                transaction_id=transaction.id,
                item=transaction.item,
                amount=transaction.amount,
                correlation_id=correlation_id,
                actor=actor,
            )
        )
        return transaction

    async def process_batch(
        self,
        receipts: list[UploadedReceipt],
        actor: Optional[str] = None,
    ) -> list[UploadOutcome]:
        """
        Process every receipt of a batch in order.

        A failure on one file is reported in its outcome and does not
        stop the rest of the batch.

        Raises:
            NoFilesError: If the batch is empty
        """
        if not receipts:
            raise NoFilesError("No files uploaded")

        correlation_id = create_correlation_id()
        logger.info(
            "upload_batch_started",
            files=len(receipts),
            correlation_id=str(correlation_id),
        )

        outcomes = []
        for receipt in receipts:
            try:
                transaction = await self.process_receipt(
                    receipt,
                    correlation_id=correlation_id,
                    actor=actor,
                )
            except Exception as e:
                logger.error(
                    "upload_file_failed",
                    filename=receipt.filename,
                    error=str(e),
                    correlation_id=str(correlation_id),
                )
                await self._audit_logger.log(
                    AuditEventBuilder.system_error(
                        error_type=type(e).__name__,
                        error_message=str(e),
                        details={"filename": receipt.filename},
                        correlation_id=correlation_id,
                    )
                )
                outcomes.append(
                    UploadOutcome(success=False, filename=receipt.filename, error=str(e))
                )
                continue

            outcomes.append(
                UploadOutcome(success=True, filename=receipt.filename, transaction=transaction)
            )

        return outcomes


@dataclass
class AppComponents:
    """Everything the HTTP layer needs, wired together."""

    settings: Settings
    storage: FinanceStorageInterface
    chain: ProviderChain
    ingestion: ReceiptIngestionFlow
    assistant: AssistantAgent
    audit_logger: AuditLogger


def create_app_components(
    settings: Optional[Settings] = None,
    storage: Optional[FinanceStorageInterface] = None,
    chain: Optional[ProviderChain] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        settings: Settings to use; defaults to the cached environment settings
        storage: Store to use; defaults to the JSON file from settings
        chain: Provider chain to use; defaults to OpenAI then Gemini

    Returns:
        The wired components
    """
    settings = settings or get_settings()
    app_settings = settings.app
    audit_logger = AuditLogger()

    storage = storage or JsonFileStore(settings.storage.file)
    chain = chain or ProviderChain(
        [
            OpenAIProvider(settings.openai, max_attempts=app_settings.provider_max_attempts),
            GeminiProvider(settings.gemini, max_attempts=app_settings.provider_max_attempts),
        ],
        audit_logger=audit_logger,
    )

    ingestion = ReceiptIngestionFlow(
        storage=storage,
        chain=chain,
        audit_logger=audit_logger,
        max_upload_size_bytes=app_settings.max_upload_size_bytes,
    )
    assistant = AssistantAgent(chain, context_size=app_settings.chat_context_size)

    return AppComponents(
        settings=settings,
        storage=storage,
        chain=chain,
        ingestion=ingestion,
        assistant=assistant,
        audit_logger=audit_logger,
    )
