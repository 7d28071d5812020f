"""
Tests for the receipt ingestion flow.
"""

import pytest

from spendwise.agents import ProviderChain
from spendwise.models.audit import DESCRIPTION_MAX_LENGTH, AuditEventType
from spendwise.models.transaction import ReceiptClassification
from spendwise.orchestrator import (
    NoFilesError,
    ReceiptIngestionFlow,
    ReceiptTooLargeError,
    UploadedReceipt,
    create_app_components,
)
from spendwise.services.storage import StorageError


def _receipt(name="receipt.png", content=b"fake-image-bytes"):
    return UploadedReceipt(content=content, mime_type="image/png", filename=name)


@pytest.fixture
def flow(store, chain, audit_logger):
    return ReceiptIngestionFlow(
        storage=store,
        chain=chain,
        audit_logger=audit_logger,
        max_upload_size_bytes=1024,
    )


class FailingStore:
    """Wraps a store and fails the first write."""

    def __init__(self, inner):
        self._inner = inner
        self._failed = False

    async def next_id(self):
        return await self._inner.next_id()

    async def add_transaction(self, transaction):
        if not self._failed:
            self._failed = True
            raise StorageError("disk full")
        return await self._inner.add_transaction(transaction)


class TestProcessReceipt:
    """Single receipt."""

    async def test_primary_result_is_stored(self, flow, store, primary):
        transaction = await flow.process_receipt(_receipt())

        assert transaction.item == "Coffee Corner"
        assert transaction.amount == pytest.approx(4.5)
        assert transaction.category == "Food"
        stored = await store.list_transactions()
        assert [tx.id for tx in stored] == [transaction.id]
        assert primary.calls[0] == ("classify_receipt", b"fake-image-bytes", "image/png")

    async def test_placeholder_when_no_provider_answers(self, store, make_provider, audit_logger):
        chain = ProviderChain([
            make_provider("openai", error=RuntimeError("down")),
            make_provider("gemini", error=RuntimeError("down")),
        ])
        flow = ReceiptIngestionFlow(store, chain, audit_logger=audit_logger, max_upload_size_bytes=1024)

        transaction = await flow.process_receipt(_receipt())

        assert transaction.item == "Unrecognized Receipt"
        assert transaction.amount == 0.0
        assert transaction.category == "Other"
        assert len(await store.list_transactions()) == 1
        types = [event.event_type for event in audit_logger.recent_events]
        assert AuditEventType.RECEIPT_UNRECOGNIZED in types

    async def test_oversize_file_is_rejected(self, flow, store, primary):
        with pytest.raises(ReceiptTooLargeError):
            await flow.process_receipt(_receipt(content=b"x" * 2048))
        assert primary.calls == []
        assert await store.list_transactions() == []

    async def test_long_provider_item_is_saved_and_reported(self, store, make_provider, audit_logger):
        verbose = make_provider(
            "openai",
            result=ReceiptClassification(item="Store " * 200, amount=12, category="Food"),
        )
        flow = ReceiptIngestionFlow(
            store, ProviderChain([verbose]), audit_logger=audit_logger, max_upload_size_bytes=1024
        )

        outcomes = await flow.process_batch([_receipt("long.png")])

        assert outcomes[0].success is True
        assert outcomes[0].transaction.item == ("Store " * 200).strip()
        assert len(await store.list_transactions()) == 1
        saved = audit_logger.recent_events[-1]
        assert saved.event_type == AuditEventType.TRANSACTION_SAVED
        assert len(saved.description) <= DESCRIPTION_MAX_LENGTH

    async def test_events_share_correlation_id(self, flow, audit_logger):
        await flow.process_receipt(_receipt(), actor="admin")

        events = audit_logger.recent_events
        correlation_ids = {event.correlation_id for event in events}
        assert len(correlation_ids) == 1
        assert [event.event_type for event in events] == [
            AuditEventType.RECEIPT_UPLOADED,
            AuditEventType.PROVIDER_SUCCEEDED,
            AuditEventType.TRANSACTION_SAVED,
        ]


class TestProcessBatch:
    """Multi-file uploads."""

    async def test_empty_batch(self, flow):
        with pytest.raises(NoFilesError, match="No files uploaded"):
            await flow.process_batch([])

    async def test_batch_processes_files_in_order(self, flow, store):
        outcomes = await flow.process_batch([_receipt("a.png"), _receipt("b.png")])

        assert [o.filename for o in outcomes] == ["a.png", "b.png"]
        assert all(o.success for o in outcomes)
        stored = await store.list_transactions()
        assert len(stored) == 2
        assert stored[0].id == outcomes[1].transaction.id
        assert outcomes[0].transaction.id != outcomes[1].transaction.id

    async def test_failed_file_does_not_stop_batch(self, flow, store):
        outcomes = await flow.process_batch([
            _receipt("huge.png", content=b"x" * 4096),
            _receipt("ok.png"),
        ])

        assert outcomes[0].success is False
        assert "upload limit" in outcomes[0].error
        assert outcomes[1].success is True
        assert len(await store.list_transactions()) == 1

    async def test_storage_failure_is_reported(self, store, chain, audit_logger):
        flow = ReceiptIngestionFlow(
            FailingStore(store), chain, audit_logger=audit_logger, max_upload_size_bytes=1024
        )

        outcomes = await flow.process_batch([_receipt("first.png"), _receipt("second.png")])

        assert outcomes[0].success is False
        assert outcomes[0].error == "disk full"
        assert outcomes[1].success is True
        types = [event.event_type for event in audit_logger.recent_events]
        assert AuditEventType.SYSTEM_ERROR in types


class TestComponents:
    """Component wiring."""

    def test_default_chain_is_openai_then_gemini(self, store):
        components = create_app_components(storage=store)
        assert [p.name for p in components.chain.providers] == ["openai", "gemini"]
        assert components.chain.status() == {"openai": "OFFLINE", "gemini": "OFFLINE"}

    def test_default_store_uses_db_file_setting(self, monkeypatch, tmp_path):
        from spendwise.config import get_settings

        monkeypatch.setenv("DB_FILE", str(tmp_path / "custom.json"))
        get_settings.cache_clear()

        components = create_app_components()

        assert components.storage.path == tmp_path / "custom.json"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
