"""
Tests for the flat JSON store.
"""

import json

import pytest

from spendwise.models.transaction import Role, Transaction, User
from spendwise.services.storage import DuplicateError, JsonFileStore, StorageError


def _tx(tx_id: int, item: str = "Cafe", amount: float = 4.5, category: str = "Food") -> Transaction:
    return Transaction(id=tx_id, date="2026-01-15", item=item, amount=amount, category=category)


class TestDocumentHandling:
    """Reading and writing the document."""

    async def test_initialize_creates_empty_document(self, store, db_path):
        await store.initialize()
        assert json.loads(db_path.read_text()) == {"transactions": [], "users": []}

    async def test_initialize_keeps_existing_document(self, store, db_path):
        db_path.write_text(json.dumps({"transactions": [_tx(1).model_dump()], "users": []}))
        await store.initialize()
        assert await store.transaction_count() == 1

    async def test_initialize_creates_parent_directory(self, tmp_path):
        nested = JsonFileStore(tmp_path / "data" / "db.json")
        await nested.initialize()
        assert (tmp_path / "data" / "db.json").exists()

    async def test_missing_file_reads_as_empty(self, store):
        assert await store.list_transactions() == []
        assert await store.list_users() == []

    async def test_document_is_indented(self, store, db_path):
        await store.add_transaction(_tx(1))
        text = db_path.read_text()
        assert text.startswith("{\n  ")

    async def test_legacy_array_is_migrated(self, store, db_path):
        db_path.write_text(json.dumps([_tx(1).model_dump(), _tx(2, item="Taxi").model_dump()]))

        transactions = await store.list_transactions()
        assert [tx.item for tx in transactions] == ["Cafe", "Taxi"]
        assert await store.list_users() == []

        await store.add_transaction(_tx(3, item="Bakery"))
        document = json.loads(db_path.read_text())
        assert isinstance(document, dict)
        assert len(document["transactions"]) == 3

    async def test_corrupt_file_reads_as_empty(self, store, db_path):
        db_path.write_text("{not json")
        assert await store.list_transactions() == []
        assert await store.transaction_count() == 0

    async def test_missing_keys_are_defaulted(self, store, db_path):
        db_path.write_text(json.dumps({"users": []}))
        assert await store.list_transactions() == []

    async def test_invalid_records_raise(self, store, db_path):
        db_path.write_text(json.dumps({"transactions": [{"item": "no id"}], "users": []}))
        with pytest.raises(StorageError):
            await store.list_transactions()

    async def test_write_leaves_no_temp_files(self, store, db_path):
        await store.add_transaction(_tx(1))
        await store.add_transaction(_tx(2))
        assert [p.name for p in db_path.parent.iterdir()] == ["db.json"]

    async def test_failed_write_keeps_previous_document(self, store, db_path, monkeypatch):
        await store.add_transaction(_tx(1, item="Kept"))
        before = db_path.read_text()

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr("spendwise.services.storage.json_store.os.replace", broken_replace)
        with pytest.raises(StorageError):
            await store.add_transaction(_tx(2, item="Lost"))

        assert db_path.read_text() == before
        assert [p.name for p in db_path.parent.iterdir()] == ["db.json"]

    async def test_extra_fields_survive_round_trip(self, store, db_path):
        tx = Transaction.model_validate(
            {"id": 5, "item": "Desk", "amount": 120, "category": "Tech", "note": "home office"}
        )
        await store.add_transaction(tx)
        stored = json.loads(db_path.read_text())["transactions"][0]
        assert stored["note"] == "home office"


class TestTransactions:
    """Transaction operations."""

    async def test_add_transaction_prepends(self, store):
        await store.add_transaction(_tx(1, item="First"))
        await store.add_transaction(_tx(2, item="Second"))
        transactions = await store.list_transactions()
        assert [tx.item for tx in transactions] == ["Second", "First"]

    async def test_clear_transactions_keeps_users(self, store):
        await store.add_user(User(id=1, username="admin", password="hash", role=Role.ADMIN))
        await store.add_transaction(_tx(2))
        await store.add_transaction(_tx(3))

        removed = await store.clear_transactions()

        assert removed == 2
        assert await store.list_transactions() == []
        assert len(await store.list_users()) == 1

    async def test_counts_and_size(self, store, db_path):
        await store.add_transaction(_tx(1))
        assert await store.transaction_count() == 1
        size = await store.document_size()
        compact = json.dumps(json.loads(db_path.read_text()), separators=(",", ":"))
        assert size == len(compact)


class TestUsers:
    """User operations."""

    async def test_add_and_find_user(self, store):
        await store.add_user(User(id=1, username="sam", password="hash"))
        user = await store.get_user_by_username("sam")
        assert user is not None
        assert user.role == Role.VIEWER
        assert await store.get_user_by_username("nobody") is None

    async def test_duplicate_username_rejected(self, store):
        await store.add_user(User(id=1, username="sam", password="hash"))
        with pytest.raises(DuplicateError):
            await store.add_user(User(id=2, username="sam", password="other"))

    async def test_delete_user(self, store):
        await store.add_user(User(id=1, username="sam", password="hash"))
        assert await store.delete_user(1) is True
        assert await store.list_users() == []

    async def test_delete_unknown_user(self, store):
        await store.add_user(User(id=1, username="sam", password="hash"))
        assert await store.delete_user(99) is False
        assert len(await store.list_users()) == 1

    async def test_ensure_default_admin_on_empty_store(self, store):
        admin = await store.ensure_default_admin("admin", "hash")
        assert admin is not None
        assert admin.role == Role.ADMIN
        assert (await store.get_user_by_username("admin")).role == Role.ADMIN

    async def test_ensure_default_admin_is_noop_with_users(self, store):
        await store.add_user(User(id=1, username="sam", password="hash"))
        assert await store.ensure_default_admin("admin", "hash") is None
        assert await store.get_user_by_username("admin") is None


class TestIdentifiers:
    """ID allocation."""

    async def test_next_id_is_unique_across_calls(self, store):
        ids = [await store.next_id() for _ in range(5)]
        assert len(set(ids)) == 5
        assert ids == sorted(ids)

    async def test_next_id_skips_existing_ids(self, store):
        far_future = 10 ** 15
        await store.add_transaction(_tx(far_future))
        assert await store.next_id() == far_future + 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
