import tempfile
from pathlib import Path

import pytest

from aura_core.domain.exceptions import StorageError, ValidationError
from aura_core.infrastructure.storage.history_store import JsonHistoryStore


def test_insert_and_query_latest_in_order():
    with tempfile.TemporaryDirectory() as d:
        store = JsonHistoryStore(root=Path(d) / ".storage")
        for i in range(5):
            store.insert("user" if i % 2 == 0 else "assistant", f"m{i}")

        records = store.query(3)
        assert [r.content for r in records] == ["m2", "m3", "m4"]
        assert records[0].created_at <= records[-1].created_at
        assert len({r.id for r in store.query(50)}) == 5


def test_query_on_empty_store():
    with tempfile.TemporaryDirectory() as d:
        store = JsonHistoryStore(root=d)
        assert store.query() == []
        assert store.query(0) == []


def test_corrupt_lines_are_skipped():
    with tempfile.TemporaryDirectory() as d:
        store = JsonHistoryStore(root=d)
        store.insert("user", "first")
        with store.path.open("a", encoding="utf-8") as f:
            f.write("{not json\n")
            f.write('{"id": "x"}\n')
        store.insert("assistant", "second")
        assert [r.content for r in store.query()] == ["first", "second"]


def test_insert_rejects_unknown_role():
    with tempfile.TemporaryDirectory() as d:
        store = JsonHistoryStore(root=d)
        with pytest.raises(ValidationError):
            store.insert("robot", "beep")  # type: ignore[arg-type]


def test_io_failures_raise_storage_error():
    with tempfile.TemporaryDirectory() as d:
        store = JsonHistoryStore(root=d)
        store.path.mkdir()
        with pytest.raises(StorageError) as write_err:
            store.insert("user", "hi")
        assert write_err.value.code == "STORE_WRITE_ERROR"
        with pytest.raises(StorageError) as read_err:
            store.query()
        assert read_err.value.code == "STORE_READ_ERROR"
