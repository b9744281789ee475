"""
Integration tests for MemoryDatabase against a real SQLite file in a temp directory
"""
import sqlite3
import threading

import pytest

from memory_database import MemoryDatabase, MemorySlot


def insert_top(db, value):
    db.increment_order_for_all()
    slot = MemorySlot(value=value, order=0)
    db.insert(slot)
    return slot


def test_database_is_created_lazily(tmp_path):
    path = tmp_path / "nested" / "memory.db"
    db = MemoryDatabase(str(path))
    assert not path.exists()

    assert db.get_all() == []
    assert path.exists()
    db.close()


def test_insert_and_get_by_id(db):
    slot = MemorySlot(value=123)

    assert db.insert(slot) == 1
    assert slot.id is not None

    loaded = db.get_by_id(slot.id)
    assert loaded.id == slot.id
    assert loaded.value == 123
    assert loaded.order == 0
    assert loaded.created_at == slot.created_at


def test_get_by_id_missing(db):
    assert db.get_by_id(999) is None


def test_top_insert_keeps_newest_first(db):
    insert_top(db, 1)
    insert_top(db, 2)

    slots = db.get_all()
    assert [s.value for s in slots] == [2, 1]
    assert [s.order for s in slots] == [0, 1]


def test_increment_order_for_all(db):
    insert_top(db, 1)
    insert_top(db, 2)

    assert db.increment_order_for_all() == 2
    slots = db.get_all()
    assert [s.order for s in slots] == [1, 2]
    assert [s.value for s in slots] == [2, 1]


def test_update_persists_changes(db):
    slot = MemorySlot(value=1)
    db.insert(slot)

    slot.value = 42
    assert db.update(slot) == 1
    assert db.get_by_id(slot.id).value == 42


def test_delete_removes_row(db):
    slot = MemorySlot(value=1)
    db.insert(slot)

    assert db.delete(slot) == 1
    assert db.get_by_id(slot.id) is None
    assert db.get_all() == []
    assert db.delete(slot) == 0


def test_delete_all(db):
    insert_top(db, 1)
    insert_top(db, 2)

    assert db.delete_all() == 2
    assert db.get_all() == []


def test_values_survive_reopen(tmp_path):
    path = str(tmp_path / "memory.db")
    db = MemoryDatabase(path)
    insert_top(db, 7.5)
    db.close()

    reopened = MemoryDatabase(path)
    assert [s.value for s in reopened.get_all()] == [7.5]
    reopened.close()


def test_storage_errors_propagate_and_release_lock(db):
    db.insert(MemorySlot(value=1))
    db._get_connection_locked().execute('DROP TABLE memory_items')

    with pytest.raises(sqlite3.OperationalError):
        db.get_all()
    # the lock was released, so the next call is not blocked
    assert db._lock.acquire(timeout=1)
    db._lock.release()


def test_concurrent_increments_are_serialized(db):
    slot = MemorySlot(value=1)
    db.insert(slot)

    threads = [threading.Thread(target=db.increment_order_for_all) for _ in range(20)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert db.get_by_id(slot.id).order == 20


def test_failed_schema_creation_closes_connection(tmp_path, monkeypatch):
    path = tmp_path / "corrupt.db"
    path.write_bytes(b"this is not an sqlite database" * 100)

    opened = []
    real_connect = sqlite3.connect

    def tracking_connect(*args, **kwargs):
        connection = real_connect(*args, **kwargs)
        opened.append(connection)
        return connection

    monkeypatch.setattr(sqlite3, "connect", tracking_connect)
    db = MemoryDatabase(str(path))

    with pytest.raises(sqlite3.DatabaseError):
        db.get_all()

    assert db._connection is None
    assert len(opened) == 1
    with pytest.raises(sqlite3.ProgrammingError):
        opened[0].execute("SELECT 1")
