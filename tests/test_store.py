"""Tests for the config store, labor rate group book and pending job cache."""

import pytest
from pydantic import ValidationError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

import helper_api.models  # noqa: F401 - registers config_entry
from helper_api.store import SqlConfigStore
from helper_engine.config.settings import LABOR_RATE_GROUPS_KEY
from helper_engine.src.models import LaborRateGroup
from helper_engine.src.pending_jobs import PendingJobCache
from helper_engine.src.store import LaborRateGroupBook, MemoryConfigStore, load_groups


@pytest.fixture
def sql_store():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    return SqlConfigStore(engine)


class TestSqlConfigStore:
    def test_get_default(self, sql_store):
        assert sql_store.get("missing", []) == []

    def test_set_and_overwrite(self, sql_store):
        sql_store.set("laborRateGroups", [{"name": "A", "makes": ["Honda"], "laborRate": 100}])
        sql_store.set("laborRateGroups", [{"name": "B", "makes": ["Ford"], "laborRate": 200}])
        assert sql_store.get("laborRateGroups") == [{"name": "B", "makes": ["Ford"], "laborRate": 200}]

    def test_delete(self, sql_store):
        sql_store.set("k", {"a": 1})
        sql_store.delete("k")
        sql_store.delete("k")
        assert sql_store.get("k") is None


class TestLaborRateGroupBook:
    def test_load_groups_reads_wire_format(self, store):
        groups = load_groups(store)
        assert groups[0].labor_rate == 16000
        assert groups[0].covers("honda")

    def test_add_replace_remove(self):
        store = MemoryConfigStore()
        book = LaborRateGroupBook(store)
        index = book.add(LaborRateGroup(name="Domestic", makes=["Ford"], labor_rate=14500))
        assert index == 0
        book.replace(0, LaborRateGroup(name="Domestic", makes=["Ford", "GMC"], labor_rate=15000))
        assert store.get(LABOR_RATE_GROUPS_KEY) == [
            {"name": "Domestic", "makes": ["Ford", "GMC"], "laborRate": 15000}
        ]
        removed = book.remove(0)
        assert removed.name == "Domestic"
        assert book.all() == []

    def test_out_of_range(self, store):
        with pytest.raises(IndexError):
            LaborRateGroupBook(store).remove(5)

    def test_group_requires_makes(self):
        with pytest.raises(ValidationError):
            LaborRateGroup(name="Empty", makes=[], labor_rate=100)

    def test_book_over_sql_store(self, sql_store):
        book = LaborRateGroupBook(sql_store)
        book.add(LaborRateGroup(name="European", makes=["BMW"], labor_rate=18500))
        assert [g.name for g in LaborRateGroupBook(sql_store).all()] == ["European"]


class TestPendingJobCache:
    def test_store_get_clear(self):
        cache = PendingJobCache(MemoryConfigStore())
        assert cache.get() == (None, None)

        timestamp = cache.store_job({"jobName": "Front brakes"})
        job, stored_at = cache.get()
        assert job == {"jobName": "Front brakes"}
        assert stored_at == timestamp

        cache.clear()
        assert cache.get() == (None, stored_at)

    def test_last_write_wins(self):
        cache = PendingJobCache(MemoryConfigStore())
        cache.store_job({"jobName": "first"})
        cache.store_job({"jobName": "second"})
        assert cache.get()[0] == {"jobName": "second"}
