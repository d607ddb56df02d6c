"""Integration tests for database connection and schema.

Verifies SQLite setup (WAL mode, foreign keys, table creation) and the
transaction helper used for multi-row writes.
"""

import asyncio
import os
import tempfile

import aiosqlite
import pytest

from flowguide.db.connection import Database


INSERT_GUIDE = (
    "INSERT INTO guides (guide_id, title, created_at, updated_at) VALUES (?, ?, ?, ?)"
)


def _guide_row(guide_id: str) -> tuple:
    return (guide_id, "Guide", "2026-01-01T00:00:00+00:00", "2026-01-01T00:00:00+00:00")


async def _insert_guide(conn, guide_id: str) -> None:
    await conn.execute(INSERT_GUIDE, _guide_row(guide_id))


class TestDatabaseConnection:
    async def test_connect_creates_tables(self):
        """Database.connect creates guides, flow_boxes, and steps tables."""
        db = await Database.connect(":memory:")
        try:
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
            )
            table_names = {row["name"] for row in rows}
            assert {"guides", "flow_boxes", "steps"} <= table_names
        finally:
            await db.close()

    async def test_wal_mode_on_file_database(self):
        """File-based database uses WAL journal mode."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "test.db")
            db = await Database.connect(path)
            try:
                row = await db.fetchone("PRAGMA journal_mode")
                assert row is not None
                assert row["journal_mode"] == "wal"
            finally:
                await db.close()

    async def test_foreign_keys_enforced(self):
        db = await Database.connect(":memory:")
        try:
            with pytest.raises(aiosqlite.IntegrityError):
                await db.execute(
                    """
                    INSERT INTO flow_boxes (flow_box_id, guide_id, title, position, created_at)
                    VALUES ('fb-1', 'missing-guide', 'Orphan', 1, '2026-01-01')
                    """
                )
        finally:
            await db.close()

    async def test_schema_idempotent(self):
        """Calling _ensure_schema twice does not error."""
        db = await Database.connect(":memory:")
        try:
            await db._ensure_schema()
            rows = await db.fetchall(
                "SELECT name FROM sqlite_master WHERE type='table'"
            )
            assert len(rows) >= 3
        finally:
            await db.close()


class TestTransaction:
    async def test_commits_on_success(self, db):
        async with db.transaction() as conn:
            await _insert_guide(conn, "g-1")
            await _insert_guide(conn, "g-2")
        rows = await db.fetchall("SELECT guide_id FROM guides ORDER BY guide_id")
        assert [row["guide_id"] for row in rows] == ["g-1", "g-2"]

    async def test_rolls_back_on_error(self, db):
        """Nothing from a failed block is visible afterwards."""
        with pytest.raises(RuntimeError):
            async with db.transaction() as conn:
                await _insert_guide(conn, "g-1")
                raise RuntimeError("boom")
        assert await db.fetchall("SELECT * FROM guides") == []

    async def test_rolls_back_on_constraint_violation(self, db):
        with pytest.raises(aiosqlite.IntegrityError):
            async with db.transaction() as conn:
                await _insert_guide(conn, "g-1")
                await _insert_guide(conn, "g-1")
        assert await db.fetchall("SELECT * FROM guides") == []

    async def test_execute_waits_for_open_transaction(self, db):
        """A write from another coroutine cannot commit half of a transaction."""
        with pytest.raises(RuntimeError):
            async with db.transaction() as conn:
                await _insert_guide(conn, "g-1")
                other = asyncio.create_task(db.execute(INSERT_GUIDE, _guide_row("g-2")))
                await asyncio.sleep(0.01)
                assert not other.done()
                raise RuntimeError("boom")
        await other
        rows = await db.fetchall("SELECT guide_id FROM guides")
        assert [row["guide_id"] for row in rows] == ["g-2"]

    async def test_transactions_run_one_at_a_time(self, db):
        order: list[str] = []

        async def write(name: str) -> None:
            async with db.transaction() as conn:
                order.append(f"{name} start")
                await asyncio.sleep(0.01)
                await _insert_guide(conn, name)
                order.append(f"{name} end")

        await asyncio.gather(write("a"), write("b"))
        assert order == ["a start", "a end", "b start", "b end"]

    async def test_failed_execute_does_not_block_transactions(self, db):
        await db.execute(INSERT_GUIDE, _guide_row("g-1"))
        with pytest.raises(aiosqlite.IntegrityError):
            await db.execute(INSERT_GUIDE, _guide_row("g-1"))
        async with db.transaction() as conn:
            await _insert_guide(conn, "g-2")
        rows = await db.fetchall("SELECT guide_id FROM guides ORDER BY guide_id")
        assert [row["guide_id"] for row in rows] == ["g-1", "g-2"]
