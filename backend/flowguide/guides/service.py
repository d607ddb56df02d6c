"""Guide service: storage for guides, flow boxes, and steps.

Also the persistence side of imports: materialize() writes a whole draft
tree in one transaction.
"""

import logging
from datetime import UTC, datetime
from uuid import uuid4

import aiosqlite

from flowguide.db.connection import Database
from flowguide.guides.schemas import (
    CreateGuideRequest,
    FlowBoxResponse,
    GuideDetailResponse,
    GuideSummary,
    StepResponse,
)
from flowguide.importer.assembler import assign_positions
from flowguide.importer.models import FlowBoxDraft

logger = logging.getLogger(__name__)


class GuideNotFoundError(Exception):
    def __init__(self, guide_id: str) -> None:
        self.guide_id = guide_id
        super().__init__(f"Guide not found: {guide_id}")


class FlowBoxNotFoundError(Exception):
    def __init__(self, flow_box_id: str) -> None:
        self.flow_box_id = flow_box_id
        super().__init__(f"Flow box not found: {flow_box_id}")


def _now() -> str:
    return datetime.now(UTC).isoformat()


class GuideService:
    """CRUD over the guide content tree."""

    def __init__(self, db: Database) -> None:
        self._db = db

    # ------------------------------------------------------------------
    # Guides
    # ------------------------------------------------------------------

    async def create_guide(self, request: CreateGuideRequest) -> GuideDetailResponse:
        guide_id = str(uuid4())
        now = _now()
        await self._db.execute(
            """
            INSERT INTO guides (guide_id, title, description, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?)
            """,
            (guide_id, request.title, request.description, now, now),
        )
        guide = await self.get_guide(guide_id)
        assert guide is not None
        return guide

    async def list_guides(self) -> list[GuideSummary]:
        rows = await self._db.fetchall(
            """
            SELECT g.*, COUNT(fb.flow_box_id) AS flow_box_count
            FROM guides g
            LEFT JOIN flow_boxes fb ON fb.guide_id = g.guide_id
            GROUP BY g.guide_id
            ORDER BY g.created_at DESC
            """
        )
        return [
            GuideSummary(
                guide_id=row["guide_id"],
                title=row["title"],
                description=row["description"],
                flow_box_count=row["flow_box_count"],
                created_at=row["created_at"],
                updated_at=row["updated_at"],
            )
            for row in rows
        ]

    async def guide_exists(self, guide_id: str) -> bool:
        row = await self._db.fetchone(
            "SELECT 1 FROM guides WHERE guide_id = ?", (guide_id,)
        )
        return row is not None

    async def get_guide(self, guide_id: str) -> GuideDetailResponse | None:
        """Guide with its flow boxes and their steps, all in position order."""
        row = await self._db.fetchone(
            "SELECT * FROM guides WHERE guide_id = ?", (guide_id,)
        )
        if row is None:
            return None

        flow_boxes = await self.list_flow_boxes(guide_id)
        step_rows = await self._db.fetchall(
            """
            SELECT s.* FROM steps s
            JOIN flow_boxes fb ON fb.flow_box_id = s.flow_box_id
            WHERE fb.guide_id = ?
            ORDER BY s.position, s.created_at
            """,
            (guide_id,),
        )
        by_flow_box = {fb.flow_box_id: fb for fb in flow_boxes}
        for step_row in step_rows:
            by_flow_box[step_row["flow_box_id"]].steps.append(
                self._step_from_row(step_row)
            )

        return GuideDetailResponse(
            guide_id=row["guide_id"],
            title=row["title"],
            description=row["description"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
            flow_boxes=flow_boxes,
        )

    # ------------------------------------------------------------------
    # Flow boxes and steps
    # ------------------------------------------------------------------

    async def list_flow_boxes(self, guide_id: str) -> list[FlowBoxResponse]:
        rows = await self._db.fetchall(
            """
            SELECT * FROM flow_boxes WHERE guide_id = ?
            ORDER BY position, created_at
            """,
            (guide_id,),
        )
        return [self._flow_box_from_row(row) for row in rows]

    async def list_steps(self, flow_box_id: str) -> list[StepResponse]:
        rows = await self._db.fetchall(
            """
            SELECT * FROM steps WHERE flow_box_id = ?
            ORDER BY position, created_at
            """,
            (flow_box_id,),
        )
        return [self._step_from_row(row) for row in rows]

    async def get_flow_box(self, flow_box_id: str) -> FlowBoxResponse | None:
        row = await self._db.fetchone(
            "SELECT * FROM flow_boxes WHERE flow_box_id = ?", (flow_box_id,)
        )
        return self._flow_box_from_row(row) if row is not None else None

    async def next_flow_box_position(self, guide_id: str) -> int:
        """One past the highest flow box position in the guide (1 if empty)."""
        row = await self._db.fetchone(
            "SELECT MAX(position) AS max_position FROM flow_boxes WHERE guide_id = ?",
            (guide_id,),
        )
        return (row["max_position"] or 0) + 1 if row is not None else 1

    async def create_flow_box(
        self,
        guide_id: str,
        title: str,
        description: str | None,
        position: int | None = None,
    ) -> str:
        """Insert one flow box and return its id.

        Without a position the flow box goes after the last one in the guide.
        """
        if not await self.guide_exists(guide_id):
            raise GuideNotFoundError(guide_id)
        async with self._db.transaction() as conn:
            if position is None:
                position = await self._max_position(
                    conn, "flow_boxes", "guide_id", guide_id
                ) + 1
            flow_box_id = await self._insert_flow_box(
                conn, guide_id, title, description, position
            )
            await self._touch_guide(conn, guide_id)
        return flow_box_id

    async def create_step(
        self,
        flow_box_id: str,
        title: str,
        content: str,
        position: int | None = None,
    ) -> str:
        """Insert one step and return its id. Appends when position is None."""
        flow_box = await self.get_flow_box(flow_box_id)
        if flow_box is None:
            raise FlowBoxNotFoundError(flow_box_id)
        async with self._db.transaction() as conn:
            if position is None:
                position = await self._max_position(
                    conn, "steps", "flow_box_id", flow_box_id
                ) + 1
            step_id = await self._insert_step(conn, flow_box_id, title, content, position)
            await self._touch_guide(conn, flow_box.guide_id)
        return step_id

    async def materialize(
        self, guide_id: str, flow_boxes: list[FlowBoxDraft]
    ) -> list[str]:
        """Write drafts into the guide atomically, after its existing flow boxes.

        Positions are assigned inside the write transaction, so concurrent
        imports into one guide never share a position. If any insert fails,
        nothing is written. Returns the new flow box ids in order.
        """
        if not await self.guide_exists(guide_id):
            raise GuideNotFoundError(guide_id)

        flow_box_ids: list[str] = []
        async with self._db.transaction() as conn:
            base_position = await self._max_position(
                conn, "flow_boxes", "guide_id", guide_id
            ) + 1
            for draft in assign_positions(flow_boxes, base_position):
                flow_box_id = await self._insert_flow_box(
                    conn,
                    guide_id,
                    draft.title,
                    draft.description or None,
                    draft.source_position,
                )
                flow_box_ids.append(flow_box_id)
                for step in draft.steps:
                    await self._insert_step(
                        conn, flow_box_id, step.title, step.content, step.source_position
                    )
            await self._touch_guide(conn, guide_id)

        logger.info(
            "Materialized %d flow boxes into guide %s", len(flow_box_ids), guide_id
        )
        return flow_box_ids

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    @staticmethod
    async def _insert_flow_box(
        conn: aiosqlite.Connection,
        guide_id: str,
        title: str,
        description: str | None,
        position: int,
    ) -> str:
        flow_box_id = str(uuid4())
        await conn.execute(
            """
            INSERT INTO flow_boxes
                (flow_box_id, guide_id, title, description, position, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (flow_box_id, guide_id, title, description, position, _now()),
        )
        return flow_box_id

    @staticmethod
    async def _insert_step(
        conn: aiosqlite.Connection,
        flow_box_id: str,
        title: str,
        content: str,
        position: int,
    ) -> str:
        step_id = str(uuid4())
        await conn.execute(
            """
            INSERT INTO steps
                (step_id, flow_box_id, title, content, position, created_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (step_id, flow_box_id, title, content, position, _now()),
        )
        return step_id

    @staticmethod
    async def _max_position(
        conn: aiosqlite.Connection, table: str, parent_column: str, parent_id: str
    ) -> int:
        """Highest sibling position under one parent, 0 when there are none."""
        cursor = await conn.execute(
            f"SELECT COALESCE(MAX(position), 0) FROM {table} WHERE {parent_column} = ?",
            (parent_id,),
        )
        row = await cursor.fetchone()
        return row[0]

    @staticmethod
    async def _touch_guide(conn: aiosqlite.Connection, guide_id: str) -> None:
        await conn.execute(
            "UPDATE guides SET updated_at = ? WHERE guide_id = ?",
            (_now(), guide_id),
        )

    @staticmethod
    def _flow_box_from_row(row: aiosqlite.Row) -> FlowBoxResponse:
        return FlowBoxResponse(
            flow_box_id=row["flow_box_id"],
            guide_id=row["guide_id"],
            title=row["title"],
            description=row["description"],
            position=row["position"],
            is_visible=bool(row["is_visible"]),
            created_at=row["created_at"],
        )

    @staticmethod
    def _step_from_row(row: aiosqlite.Row) -> StepResponse:
        return StepResponse(
            step_id=row["step_id"],
            flow_box_id=row["flow_box_id"],
            title=row["title"],
            content=row["content"],
            position=row["position"],
            is_visible=bool(row["is_visible"]),
            created_at=row["created_at"],
        )
