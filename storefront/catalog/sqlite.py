"""
SQLite plan store (aiosqlite).

Used for local development and the test suite. Reads and writes are
serialized on a single connection; writes run in explicit BEGIN/COMMIT
blocks.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import List, Optional, Union

import aiosqlite

from storefront.catalog.base import (
    BasePlanStore,
    group_features,
    new_id,
    plan_from_row,
    plan_insert_values,
)
from storefront.catalog.models import Plan, PlanCategory, PlanCreate, PlanFeature, PlanUpdate
from storefront.catalog.query import build_update, qmark_placeholder

CREATE_TABLES = """
CREATE TABLE IF NOT EXISTS plans (
    id TEXT PRIMARY KEY,
    category_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    description TEXT,
    cpu TEXT NOT NULL,
    ram TEXT NOT NULL,
    storage TEXT NOT NULL,
    bandwidth TEXT NOT NULL,
    os TEXT,
    price_pkr REAL NOT NULL CHECK (price_pkr > 0),
    is_active INTEGER NOT NULL DEFAULT 1,
    theme_color TEXT DEFAULT 'sky',
    label TEXT,
    created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP,
    updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
);
CREATE INDEX IF NOT EXISTS idx_plans_category ON plans (category_id);

CREATE TABLE IF NOT EXISTS plan_features (
    id TEXT PRIMARY KEY,
    plan_id TEXT NOT NULL REFERENCES plans(id) ON DELETE CASCADE,
    feature TEXT NOT NULL,
    position INTEGER NOT NULL DEFAULT 0
);
CREATE INDEX IF NOT EXISTS idx_plan_features_plan ON plan_features (plan_id, position);
"""

PLAN_SELECT = """
    SELECT id, category_id, name, description, cpu, ram, storage, bandwidth, os,
           price_pkr, is_active, theme_color, label, created_at, updated_at
    FROM plans
"""

FEATURE_INSERT = """
    INSERT INTO plan_features (id, plan_id, feature, position)
    VALUES (?, ?, ?, ?)
"""


class SQLitePlanStore(BasePlanStore):
    def __init__(self, db_path: Union[str, Path]):
        self.db_path = str(db_path)
        self._db: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        # Autocommit mode; transactions are opened explicitly in _transaction()
        self._db = await aiosqlite.connect(self.db_path, isolation_level=None)
        self._db.row_factory = aiosqlite.Row
        await self._db.execute("PRAGMA foreign_keys = ON")
        await self._db.executescript(CREATE_TABLES)

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _conn(self) -> aiosqlite.Connection:
        if not self._db:
            await self.init()
        return self._db

    @asynccontextmanager
    async def _transaction(self):
        db = await self._conn()
        async with self._lock:
            await db.execute("BEGIN")
            try:
                yield db
            except BaseException:
                await db.execute("ROLLBACK")
                raise
            else:
                await db.execute("COMMIT")

    async def _attach_features(self, db: aiosqlite.Connection, rows) -> List[Plan]:
        if not rows:
            return []
        ids = [row["id"] for row in rows]
        markers = ", ".join("?" for _ in ids)
        async with db.execute(
            f"""
            SELECT id, plan_id, feature, position FROM plan_features
            WHERE plan_id IN ({markers})
            ORDER BY plan_id, position
            """,
            ids,
        ) as cursor:
            feature_rows = await cursor.fetchall()
        grouped = group_features(feature_rows)
        return [plan_from_row(row, grouped.get(row["id"], [])) for row in rows]

    async def _fetch_plans(
        self, category: Optional[PlanCategory], include_inactive: bool
    ) -> List[Plan]:
        where_parts = []
        params = []
        if category is not None:
            where_parts.append("category_id = ?")
            params.append(int(category))
        if not include_inactive:
            where_parts.append("is_active = 1")
        where_clause = " WHERE " + " AND ".join(where_parts) if where_parts else ""

        db = await self._conn()
        # Plan rows and their features are read as one snapshot
        async with self._lock:
            async with db.execute(f"{PLAN_SELECT}{where_clause} ORDER BY name ASC", params) as cursor:
                rows = await cursor.fetchall()
            return await self._attach_features(db, rows)

    async def _fetch_plan(self, plan_id: str) -> Optional[Plan]:
        db = await self._conn()
        async with self._lock:
            async with db.execute(f"{PLAN_SELECT} WHERE id = ?", (plan_id,)) as cursor:
                row = await cursor.fetchone()
            if row is None:
                return None
            plans = await self._attach_features(db, [row])
            return plans[0]

    async def _insert_features(self, db: aiosqlite.Connection, plan_id: str, features: List[str]) -> None:
        if features:
            await db.executemany(
                FEATURE_INSERT,
                [(new_id(), plan_id, feature, position) for position, feature in enumerate(features)],
            )

    async def _insert_plan(self, plan_id: str, data: PlanCreate) -> None:
        values = plan_insert_values(plan_id, data)
        columns = ", ".join(values)
        markers = ", ".join("?" for _ in values)

        async with self._transaction() as db:
            await db.execute(
                f"INSERT INTO plans ({columns}) VALUES ({markers})",
                list(values.values()),
            )
            await self._insert_features(db, plan_id, data.features)

    async def _update_plan(self, plan_id: str, changes: PlanUpdate) -> bool:
        async with self._transaction() as db:
            async with db.execute("SELECT 1 FROM plans WHERE id = ?", (plan_id,)) as cursor:
                if await cursor.fetchone() is None:
                    return False

            sql, params = build_update(
                "plans", changes.column_changes(), {"id": plan_id}, qmark_placeholder
            )
            await db.execute(sql, params)

            if changes.replaces_features:
                await db.execute("DELETE FROM plan_features WHERE plan_id = ?", (plan_id,))
                await self._insert_features(db, plan_id, changes.features)
        return True

    async def _delete_plan(self, plan_id: str) -> bool:
        async with self._transaction() as db:
            cursor = await db.execute("DELETE FROM plans WHERE id = ?", (plan_id,))
            return cursor.rowcount > 0

    async def _add_feature(self, plan_id: str, feature: str) -> PlanFeature:
        feature_id = new_id()
        async with self._transaction() as db:
            async with db.execute(
                "SELECT COALESCE(MAX(position) + 1, 0) FROM plan_features WHERE plan_id = ?",
                (plan_id,),
            ) as cursor:
                (position,) = await cursor.fetchone()
            await db.execute(FEATURE_INSERT, (feature_id, plan_id, feature, position))
        return PlanFeature(id=feature_id, plan_id=plan_id, feature=feature, position=position)

    async def _remove_feature(self, plan_id: str, feature: str) -> int:
        async with self._transaction() as db:
            cursor = await db.execute(
                "DELETE FROM plan_features WHERE plan_id = ? AND feature = ?",
                (plan_id, feature),
            )
            return cursor.rowcount

    async def _clear_features(self, plan_id: str) -> int:
        async with self._transaction() as db:
            cursor = await db.execute(
                "DELETE FROM plan_features WHERE plan_id = ?", (plan_id,)
            )
            return cursor.rowcount
