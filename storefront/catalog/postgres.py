"""
PostgreSQL plan store (asyncpg).

Schema comes from storefront/migrations via database.run_migrations.
"""

from typing import List, Optional

from storefront.catalog.base import (
    BasePlanStore,
    group_features,
    new_id,
    plan_from_row,
    plan_insert_values,
)
from storefront.catalog.models import Plan, PlanCategory, PlanCreate, PlanFeature, PlanUpdate
from storefront.catalog.query import build_update, dollar_placeholder

PLAN_SELECT = """
    SELECT id, category_id, name, description, cpu, ram, storage, bandwidth, os,
           price_pkr, is_active, theme_color, label, created_at, updated_at
    FROM plans
"""

FEATURE_INSERT = """
    INSERT INTO plan_features (id, plan_id, feature, position)
    VALUES ($1, $2, $3, $4)
"""


def affected_rows(result: str) -> int:
    # asyncpg status strings look like "DELETE 3"
    return int(result.split()[-1]) if result else 0


class PostgresPlanStore(BasePlanStore):
    def __init__(self, pool):
        """Takes an existing asyncpg.Pool instance."""
        self._pool = pool

    async def init(self) -> None:
        pass  # Schema handled by migrations

    async def close(self) -> None:
        pass  # Pool lifecycle managed externally

    async def _attach_features(self, conn, rows) -> List[Plan]:
        if not rows:
            return []
        feature_rows = await conn.fetch(
            """
            SELECT id, plan_id, feature, position FROM plan_features
            WHERE plan_id = ANY($1::text[])
            ORDER BY plan_id, position
            """,
            [row["id"] for row in rows],
        )
        grouped = group_features(feature_rows)
        return [plan_from_row(row, grouped.get(row["id"], [])) for row in rows]

    async def _fetch_plans(
        self, category: Optional[PlanCategory], include_inactive: bool
    ) -> List[Plan]:
        where_parts = []
        params = []
        if category is not None:
            params.append(int(category))
            where_parts.append(f"category_id = ${len(params)}")
        if not include_inactive:
            where_parts.append("is_active = true")
        where_clause = " WHERE " + " AND ".join(where_parts) if where_parts else ""

        async with self._pool.acquire() as conn:
            rows = await conn.fetch(f"{PLAN_SELECT}{where_clause} ORDER BY name ASC", *params)
            return await self._attach_features(conn, rows)

    async def _fetch_plan(self, plan_id: str) -> Optional[Plan]:
        async with self._pool.acquire() as conn:
            row = await conn.fetchrow(f"{PLAN_SELECT} WHERE id = $1", plan_id)
            if row is None:
                return None
            plans = await self._attach_features(conn, [row])
            return plans[0]

    async def _insert_features(self, conn, plan_id: str, features: List[str]) -> None:
        if features:
            await conn.executemany(
                FEATURE_INSERT,
                [(new_id(), plan_id, feature, position) for position, feature in enumerate(features)],
            )

    async def _insert_plan(self, plan_id: str, data: PlanCreate) -> None:
        values = plan_insert_values(plan_id, data)
        columns = ", ".join(values)
        markers = ", ".join(f"${i}" for i in range(1, len(values) + 1))

        async with self._pool.acquire() as conn:
            async with conn.transaction():
                await conn.execute(
                    f"INSERT INTO plans ({columns}) VALUES ({markers})",
                    *values.values(),
                )
                await self._insert_features(conn, plan_id, data.features)

    async def _update_plan(self, plan_id: str, changes: PlanUpdate) -> bool:
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                exists = await conn.fetchval(
                    "SELECT 1 FROM plans WHERE id = $1 FOR UPDATE", plan_id
                )
                if not exists:
                    return False

                sql, params = build_update(
                    "plans", changes.column_changes(), {"id": plan_id}, dollar_placeholder
                )
                await conn.execute(sql, *params)

                if changes.replaces_features:
                    await conn.execute("DELETE FROM plan_features WHERE plan_id = $1", plan_id)
                    await self._insert_features(conn, plan_id, changes.features)
        return True

    async def _delete_plan(self, plan_id: str) -> bool:
        result = await self._pool.execute("DELETE FROM plans WHERE id = $1", plan_id)
        return affected_rows(result) > 0

    async def _add_feature(self, plan_id: str, feature: str) -> PlanFeature:
        row = await self._pool.fetchrow(
            """
            INSERT INTO plan_features (id, plan_id, feature, position)
            SELECT $1::text, $2::text, $3::text, COALESCE(MAX(position) + 1, 0)
            FROM plan_features WHERE plan_id = $2
            RETURNING id, plan_id, feature, position
            """,
            new_id(), plan_id, feature,
        )
        return PlanFeature(**dict(row))

    async def _remove_feature(self, plan_id: str, feature: str) -> int:
        result = await self._pool.execute(
            "DELETE FROM plan_features WHERE plan_id = $1 AND feature = $2",
            plan_id, feature,
        )
        return affected_rows(result)

    async def _clear_features(self, plan_id: str) -> int:
        result = await self._pool.execute(
            "DELETE FROM plan_features WHERE plan_id = $1", plan_id
        )
        return affected_rows(result)
