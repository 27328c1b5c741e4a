"""
Plan Store Interface
====================

Shared contract for plan catalog backends.

Public read methods log store failures and degrade to an empty list or
None; public write methods log and re-raise. Backends implement the
underscore-prefixed primitives.
"""

import logging
import uuid
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from storefront.catalog.models import Plan, PlanCategory, PlanCreate, PlanFeature, PlanUpdate

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


def as_datetime(value: Any) -> Optional[datetime]:
    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def plan_from_row(row: Mapping[str, Any], features: List[PlanFeature]) -> Plan:
    """Build a Plan from a plans row (asyncpg Record or sqlite Row)."""
    return Plan(
        id=row["id"],
        category=PlanCategory(int(row["category_id"])),
        name=row["name"],
        description=row["description"],
        cpu=row["cpu"],
        ram=row["ram"],
        storage=row["storage"],
        bandwidth=row["bandwidth"],
        os=row["os"],
        price=float(row["price_pkr"]),
        is_active=bool(row["is_active"]),
        theme_color=row["theme_color"],
        label=row["label"],
        features=features,
        created_at=as_datetime(row["created_at"]),
        updated_at=as_datetime(row["updated_at"]),
    )


def group_features(rows: List[Mapping[str, Any]]) -> Dict[str, List[PlanFeature]]:
    """plan_id -> features, keeping the row order (already sorted by position)."""
    grouped: Dict[str, List[PlanFeature]] = {}
    for row in rows:
        grouped.setdefault(row["plan_id"], []).append(PlanFeature(
            id=row["id"],
            plan_id=row["plan_id"],
            feature=row["feature"],
            position=row["position"],
        ))
    return grouped


def plan_insert_values(plan_id: str, data: PlanCreate) -> Dict[str, Any]:
    """Column -> value mapping for a new plans row."""
    return {
        "id": plan_id,
        "category_id": int(data.category),
        "name": data.name,
        "description": data.description,
        "cpu": data.cpu,
        "ram": data.ram,
        "storage": data.storage,
        "bandwidth": data.bandwidth,
        "os": data.os,
        "price_pkr": data.price,
        "is_active": data.is_active,
        "theme_color": data.theme_color,
        "label": data.label,
    }


class BasePlanStore(ABC):

    @abstractmethod
    async def init(self) -> None:
        """Initialize storage (create tables, etc.)."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close storage connections."""
        ...

    # =========================================
    # READS (failures are masked)
    # =========================================

    async def get_all_plans(self, include_inactive: bool = False) -> List[Plan]:
        try:
            return await self._fetch_plans(None, include_inactive)
        except Exception:
            logger.exception("Failed to fetch plans")
            return []

    async def get_plans_by_category(
        self, category: PlanCategory, include_inactive: bool = False
    ) -> List[Plan]:
        try:
            return await self._fetch_plans(PlanCategory(category), include_inactive)
        except Exception:
            logger.exception("Failed to fetch plans for category %s", category)
            return []

    async def get_plan_by_id(self, plan_id: str) -> Optional[Plan]:
        try:
            return await self._fetch_plan(plan_id)
        except Exception:
            logger.exception("Failed to fetch plan", extra={"plan_id": plan_id})
            return None

    # =========================================
    # WRITES (failures propagate)
    # =========================================

    async def create_plan(self, data: PlanCreate) -> Plan:
        plan_id = data.id or new_id()
        try:
            await self._insert_plan(plan_id, data)
        except Exception:
            logger.exception("Failed to create plan", extra={"plan_id": plan_id})
            raise

        plan = await self._fetch_plan(plan_id)
        logger.info(f"Created plan {plan_id} ({data.name})", extra={"plan_id": plan_id})
        return plan

    async def update_plan(self, plan_id: str, changes: PlanUpdate) -> Optional[Plan]:
        try:
            found = await self._update_plan(plan_id, changes)
        except Exception:
            logger.exception("Failed to update plan", extra={"plan_id": plan_id})
            raise

        if not found:
            logger.info(f"Plan {plan_id} not found for update", extra={"plan_id": plan_id})
            return None
        return await self._fetch_plan(plan_id)

    async def delete_plan(self, plan_id: str) -> bool:
        try:
            deleted = await self._delete_plan(plan_id)
        except Exception:
            logger.exception("Failed to delete plan", extra={"plan_id": plan_id})
            raise
        if deleted:
            logger.info(f"Deleted plan {plan_id}", extra={"plan_id": plan_id})
        return deleted

    async def add_plan_feature(self, plan_id: str, feature: str) -> PlanFeature:
        try:
            return await self._add_feature(plan_id, feature)
        except Exception:
            logger.exception("Failed to add feature", extra={"plan_id": plan_id})
            raise

    async def remove_plan_feature(self, plan_id: str, feature: str) -> int:
        try:
            return await self._remove_feature(plan_id, feature)
        except Exception:
            logger.exception("Failed to remove feature", extra={"plan_id": plan_id})
            raise

    async def clear_plan_features(self, plan_id: str) -> int:
        try:
            return await self._clear_features(plan_id)
        except Exception:
            logger.exception("Failed to clear features", extra={"plan_id": plan_id})
            raise

    # =========================================
    # BACKEND PRIMITIVES
    # =========================================

    @abstractmethod
    async def _fetch_plans(
        self, category: Optional[PlanCategory], include_inactive: bool
    ) -> List[Plan]:
        """Plans ordered by name, features attached in insertion order."""
        ...

    @abstractmethod
    async def _fetch_plan(self, plan_id: str) -> Optional[Plan]:
        ...

    @abstractmethod
    async def _insert_plan(self, plan_id: str, data: PlanCreate) -> None:
        """Insert the plan row and its features atomically."""
        ...

    @abstractmethod
    async def _update_plan(self, plan_id: str, changes: PlanUpdate) -> bool:
        """Apply changes atomically; False when the plan does not exist."""
        ...

    @abstractmethod
    async def _delete_plan(self, plan_id: str) -> bool:
        ...

    @abstractmethod
    async def _add_feature(self, plan_id: str, feature: str) -> PlanFeature:
        ...

    @abstractmethod
    async def _remove_feature(self, plan_id: str, feature: str) -> int:
        ...

    @abstractmethod
    async def _clear_features(self, plan_id: str) -> int:
        ...
