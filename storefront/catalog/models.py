"""
Plan Catalog Models
===================

Domain records for hosting plans and their features, plus the typed
create/update payloads accepted by the plan stores.
"""

from datetime import datetime, timezone
from enum import IntEnum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class PlanCategory(IntEnum):
    """Plan categories, stored as plans.category_id."""
    RDP = 1
    VPS = 2

    @property
    def slug(self) -> str:
        return self.name.lower()

    @property
    def default_os(self) -> str:
        return "Windows Server 2022" if self is PlanCategory.RDP else "Windows 10"

    @property
    def default_location(self) -> str:
        return "US East" if self is PlanCategory.RDP else "EU Central"

    @classmethod
    def from_slug(cls, slug: str) -> "PlanCategory":
        try:
            return cls[slug.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown plan category: {slug}")


POPULAR_LABEL = "popular"
DEFAULT_THEME_COLOR = "sky"

# Columns that cannot be cleared; an explicit None in an update means "leave as is".
REQUIRED_FIELDS = frozenset(
    {"category", "name", "cpu", "ram", "storage", "bandwidth", "price", "is_active"}
)


@dataclass
class PlanFeature:
    id: str
    plan_id: str
    feature: str
    position: int = 0


@dataclass
class Plan:
    """A purchasable hosting configuration with its ordered features."""
    id: str
    category: PlanCategory
    name: str
    cpu: str
    ram: str
    storage: str
    bandwidth: str
    price: float
    is_active: bool = True
    description: Optional[str] = None
    os: Optional[str] = None
    theme_color: Optional[str] = DEFAULT_THEME_COLOR
    label: Optional[str] = None
    features: List[PlanFeature] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def feature_names(self) -> List[str]:
        return [f.feature for f in self.features]

    @property
    def is_popular(self) -> bool:
        return self.label == POPULAR_LABEL

    @property
    def display_os(self) -> str:
        return self.os or self.category.default_os

    def to_public_dict(self) -> Dict[str, Any]:
        """Shape served to the order page."""
        return {
            "id": self.id,
            "name": self.name,
            "type": self.category.slug,
            "cpu": self.cpu,
            "ram": self.ram,
            "storage": self.storage,
            "bandwidth": self.bandwidth,
            "os": self.display_os,
            "price": self.price,
            "description": self.description or "",
            "useCases": self.feature_names,
            "themeColor": self.theme_color or DEFAULT_THEME_COLOR,
            "label": self.label or None,
        }

    def to_admin_dict(self) -> Dict[str, Any]:
        """Shape served to the admin back-office."""
        now = datetime.now(timezone.utc).isoformat()
        return {
            "id": self.id,
            "name": self.name,
            "type": self.category.slug,
            "price": self.price,
            "isPopular": self.is_popular,
            "active": self.is_active,
            "themeColor": self.theme_color or DEFAULT_THEME_COLOR,
            "specs": {
                "cpu": self.cpu,
                "ram": self.ram,
                "storage": self.storage,
                "bandwidth": self.bandwidth,
                "location": self.category.default_location,
                "os": self.display_os,
            },
            "duration": 1,
            "description": self.description or "",
            "features": self.feature_names,
            "createdAt": self.created_at.isoformat() if self.created_at else now,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else now,
        }


class PlanCreate(BaseModel):
    """Payload for PlanStore.create_plan. id is generated when omitted."""
    id: Optional[str] = None
    category: PlanCategory
    name: str = Field(..., min_length=1)
    cpu: str
    ram: str
    storage: str
    bandwidth: str
    price: float = Field(..., gt=0)
    is_active: bool = True
    description: Optional[str] = None
    os: Optional[str] = None
    theme_color: Optional[str] = DEFAULT_THEME_COLOR
    label: Optional[str] = None
    features: List[str] = []


class PlanUpdate(BaseModel):
    """
    Partial update for PlanStore.update_plan.

    Only fields explicitly set by the caller are written; an explicit None
    clears a nullable column. Setting ``features`` replaces the whole list.
    """
    category: Optional[PlanCategory] = None
    name: Optional[str] = Field(None, min_length=1)
    cpu: Optional[str] = None
    ram: Optional[str] = None
    storage: Optional[str] = None
    bandwidth: Optional[str] = None
    price: Optional[float] = Field(None, gt=0)
    is_active: Optional[bool] = None
    description: Optional[str] = None
    os: Optional[str] = None
    theme_color: Optional[str] = None
    label: Optional[str] = None
    features: Optional[List[str]] = None

    def column_changes(self) -> Dict[str, Any]:
        """Explicitly-set scalar fields, excluding the feature list."""
        changes = self.model_dump(exclude_unset=True, exclude={"features"})
        changes = {
            key: value for key, value in changes.items()
            if value is not None or key not in REQUIRED_FIELDS
        }
        if "category" in changes:
            changes["category"] = int(changes["category"])
        return changes

    @property
    def replaces_features(self) -> bool:
        return "features" in self.model_fields_set and self.features is not None
