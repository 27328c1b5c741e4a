from storefront.catalog.base import BasePlanStore
from storefront.catalog.models import (
    Plan,
    PlanCategory,
    PlanCreate,
    PlanFeature,
    PlanUpdate,
)
from storefront.catalog.postgres import PostgresPlanStore
from storefront.catalog.seed import import_sample_plans
from storefront.catalog.sqlite import SQLitePlanStore

__all__ = [
    "BasePlanStore",
    "Plan",
    "PlanCategory",
    "PlanCreate",
    "PlanFeature",
    "PlanUpdate",
    "PostgresPlanStore",
    "SQLitePlanStore",
    "import_sample_plans",
]
