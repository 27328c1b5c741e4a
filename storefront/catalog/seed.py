"""
Stock plan catalog.

Imported on demand from the admin back-office (``forceImport``) to
(re)build the catalog from the storefront's standard RDP and VPS line-up.
"""

import logging
from typing import Any, Dict, List

from storefront.catalog.base import BasePlanStore
from storefront.catalog.models import POPULAR_LABEL, PlanCategory, PlanCreate

logger = logging.getLogger(__name__)

RDP_STANDARD_FEATURES = [
    "24/7 Support",
    "Admin RDP Access",
    "Fast NVMe Storage",
    "DDoS Protection",
    "Multiple Locations",
]

VPS_STANDARD_FEATURES = [
    "24/7 Support",
    "Administrator Access",
    "High-Speed Network",
    "DDoS Protection",
    "Global Datacenters",
]

RDP_PLANS: List[Dict[str, Any]] = [
    {
        "id": "rdp-basic",
        "name": "Basic RDP",
        "cpu": "2 Cores",
        "ram": "4 GB",
        "storage": "60 GB NVMe",
        "price": 3500,
        "theme_color": "sky",
        "label": None,
        "use_cases": ["Browsing", "Light automation"],
    },
    {
        "id": "rdp-standard",
        "name": "Standard RDP",
        "cpu": "4 Cores",
        "ram": "8 GB",
        "storage": "120 GB NVMe",
        "price": 5000,
        "theme_color": "indigo",
        "label": "Most Selling",
        "use_cases": ["Trading bots", "Office work", "Streaming"],
    },
    {
        "id": "rdp-pro",
        "name": "Pro RDP",
        "cpu": "8 Cores",
        "ram": "16 GB",
        "storage": "240 GB NVMe",
        "price": 9500,
        "theme_color": "violet",
        "label": "Recommended",
        "use_cases": ["Development", "Rendering", "Multiple sessions"],
    },
]

VPS_PLANS: List[Dict[str, Any]] = [
    {
        "id": "vps-starter",
        "name": "Starter VPS",
        "cpu": "2 vCPU",
        "ram": "4 GB",
        "storage": "80 GB SSD",
        "price": 4000,
        "theme_color": "emerald",
        "label": None,
        "use_cases": ["Websites", "Small databases"],
    },
    {
        "id": "vps-business",
        "name": "Business VPS",
        "cpu": "6 vCPU",
        "ram": "12 GB",
        "storage": "200 GB SSD",
        "price": 8500,
        "theme_color": "amber",
        "label": "Recommended",
        "use_cases": ["Game servers", "CI runners", "APIs"],
    },
]


def _to_create(plan: Dict[str, Any], category: PlanCategory) -> PlanCreate:
    if category is PlanCategory.RDP:
        description = f"Premium Remote Desktop Plan with {plan['cpu']} and {plan['ram']}"
        standard = RDP_STANDARD_FEATURES
    else:
        description = f"High-Performance VPS with {plan['cpu']} and {plan['ram']}"
        standard = VPS_STANDARD_FEATURES

    label = plan.get("label")
    if label in ("Recommended", "Most Selling"):
        label = POPULAR_LABEL

    use_cases = plan.get("use_cases") or []
    # Standard features only accompany plans that list use cases
    features = list(use_cases) + (list(standard) if use_cases else [])

    return PlanCreate(
        id=plan["id"],
        category=category,
        name=plan["name"],
        description=description,
        cpu=plan["cpu"],
        ram=plan["ram"],
        storage=plan["storage"],
        bandwidth=plan.get("bandwidth") or "Unmetered",
        os=plan.get("os") or category.default_os,
        price=plan["price"],
        is_active=True,
        theme_color=plan.get("theme_color") or "sky",
        label=label or "",
        features=features,
    )


async def import_sample_plans(store: BasePlanStore, replace: bool = True) -> int:
    """
    Load the stock catalog into the store.

    Args:
        store: Target plan store
        replace: Delete every existing plan first

    Returns:
        Number of plans imported

    Raises:
        RuntimeError: nothing could be imported
    """
    if replace:
        existing = await store.get_all_plans(include_inactive=True)
        for plan in existing:
            await store.delete_plan(plan.id)
        logger.info(f"Cleared {len(existing)} existing plan(s) for reimport")

    imported = 0
    for category, plans in ((PlanCategory.RDP, RDP_PLANS), (PlanCategory.VPS, VPS_PLANS)):
        for plan in plans:
            try:
                await store.create_plan(_to_create(plan, category))
                imported += 1
            except Exception as e:
                logger.error(f"Error importing {category.slug} plan {plan['id']}: {e}")

    logger.info(f"Successfully imported {imported} plans")
    if imported == 0:
        raise RuntimeError("No plans were imported.")
    return imported
