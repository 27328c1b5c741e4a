"""
Admin Plan Management
=====================

Back-office CRUD over the plan catalog. Every endpoint requires an admin
session cookie.

- GET    /api/admin/plans[?forceImport=true]
- POST   /api/admin/plans
- PATCH  /api/admin/plans          (plan id in the body)
- DELETE /api/admin/plans?id=<id>
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field, ValidationError

from storefront.auth import StoreUser, require_admin
from storefront.catalog import PlanCategory, PlanCreate, PlanUpdate, import_sample_plans
from storefront.catalog.models import POPULAR_LABEL

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/admin/plans", tags=["Admin Plans"])


class PlanSpecs(BaseModel):
    cpu: Optional[str] = None
    ram: Optional[str] = None
    storage: Optional[str] = None
    bandwidth: Optional[str] = None
    location: Optional[str] = None
    os: Optional[str] = None


class AdminPlanPayload(BaseModel):
    """Admin plan shape as sent by the back-office form."""
    id: Optional[str] = None
    name: Optional[str] = None
    type: Optional[str] = None
    price: Optional[float] = None
    specs: Optional[PlanSpecs] = None
    is_popular: Optional[bool] = Field(None, alias="isPopular")
    active: Optional[bool] = None
    theme_color: Optional[str] = Field(None, alias="themeColor")
    description: Optional[str] = None
    features: Optional[List[str]] = None


def _category(slug: str) -> PlanCategory:
    try:
        return PlanCategory.from_slug(slug)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _to_create(body: AdminPlanPayload) -> PlanCreate:
    if not body.name or not body.type or not body.price or body.specs is None:
        raise HTTPException(status_code=400, detail="Missing required fields")
    specs = body.specs
    try:
        return PlanCreate(
            category=_category(body.type),
            name=body.name,
            cpu=specs.cpu or "",
            ram=specs.ram or "",
            storage=specs.storage or "",
            bandwidth=specs.bandwidth or "",
            os=specs.os,
            price=body.price,
            is_active=body.active is not False,
            description=body.description,
            theme_color=body.theme_color or "sky",
            label=POPULAR_LABEL if body.is_popular else None,
            features=body.features or [],
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid plan: {e.errors()[0]['msg']}")


def _to_update(body: AdminPlanPayload) -> PlanUpdate:
    """Only fields present in the request body become changes."""
    sent = body.model_fields_set
    changes: Dict[str, Any] = {}
    if "name" in sent:
        changes["name"] = body.name
    if "type" in sent and body.type:
        changes["category"] = _category(body.type)
    if "price" in sent:
        changes["price"] = body.price
    if "active" in sent:
        changes["is_active"] = body.active
    if "is_popular" in sent and body.is_popular is not None:
        changes["label"] = POPULAR_LABEL if body.is_popular else ""
    if "theme_color" in sent:
        changes["theme_color"] = body.theme_color
    if "description" in sent:
        changes["description"] = body.description
    if "features" in sent:
        changes["features"] = body.features
    if body.specs is not None:
        for key in body.specs.model_fields_set & {"cpu", "ram", "storage", "bandwidth", "os"}:
            changes[key] = getattr(body.specs, key)
    try:
        return PlanUpdate(**changes)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid plan: {e.errors()[0]['msg']}")


@router.get("")
async def list_plans(
    request: Request,
    force_import: bool = Query(False, alias="forceImport"),
    admin: StoreUser = Depends(require_admin),
):
    """Every plan, inactive ones included. forceImport=true reloads the stock catalog."""
    store = request.app.state.plan_store
    if force_import:
        logger.info("Force importing plans...", extra={"user_id": admin.id})
        try:
            await import_sample_plans(store, replace=True)
        except Exception as e:
            logger.error(f"Plan import failed: {e}")
            raise HTTPException(status_code=500, detail="No plans were imported.")

    plans = await store.get_all_plans(include_inactive=True)
    return [plan.to_admin_dict() for plan in plans]


@router.post("")
async def create_plan(
    body: AdminPlanPayload,
    request: Request,
    admin: StoreUser = Depends(require_admin),
):
    data = _to_create(body)
    try:
        plan = await request.app.state.plan_store.create_plan(data)
    except Exception as e:
        logger.error(f"Error creating plan: {e}")
        raise HTTPException(status_code=500, detail="Failed to create plan")
    return plan.to_admin_dict()


@router.patch("")
async def update_plan(
    body: AdminPlanPayload,
    request: Request,
    admin: StoreUser = Depends(require_admin),
):
    if not body.id:
        raise HTTPException(status_code=400, detail="Missing plan ID")
    changes = _to_update(body)
    try:
        plan = await request.app.state.plan_store.update_plan(body.id, changes)
    except Exception as e:
        logger.error(f"Error updating plan: {e}", extra={"plan_id": body.id})
        raise HTTPException(status_code=500, detail="Failed to update plan")
    if plan is None:
        raise HTTPException(status_code=404, detail="Plan not found")
    return plan.to_admin_dict()


@router.delete("")
async def delete_plan(
    request: Request,
    plan_id: Optional[str] = Query(None, alias="id"),
    admin: StoreUser = Depends(require_admin),
):
    if not plan_id:
        raise HTTPException(status_code=400, detail="Missing plan ID")
    try:
        deleted = await request.app.state.plan_store.delete_plan(plan_id)
    except Exception as e:
        logger.error(f"Error deleting plan: {e}", extra={"plan_id": plan_id})
        raise HTTPException(status_code=500, detail="Failed to delete plan")
    if not deleted:
        raise HTTPException(status_code=404, detail="Plan not found")
    return {"success": True}
