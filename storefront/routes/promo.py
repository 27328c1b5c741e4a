"""Promo code validation endpoint."""

import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from storefront.routes import limiter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/promo", tags=["Promo"])


class PromoValidateRequest(BaseModel):
    code: Optional[str] = None
    plan_id: Optional[str] = Field(None, alias="planId")


@router.post("/validate")
@limiter.limit("30/minute")
async def validate_promo(body: PromoValidateRequest, request: Request):
    """
    Check a promo code for a plan.

    Rejections (unknown, expired, wrong plan) are answered with 200 and
    valid=false; only a missing code is a 400.
    """
    validator = request.app.state.promo_validator
    try:
        result = validator.validate(body.code or "", body.plan_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return result.to_dict()
