"""
Promo Codes & Order Pricing
===========================

Server-side promo code validation and the discount/total arithmetic used
by the order flow.

Codes are configured as ``CODE:PERCENT[:YYYY-MM-DD[:plan-id|plan-id]]``
entries separated by commas, e.g. ``NEXTGEN20:20,SPRING10:10:2026-04-30``.
"""

import logging
from datetime import datetime, date
from decimal import Decimal, ROUND_HALF_UP
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional

logger = logging.getLogger(__name__)

MSG_INVALID = "Invalid or expired promo code"
MSG_EXPIRED = "Promo code has expired"
MSG_NOT_APPLICABLE = "Promo code is not valid for this plan"


@dataclass
class PromoCode:
    code: str
    discount: int  # percentage
    is_active: bool = True
    valid_until: Optional[datetime] = None
    plan_ids: FrozenSet[str] = field(default_factory=frozenset)  # empty = every plan

    def applies_to(self, plan_id: Optional[str]) -> bool:
        return not self.plan_ids or plan_id in self.plan_ids


@dataclass
class PromoValidation:
    valid: bool
    message: str
    discount_percent: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape of POST /api/promo/validate."""
        data: Dict[str, Any] = {"valid": self.valid, "message": self.message}
        if self.discount_percent is not None:
            data["discount"] = self.discount_percent
        return data


def parse_promo_codes(raw: str) -> List[PromoCode]:
    """Parse the PROMO_CODES setting. Malformed entries are skipped with a warning."""
    codes: List[PromoCode] = []
    for entry in (raw or "").split(","):
        entry = entry.strip()
        if not entry:
            continue
        parts = entry.split(":")
        try:
            percent = int(parts[1])
            if not 0 < percent <= 100:
                raise ValueError(f"discount out of range: {percent}")
            valid_until = None
            if len(parts) > 2 and parts[2]:
                # Inclusive: the code works through the whole last day
                valid_until = datetime.combine(date.fromisoformat(parts[2]), datetime.max.time())
            plan_ids = frozenset(p for p in parts[3].split("|") if p) if len(parts) > 3 else frozenset()
        except (IndexError, ValueError) as e:
            logger.warning(f"Ignoring malformed promo code entry {entry!r}: {e}")
            continue
        codes.append(PromoCode(
            code=parts[0].strip(),
            discount=percent,
            valid_until=valid_until,
            plan_ids=plan_ids,
        ))
    return codes


class PromoValidator:
    """Validates promo codes against the configured set."""

    def __init__(self, codes: List[PromoCode]):
        self._codes = {c.code.upper(): c for c in codes}

    @classmethod
    def from_config(cls, raw: str) -> "PromoValidator":
        return cls(parse_promo_codes(raw))

    def validate(self, code: str, plan_id: Optional[str] = None, now: Optional[datetime] = None) -> PromoValidation:
        """
        Check a code for a plan.

        Raises:
            ValueError: empty code
        """
        if not code or not code.strip():
            raise ValueError("Promo code is required")

        promo = self._codes.get(code.strip().upper())
        if promo is None or not promo.is_active:
            logger.info(f"Invalid or expired promo code: {code}")
            return PromoValidation(valid=False, message=MSG_INVALID)

        if promo.valid_until and (now or datetime.now()) > promo.valid_until:
            logger.info(f"Expired promo code: {code}")
            return PromoValidation(valid=False, message=MSG_EXPIRED)

        if not promo.applies_to(plan_id):
            logger.info(f"Promo code {code} not applicable", extra={"plan_id": plan_id})
            return PromoValidation(valid=False, message=MSG_NOT_APPLICABLE)

        return PromoValidation(
            valid=True,
            message=f"Promo code applied! {promo.discount}% discount.",
            discount_percent=promo.discount,
        )


# =========================================
# PRICE ARITHMETIC
# =========================================

def discount_amount(price: float, percent: Optional[float]) -> int:
    """
    round(price * percent / 100), half rounding up, capped at the price.

    >>> discount_amount(1000, 10)
    100
    """
    if not percent or percent <= 0 or price <= 0:
        return 0
    raw = Decimal(str(price)) * Decimal(str(percent)) / Decimal(100)
    amount = int(raw.quantize(Decimal("1"), rounding=ROUND_HALF_UP))
    return min(amount, int(price))


def order_total(price: float, discount: float) -> float:
    """Price minus discount, never negative."""
    return max(price - discount, 0)
