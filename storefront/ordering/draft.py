"""
Order Draft
===========

Client-side state accumulated across the order steps, the reference data
the steps choose from, and the pure guard checks over that state.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from storefront.ordering.steps import OrderStep
from storefront.pricing import order_total


@dataclass(frozen=True)
class ServerLocation:
    id: str
    name: str
    city: Optional[str] = None


SERVER_LOCATIONS: List[ServerLocation] = [
    ServerLocation("us-dal", "USA", "Dallas"),
    ServerLocation("us-nyc", "USA", "New York"),
    ServerLocation("uk-lon", "UK", "London"),
    ServerLocation("in", "India"),
    ServerLocation("de", "Germany"),
    ServerLocation("fr", "France"),
    ServerLocation("sg", "Singapore"),
    ServerLocation("hk", "Hong Kong"),
    ServerLocation("sa", "Saudi Arabia"),
]


@dataclass(frozen=True)
class PaymentMethod:
    id: str
    name: str
    processing_time: str


PAYMENT_METHODS: List[PaymentMethod] = [
    PaymentMethod("wise", "Wise (TransferWise)", "1-2 business days"),
    PaymentMethod("alliedbank", "Allied Bank", "Same day"),
    PaymentMethod("nayapay", "NayaPay", "Instant"),
]


@dataclass(frozen=True)
class AuthStatus:
    """Authentication state handed to the controller by its host."""
    is_authenticated: bool = False
    user_id: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "AuthStatus":
        return cls()

    @property
    def has_user(self) -> bool:
        return self.is_authenticated and bool(self.user_id)


@dataclass
class PlanDetail:
    """Plan as served by GET /api/plans/{id}."""
    id: str
    name: str
    price: float
    cpu: str = ""
    ram: str = ""
    storage: str = ""
    bandwidth: str = ""
    os: str = ""
    use_cases: List[str] = field(default_factory=list)
    theme_color: Optional[str] = None
    label: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PlanDetail":
        return cls(
            id=data["id"],
            name=data["name"],
            price=float(data["price"]),
            cpu=data.get("cpu", ""),
            ram=data.get("ram", ""),
            storage=data.get("storage", ""),
            bandwidth=data.get("bandwidth", ""),
            os=data.get("os", ""),
            use_cases=list(data.get("useCases") or []),
            theme_color=data.get("themeColor"),
            label=data.get("label"),
        )


class ErrorKind(Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    UPSTREAM = "upstream"
    BUSINESS = "business"
    STORAGE = "storage"
    # Confirmation shown alongside the step, not a failure
    SUCCESS = "success"


@dataclass(frozen=True)
class StepMessage:
    """A user-visible message raised by a step."""
    kind: ErrorKind
    text: str

    @property
    def is_error(self) -> bool:
        return self.kind is not ErrorKind.SUCCESS


MSG_LOGIN_REQUIRED = "Please log in or register first."
MSG_SELECT_METHOD = "Please select a payment method."
MSG_UPLOAD_PROOF = "Please upload your payment proof."
MSG_INCOMPLETE_ORDER = "Missing required information to place order. Please review all steps."


@dataclass
class OrderDraft:
    plan: Optional[PlanDetail] = None
    location_id: Optional[str] = None
    promo_code: str = ""
    discount_amount: int = 0
    payment_method_id: Optional[str] = None
    payment_proof_url: Optional[str] = None
    payment_proof_filename: Optional[str] = None
    auth: AuthStatus = field(default_factory=AuthStatus.anonymous)

    @property
    def subtotal(self) -> float:
        return self.plan.price if self.plan else 0

    @property
    def total(self) -> float:
        return order_total(self.subtotal, self.discount_amount) if self.plan else 0

    def to_payload(self) -> Dict[str, Any]:
        """Body of POST /api/orders."""
        return {
            "planId": self.plan.id,
            "planName": self.plan.name,
            "location": self.location_id,
            "paymentMethod": self.payment_method_id,
            "paymentProofUrl": self.payment_proof_url,
            "subtotal": self.subtotal,
            "total": self.total,
        }


# =========================================
# GUARDS
# =========================================

def payment_exit_error(draft: OrderDraft) -> Optional[StepMessage]:
    """Why the payment step cannot be left, or None."""
    if not draft.auth.is_authenticated:
        return StepMessage(ErrorKind.AUTHENTICATION, MSG_LOGIN_REQUIRED)
    if not draft.payment_method_id:
        return StepMessage(ErrorKind.VALIDATION, MSG_SELECT_METHOD)
    if not draft.payment_proof_url:
        return StepMessage(ErrorKind.VALIDATION, MSG_UPLOAD_PROOF)
    return None


def first_unsatisfied_step(draft: OrderDraft) -> Optional[OrderStep]:
    """The step owning the first missing submission requirement."""
    if not draft.auth.has_user:
        return OrderStep.ACCOUNT
    if not draft.payment_method_id or not draft.payment_proof_url:
        return OrderStep.PAYMENT
    if not draft.location_id:
        return OrderStep.CONFIGURE
    return None
