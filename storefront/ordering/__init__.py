"""Customer order flow: steps, draft state, the storefront client and the controller."""

from storefront.ordering.client import StorefrontClient, UpstreamError
from storefront.ordering.controller import OrderConfirmation, OrderStepController
from storefront.ordering.draft import (
    PAYMENT_METHODS,
    SERVER_LOCATIONS,
    AuthStatus,
    ErrorKind,
    OrderDraft,
    PlanDetail,
    StepMessage,
)
from storefront.ordering.steps import ORDER_STEPS, OrderStep

__all__ = [
    "AuthStatus",
    "ErrorKind",
    "ORDER_STEPS",
    "OrderConfirmation",
    "OrderDraft",
    "OrderStep",
    "OrderStepController",
    "PAYMENT_METHODS",
    "PlanDetail",
    "SERVER_LOCATIONS",
    "StepMessage",
    "StorefrontClient",
    "UpstreamError",
]
