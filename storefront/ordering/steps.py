"""Order flow steps, in their fixed order."""

from enum import Enum
from typing import List


class OrderStep(Enum):
    CONFIGURE = "configure"
    ACCOUNT = "account"
    PAYMENT = "payment"
    REVIEW = "review"

    @property
    def title(self) -> str:
        return STEP_TITLES[self]

    @property
    def index(self) -> int:
        return ORDER_STEPS.index(self)


ORDER_STEPS: List[OrderStep] = [
    OrderStep.CONFIGURE,
    OrderStep.ACCOUNT,
    OrderStep.PAYMENT,
    OrderStep.REVIEW,
]

STEP_TITLES = {
    OrderStep.CONFIGURE: "Configuration",
    OrderStep.ACCOUNT: "Account Details",
    OrderStep.PAYMENT: "Payment Method",
    OrderStep.REVIEW: "Review & Confirm",
}
