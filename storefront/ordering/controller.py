"""
Order Step Controller
=====================

Drives a customer through configure -> account -> payment -> review for a
single plan and submits the assembled order.

Flow errors never raise. They are stored as StepMessage values on the
controller for the host to display; the user retries by repeating the
action.
"""

import logging
from dataclasses import dataclass
from typing import Awaitable, List, Optional, Sequence

from storefront.config import StorefrontConfig
from storefront.ordering.client import StorefrontClient, UpstreamError
from storefront.ordering.draft import (
    MSG_INCOMPLETE_ORDER,
    MSG_LOGIN_REQUIRED,
    PAYMENT_METHODS,
    SERVER_LOCATIONS,
    AuthStatus,
    ErrorKind,
    OrderDraft,
    PaymentMethod,
    ServerLocation,
    StepMessage,
    first_unsatisfied_step,
    payment_exit_error,
)
from storefront.ordering.steps import ORDER_STEPS, OrderStep
from storefront.pricing import discount_amount
from storefront.uploads import MAX_UPLOAD_BYTES, UploadRejected, validate_upload

logger = logging.getLogger(__name__)

MSG_PLAN_NOT_FOUND = "Plan not found"
DEFAULT_REDIRECT_URL = "/dashboard/orders"
DEFAULT_REDIRECT_DELAY = 3.0


@dataclass
class OrderConfirmation:
    order_id: Optional[str]
    redirect_url: str
    redirect_after: float


class OrderStepController:
    """State machine for one order; one instance per order page."""

    def __init__(
        self,
        plan_id: str,
        client: StorefrontClient,
        auth: Optional[AuthStatus] = None,
        locations: Sequence[ServerLocation] = SERVER_LOCATIONS,
        payment_methods: Sequence[PaymentMethod] = PAYMENT_METHODS,
        redirect_url: str = DEFAULT_REDIRECT_URL,
        redirect_delay: float = DEFAULT_REDIRECT_DELAY,
    ):
        self.plan_id = plan_id
        self.client = client
        self.locations: List[ServerLocation] = list(locations)
        self.payment_methods: List[PaymentMethod] = list(payment_methods)
        self.redirect_url = redirect_url
        self.redirect_delay = redirect_delay

        self.current_step = OrderStep.CONFIGURE
        self.draft = OrderDraft(
            location_id=self.locations[0].id if self.locations else None,
            auth=auth or AuthStatus.anonymous(),
        )

        self.loading_plan = False
        self.plan_error: Optional[str] = None
        self.error: Optional[StepMessage] = None
        self.promo_message: Optional[StepMessage] = None
        self.applying_promo = False
        self.uploading = False
        self.submitting = False
        self.confirmation: Optional[OrderConfirmation] = None

    @classmethod
    def from_config(
        cls,
        plan_id: str,
        client: StorefrontClient,
        config: StorefrontConfig,
        auth: Optional[AuthStatus] = None,
    ) -> "OrderStepController":
        """Controller with the deployment's post-order redirect delay (ORDER_REDIRECT_DELAY)."""
        return cls(plan_id, client, auth=auth, redirect_delay=config.redirect_delay_seconds)

    # =========================================
    # PLAN
    # =========================================

    @property
    def blocked(self) -> bool:
        """A plan-load failure ends the flow; the user has to leave the page."""
        return self.plan_error is not None

    async def start(self):
        await self.load_plan()

    async def load_plan(self):
        self.loading_plan = True
        try:
            plan = await self.client.get_plan(self.plan_id)
        except UpstreamError as e:
            logger.warning(f"Failed to load plan {self.plan_id}: {e}", extra={"plan_id": self.plan_id})
            self.plan_error = str(e)
            return
        finally:
            self.loading_plan = False

        if plan is None:
            self.plan_error = MSG_PLAN_NOT_FOUND
            return
        self.plan_error = None
        self.draft.plan = plan

    # =========================================
    # NAVIGATION
    # =========================================

    def _move_to(self, step: OrderStep):
        if step != self.current_step:
            logger.debug(f"Order step {self.current_step.value} -> {step.value}")
        self.current_step = step

    def next(self) -> OrderStep:
        if self.blocked:
            return self.current_step

        step = self.current_step
        if step is OrderStep.CONFIGURE:
            self.error = None
            self._move_to(OrderStep.ACCOUNT)
        elif step is OrderStep.ACCOUNT:
            if self.draft.auth.is_authenticated:
                self.error = None
                self._move_to(OrderStep.PAYMENT)
            else:
                self.error = StepMessage(ErrorKind.AUTHENTICATION, MSG_LOGIN_REQUIRED)
        elif step is OrderStep.PAYMENT:
            problem = payment_exit_error(self.draft)
            if problem is None:
                self.error = None
                self._move_to(OrderStep.REVIEW)
            else:
                self.error = problem
                if problem.kind is ErrorKind.AUTHENTICATION:
                    self._move_to(OrderStep.ACCOUNT)
        return self.current_step

    def previous(self) -> OrderStep:
        if self.blocked:
            return self.current_step
        if self.current_step.index > 0:
            self.error = None
            self._move_to(ORDER_STEPS[self.current_step.index - 1])
        return self.current_step

    def go_to(self, step: OrderStep) -> OrderStep:
        """Step-indicator jump; only the current or an earlier step is reachable."""
        if not self.blocked and step.index <= self.current_step.index:
            self.error = None
            self._move_to(step)
        return self.current_step

    # =========================================
    # CONFIGURE
    # =========================================

    def select_location(self, location_id: str):
        if not any(loc.id == location_id for loc in self.locations):
            raise ValueError(f"Unknown server location: {location_id}")
        self.draft.location_id = location_id

    def set_promo_code(self, code: str):
        self.draft.promo_code = code
        self.draft.discount_amount = 0
        self.promo_message = None

    async def apply_promo_code(self):
        code = self.draft.promo_code.strip()
        if not code or self.applying_promo:
            return

        self.applying_promo = True
        try:
            result = await self.client.validate_promo(code, self.plan_id)
        except UpstreamError as e:
            self.draft.discount_amount = 0
            self.promo_message = StepMessage(ErrorKind.UPSTREAM, f"Error: {e}")
            return
        finally:
            self.applying_promo = False

        if result.valid and result.discount_percent:
            self.draft.discount_amount = discount_amount(self.draft.subtotal, result.discount_percent)
            self.promo_message = StepMessage(ErrorKind.SUCCESS, result.message)
        else:
            self.draft.discount_amount = 0
            self.promo_message = StepMessage(ErrorKind.BUSINESS, result.message)

    # =========================================
    # ACCOUNT
    # =========================================

    def set_auth(self, auth: AuthStatus):
        self.draft.auth = auth

    async def complete_authentication(self, operation: Awaitable[AuthStatus]) -> OrderStep:
        """
        Await a login/registration operation and advance from the account
        step once it reports an authenticated user.
        """
        auth = await operation
        self.set_auth(auth)
        if self.current_step is OrderStep.ACCOUNT and auth.is_authenticated:
            return self.next()
        return self.current_step

    # =========================================
    # PAYMENT
    # =========================================

    def select_payment_method(self, method_id: str):
        if not any(m.id == method_id for m in self.payment_methods):
            raise ValueError(f"Unknown payment method: {method_id}")
        self.draft.payment_method_id = method_id
        self.error = None

    def proof_uploaded(self, url: str, file_name: Optional[str] = None):
        self.draft.payment_proof_url = url
        self.draft.payment_proof_filename = file_name
        self.error = None

    def proof_upload_failed(self, message: str):
        self.error = StepMessage(ErrorKind.STORAGE, message)

    async def upload_payment_proof(
        self,
        file_name: str,
        content: bytes,
        content_type: str,
        max_bytes: int = MAX_UPLOAD_BYTES,
    ) -> Optional[str]:
        """Upload the proof; returns its URL, or None with `error` set."""
        if self.uploading:
            return None
        if not self.draft.auth.has_user:
            self.error = StepMessage(ErrorKind.AUTHENTICATION, MSG_LOGIN_REQUIRED)
            return None
        try:
            validate_upload(content_type, len(content), max_bytes)
        except UploadRejected as e:
            self.error = StepMessage(ErrorKind.VALIDATION, str(e))
            return None

        self.uploading = True
        try:
            result = await self.client.upload_file(
                file_name,
                content,
                content_type,
                user_id=self.draft.auth.user_id,
                is_order_screenshot=True,
            )
        except UpstreamError as e:
            self.proof_upload_failed(str(e))
            return None
        finally:
            self.uploading = False

        url = result.get("url")
        if not url:
            self.proof_upload_failed("Upload did not return a file URL")
            return None
        self.proof_uploaded(url, result.get("fileName") or file_name)
        return url

    # =========================================
    # REVIEW
    # =========================================

    async def submit(self) -> Optional[OrderConfirmation]:
        if self.blocked or self.submitting or self.confirmation is not None:
            return None

        missing = first_unsatisfied_step(self.draft)
        if missing is not None or self.draft.plan is None:
            if missing is OrderStep.ACCOUNT:
                self.error = StepMessage(ErrorKind.AUTHENTICATION, MSG_LOGIN_REQUIRED)
            else:
                self.error = StepMessage(ErrorKind.VALIDATION, MSG_INCOMPLETE_ORDER)
            self._move_to(missing or OrderStep.CONFIGURE)
            return None

        self.submitting = True
        self.error = None
        try:
            result = await self.client.create_order(self.draft.to_payload())
        except UpstreamError as e:
            logger.warning(f"Order submission failed: {e}", extra={"plan_id": self.plan_id})
            self.error = StepMessage(ErrorKind.UPSTREAM, str(e))
            return None
        finally:
            self.submitting = False

        order_id = (result.get("order") or {}).get("orderId")
        logger.info(
            f"Order {order_id} placed for plan {self.plan_id}",
            extra={"order_id": order_id, "plan_id": self.plan_id, "user_id": self.draft.auth.user_id},
        )
        self.confirmation = OrderConfirmation(
            order_id=order_id,
            redirect_url=self.redirect_url,
            redirect_after=self.redirect_delay,
        )
        return self.confirmation
