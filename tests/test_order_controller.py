"""
Tests for the Order Step Controller
===================================

The storefront client is an AsyncMock; see conftest.mock_client.
"""

import asyncio

import pytest

from storefront.ordering import (
    AuthStatus,
    ErrorKind,
    OrderStep,
    OrderStepController,
    SERVER_LOCATIONS,
    UpstreamError,
)
from storefront.ordering.draft import MSG_LOGIN_REQUIRED, MSG_SELECT_METHOD, MSG_UPLOAD_PROOF
from storefront.pricing import PromoValidation

PROOF_URL = "https://files.example.com/order-screenshots/a/b.png"


async def ready_for_review(controller, auth):
    """Walk a controller from configure to review."""
    await controller.start()
    controller.next()
    controller.set_auth(auth)
    controller.next()
    controller.select_payment_method("wise")
    controller.proof_uploaded(PROOF_URL, "b.png")
    controller.next()
    assert controller.current_step is OrderStep.REVIEW


class TestStartAndConfigure:

    @pytest.mark.asyncio
    async def test_defaults(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        assert controller.current_step is OrderStep.CONFIGURE
        assert controller.draft.location_id == SERVER_LOCATIONS[0].id

        await controller.start()
        mock_client.get_plan.assert_awaited_once_with("rdp-standard")
        assert controller.draft.plan.price == 5000
        assert controller.plan_error is None

    @pytest.mark.asyncio
    async def test_missing_plan_blocks_flow(self, mock_client):
        mock_client.get_plan.return_value = None
        controller = OrderStepController("gone", mock_client)
        await controller.start()

        assert controller.plan_error == "Plan not found"
        assert controller.next() is OrderStep.CONFIGURE
        assert await controller.submit() is None
        mock_client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_plan_fetch_failure_blocks_flow(self, mock_client):
        mock_client.get_plan.side_effect = UpstreamError("Failed to fetch plan: timeout")
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        assert controller.blocked
        assert "timeout" in controller.plan_error

    def test_configure_always_advances(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        assert controller.next() is OrderStep.ACCOUNT

    def test_unknown_location_rejected(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        with pytest.raises(ValueError):
            controller.select_location("mars")
        controller.select_location("uk-lon")
        assert controller.draft.location_id == "uk-lon"


class TestPromo:

    @pytest.mark.asyncio
    async def test_valid_code_applies_discount(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        controller.set_promo_code("SAVE10")
        await controller.apply_promo_code()

        mock_client.validate_promo.assert_awaited_once_with("SAVE10", "rdp-standard")
        assert controller.draft.discount_amount == 500
        assert controller.draft.total == 4500
        assert controller.promo_message.kind is ErrorKind.SUCCESS
        assert controller.promo_message.text == "Promo code applied! 10% discount."
        assert not controller.promo_message.is_error

    @pytest.mark.asyncio
    async def test_blank_code_makes_no_call(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        controller.set_promo_code("   ")
        await controller.apply_promo_code()
        mock_client.validate_promo.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_code_resets_discount(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        controller.set_promo_code("SAVE10")
        await controller.apply_promo_code()

        mock_client.validate_promo.return_value = PromoValidation(
            valid=False, message="Invalid or expired promo code"
        )
        await controller.apply_promo_code()

        assert controller.draft.discount_amount == 0
        assert controller.draft.total == 5000
        assert controller.promo_message.kind is ErrorKind.BUSINESS
        assert controller.promo_message.text == "Invalid or expired promo code"
        assert controller.promo_message.is_error

    @pytest.mark.asyncio
    async def test_network_error_is_distinct(self, mock_client):
        mock_client.validate_promo.side_effect = UpstreamError("connection reset")
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        controller.set_promo_code("SAVE10")
        await controller.apply_promo_code()

        assert controller.draft.discount_amount == 0
        assert controller.promo_message.kind is ErrorKind.UPSTREAM
        assert controller.promo_message.text == "Error: connection reset"

    @pytest.mark.asyncio
    async def test_editing_code_clears_discount(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        controller.set_promo_code("SAVE10")
        await controller.apply_promo_code()
        controller.set_promo_code("SAVE1")
        assert controller.draft.discount_amount == 0
        assert controller.promo_message is None


class TestAccountStep:

    def test_blocked_when_anonymous(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        controller.next()
        assert controller.next() is OrderStep.ACCOUNT
        assert controller.error.kind is ErrorKind.AUTHENTICATION

    @pytest.mark.asyncio
    async def test_completed_authentication_advances(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        controller.next()

        async def login():
            await asyncio.sleep(0)
            return signed_in

        assert await controller.complete_authentication(login()) is OrderStep.PAYMENT
        assert controller.draft.auth == signed_in

    @pytest.mark.asyncio
    async def test_failed_authentication_stays(self, mock_client):
        controller = OrderStepController("rdp-standard", mock_client)
        controller.next()

        async def login():
            return AuthStatus.anonymous()

        assert await controller.complete_authentication(login()) is OrderStep.ACCOUNT


class TestPaymentStep:

    def _at_payment(self, mock_client, auth):
        controller = OrderStepController("rdp-standard", mock_client, auth=auth)
        controller.next()
        controller.next()
        assert controller.current_step is OrderStep.PAYMENT
        return controller

    def test_requires_method(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        controller.proof_uploaded(PROOF_URL)
        assert controller.next() is OrderStep.PAYMENT
        assert controller.error.text == MSG_SELECT_METHOD

    def test_requires_proof(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        controller.select_payment_method("nayapay")
        assert controller.next() is OrderStep.PAYMENT
        assert controller.error.text == MSG_UPLOAD_PROOF

    def test_unknown_method_rejected(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        with pytest.raises(ValueError):
            controller.select_payment_method("paypal")
        assert controller.draft.payment_method_id is None

    def test_lost_auth_returns_to_account(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        controller.select_payment_method("wise")
        controller.proof_uploaded(PROOF_URL)
        controller.set_auth(AuthStatus.anonymous())

        assert controller.next() is OrderStep.ACCOUNT
        assert controller.error.text == MSG_LOGIN_REQUIRED

    def test_complete_payment_advances(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        controller.select_payment_method("wise")
        controller.proof_uploaded(PROOF_URL)
        assert controller.next() is OrderStep.REVIEW
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_upload_payment_proof(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        url = await controller.upload_payment_proof("proof.png", b"png-bytes", "image/png")

        assert url == PROOF_URL
        assert controller.draft.payment_proof_url == PROOF_URL
        _, kwargs = mock_client.upload_file.call_args
        assert kwargs["user_id"] == "user-1"
        assert kwargs["is_order_screenshot"] is True

    @pytest.mark.asyncio
    async def test_upload_rejects_bad_type_locally(self, mock_client, signed_in):
        controller = self._at_payment(mock_client, signed_in)
        assert await controller.upload_payment_proof("notes.txt", b"hi", "text/plain") is None
        assert controller.error.kind is ErrorKind.VALIDATION
        mock_client.upload_file.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upload_failure_is_storage_error(self, mock_client, signed_in):
        mock_client.upload_file.side_effect = UpstreamError("All storage backends failed")
        controller = self._at_payment(mock_client, signed_in)
        assert await controller.upload_payment_proof("proof.png", b"x", "image/png") is None
        assert controller.error.kind is ErrorKind.STORAGE
        assert controller.draft.payment_proof_url is None


class TestNavigation:

    def test_previous_and_go_to(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client, auth=signed_in)
        controller.next()
        controller.next()
        assert controller.previous() is OrderStep.ACCOUNT
        assert controller.go_to(OrderStep.REVIEW) is OrderStep.ACCOUNT
        assert controller.go_to(OrderStep.CONFIGURE) is OrderStep.CONFIGURE
        assert controller.previous() is OrderStep.CONFIGURE

    def test_review_is_terminal(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client, auth=signed_in)
        controller.current_step = OrderStep.REVIEW
        assert controller.next() is OrderStep.REVIEW


class TestSubmit:

    @pytest.mark.asyncio
    async def test_end_to_end_with_promo(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        await controller.start()
        controller.set_promo_code("SAVE10")
        await controller.apply_promo_code()
        await ready_for_review(controller, signed_in)

        confirmation = await controller.submit()

        mock_client.create_order.assert_awaited_once()
        (payload,), _ = mock_client.create_order.call_args
        assert payload == {
            "planId": "rdp-standard",
            "planName": "RDP Standard",
            "location": "us-dal",
            "paymentMethod": "wise",
            "paymentProofUrl": PROOF_URL,
            "subtotal": 5000,
            "total": 4500,
        }
        assert confirmation.order_id == "ORD-1001"
        assert confirmation.redirect_url == "/dashboard/orders"
        assert confirmation.redirect_after == 3.0

    @pytest.mark.asyncio
    async def test_redirect_delay_from_config(self, mock_client, signed_in, test_config):
        test_config.redirect_delay_seconds = 0.5
        controller = OrderStepController.from_config("rdp-standard", mock_client, test_config)
        await ready_for_review(controller, signed_in)

        confirmation = await controller.submit()

        assert confirmation.redirect_after == 0.5
        assert confirmation.redirect_url == "/dashboard/orders"

    @pytest.mark.asyncio
    async def test_missing_proof_goes_back_to_payment(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        await ready_for_review(controller, signed_in)
        controller.draft.payment_proof_url = None

        assert await controller.submit() is None
        assert controller.current_step is OrderStep.PAYMENT
        mock_client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_auth_goes_back_to_account(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        await ready_for_review(controller, signed_in)
        controller.set_auth(AuthStatus.anonymous())

        assert await controller.submit() is None
        assert controller.current_step is OrderStep.ACCOUNT
        assert controller.error.kind is ErrorKind.AUTHENTICATION
        mock_client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_location_goes_back_to_configure(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        await ready_for_review(controller, signed_in)
        controller.draft.location_id = None

        assert await controller.submit() is None
        assert controller.current_step is OrderStep.CONFIGURE
        mock_client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failure_keeps_draft_for_retry(self, mock_client, signed_in):
        mock_client.create_order.side_effect = UpstreamError("Payment proof unreadable", 400)
        controller = OrderStepController("rdp-standard", mock_client)
        await ready_for_review(controller, signed_in)

        assert await controller.submit() is None
        assert controller.error.text == "Payment proof unreadable"
        assert controller.current_step is OrderStep.REVIEW
        assert controller.draft.payment_proof_url == PROOF_URL
        assert not controller.submitting

        mock_client.create_order.side_effect = None
        assert (await controller.submit()).order_id == "ORD-1001"
        assert mock_client.create_order.await_count == 2

    @pytest.mark.asyncio
    async def test_duplicate_trigger_ignored(self, mock_client, signed_in):
        controller = OrderStepController("rdp-standard", mock_client)
        await ready_for_review(controller, signed_in)
        release = asyncio.Event()

        async def slow_create(payload):
            await release.wait()
            return {"order": {"orderId": "ORD-2"}}

        mock_client.create_order.side_effect = slow_create
        first = asyncio.ensure_future(controller.submit())
        await asyncio.sleep(0)
        assert controller.submitting
        assert await controller.submit() is None

        release.set()
        assert (await first).order_id == "ORD-2"
        assert mock_client.create_order.await_count == 1
