"""
Tests for CheckoutCoordinator: validation, state transitions, totals and the
end-to-end checkout scenarios.
"""

import asyncio

import pytest

from storefront.models.checkout import (
    CheckoutState,
    NoticeVariant,
    PaymentMethod,
    ShippingInfoUpdate,
)
from storefront.services.checkout_coordinator import CheckoutCoordinator
from storefront.services.errors import CheckoutClosedError, SubmissionInProgressError
from storefront.services.marketplace_client import MarketplaceAPIError
from storefront.services.order_submitter import OrderSubmitter
from storefront.services.shipping_estimator import ShippingEstimator

from .conftest import make_item, option

FULL_FORM = ShippingInfoUpdate(
    full_name="Aline Uwase",
    phone="0788123456",
    address="KG 11 Ave",
    district="Kigali",
    sector="Kimironko",
)


@pytest.fixture
def checkout(client, cart_store):
    return CheckoutCoordinator(
        cart_store=cart_store,
        estimator=ShippingEstimator(client, debounce_seconds=0.01),
        submitter=OrderSubmitter(client, cart_store),
    )


@pytest.fixture
def filled_cart(cart_store):
    cart_store.add_item(make_item("a", price=5000, quantity=3))
    cart_store.add_item(make_item("b", price=8000))
    return cart_store


class TestView:

    def test_empty_cart_has_no_form(self, checkout):
        view = checkout.view()

        assert view.empty
        assert view.shipping_info is None
        assert view.shipping_options == []

    def test_default_payment_method(self, checkout, filled_cart):
        view = checkout.view()

        assert view.payment_method == PaymentMethod.MTN_MOBILE_MONEY
        assert [p.value for p in view.payment_options] == list(PaymentMethod)
        assert view.total == 23000


class TestShipping:

    @pytest.mark.asyncio
    async def test_selected_option_adds_to_total(self, checkout, filled_cart, client):
        checkout.update_shipping_info(ShippingInfoUpdate(district="Kigali"))
        await checkout.estimator.settle()

        checkout.select_shipping_method("STANDARD")

        assert checkout.total == 25000
        assert checkout.view().total == 25000

    @pytest.mark.asyncio
    async def test_switching_option_updates_total(self, checkout, filled_cart, client):
        client.calculate_shipping.return_value = [option("STANDARD", 1000), option("EXPRESS", 3000, 1)]
        checkout.update_shipping_info(ShippingInfoUpdate(district="Nyagatare"))
        await checkout.estimator.settle()
        assert checkout.total == 24000

        checkout.select_shipping_method("EXPRESS")

        assert checkout.total == 26000

    @pytest.mark.asyncio
    async def test_non_district_edits_do_not_requote(self, checkout, filled_cart, client):
        checkout.update_shipping_info(ShippingInfoUpdate(full_name="Aline", phone="0788"))
        await checkout.estimator.settle()

        client.calculate_shipping.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cart_change_requotes(self, checkout, filled_cart, client):
        checkout.update_shipping_info(ShippingInfoUpdate(district="Kigali"))
        await checkout.estimator.settle()

        filled_cart.update_quantity("a", 5)
        await checkout.estimator.settle()

        assert client.calculate_shipping.await_count == 2
        assert client.calculate_shipping.await_args.args[0].total_amount == 33000

    @pytest.mark.asyncio
    async def test_emptying_cart_resets_shipping(self, checkout, filled_cart):
        checkout.update_shipping_info(ShippingInfoUpdate(district="Kigali"))
        await checkout.estimator.settle()

        filled_cart.clear()

        assert checkout.estimator.shipping_cost == 0
        assert checkout.view().empty


class TestValidation:

    @pytest.mark.asyncio
    async def test_missing_phone_blocks_submit(self, checkout, filled_cart, client):
        checkout.update_shipping_info(FULL_FORM.model_copy(update={"phone": ""}))

        result = await checkout.submit()

        assert result.state == CheckoutState.COLLECTING_INFO
        assert list(result.field_errors) == ["phone"]
        assert result.notices[0].variant == NoticeVariant.DESTRUCTIVE
        client.create_order.assert_not_awaited()
        assert not filled_cart.cart.is_empty

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["full_name", "phone", "address", "district", "sector"])
    async def test_each_required_field(self, checkout, filled_cart, client, field):
        checkout.update_shipping_info(FULL_FORM)
        checkout.shipping_info = checkout.shipping_info.model_copy(update={field: "   "})

        result = await checkout.submit()

        assert field in result.field_errors
        client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_cart_blocks_submit(self, checkout, client):
        checkout.update_shipping_info(FULL_FORM)

        result = await checkout.submit()

        assert result.state == CheckoutState.COLLECTING_INFO
        assert result.notices[0].title == "Empty cart"
        client.create_order.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_editing_clears_field_error(self, checkout, filled_cart):
        checkout.update_shipping_info(FULL_FORM.model_copy(update={"phone": ""}))
        await checkout.submit()

        checkout.update_shipping_info(ShippingInfoUpdate(phone="0788123456"))

        assert checkout.field_errors == {}


class TestSubmit:

    @pytest.mark.asyncio
    async def test_mobile_money_confirmation(self, checkout, filled_cart, client):
        checkout.update_shipping_info(FULL_FORM)
        await checkout.estimator.settle()

        result = await checkout.submit()

        assert result.state == CheckoutState.CONFIRMED
        assert result.order.order_id == "order123"
        assert "TXN-998" in result.notices[0].description
        assert result.redirect_to == "/buyer-orders"
        client.process_payment.assert_awaited_once_with("order123", "0788123456")
        assert filled_cart.cart.is_empty

        payload = client.create_order.await_args.args[0]
        assert payload.total_amount == 25000
        assert payload.shipping_method == "STANDARD"
        assert payload.shipping_cost == 2000

    @pytest.mark.asyncio
    async def test_payment_failure_still_confirms(self, checkout, filled_cart, client):
        client.process_payment.side_effect = MarketplaceAPIError(status=500, message="USSD push failed")
        checkout.update_shipping_info(FULL_FORM)

        result = await checkout.submit()

        assert result.state == CheckoutState.CONFIRMED
        assert result.notices[0].title == "Order created, payment pending"
        assert result.redirect_to == "/buyer-orders"
        assert filled_cart.cart.is_empty

    @pytest.mark.asyncio
    async def test_cash_on_delivery_skips_payment(self, checkout, filled_cart, client):
        checkout.update_shipping_info(FULL_FORM)
        checkout.select_payment_method(PaymentMethod.CASH_ON_DELIVERY)

        result = await checkout.submit()

        assert result.state == CheckoutState.CONFIRMED
        client.process_payment.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_order_failure_allows_retry(self, checkout, filled_cart, client):
        client.create_order.side_effect = MarketplaceAPIError(status=500, message="Database unavailable")
        checkout.update_shipping_info(FULL_FORM)

        failed = await checkout.submit()

        assert failed.state == CheckoutState.FAILED
        assert failed.notices[0].title == "Order failed"
        assert failed.redirect_to is None
        assert filled_cart.cart.total_amount == 23000

        client.create_order.side_effect = None
        retried = await checkout.submit()

        assert retried.state == CheckoutState.CONFIRMED
        assert client.create_order.await_count == 2
        assert filled_cart.cart.is_empty

    @pytest.mark.asyncio
    async def test_submit_disabled_while_submitting(self, checkout, filled_cart, client):
        release = asyncio.Event()

        async def slow_create(payload):
            await release.wait()
            return client.create_order.return_value

        client.create_order.side_effect = slow_create
        checkout.update_shipping_info(FULL_FORM)

        first = asyncio.create_task(checkout.submit())
        await asyncio.sleep(0)
        assert checkout.state == CheckoutState.SUBMITTING

        with pytest.raises(SubmissionInProgressError):
            await checkout.submit()
        with pytest.raises(SubmissionInProgressError):
            checkout.update_shipping_info(ShippingInfoUpdate(phone="0"))

        release.set()
        result = await first

        assert result.state == CheckoutState.CONFIRMED
        client.create_order.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_confirmed_checkout_is_closed(self, checkout, filled_cart):
        checkout.update_shipping_info(FULL_FORM)
        await checkout.submit()

        assert checkout.closed
        with pytest.raises(CheckoutClosedError):
            checkout.update_shipping_info(ShippingInfoUpdate(district="Huye"))
        with pytest.raises(CheckoutClosedError):
            await checkout.submit()
