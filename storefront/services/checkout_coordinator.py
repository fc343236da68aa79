"""
Checkout Coordinator

Drives one checkout attempt:

    COLLECTING_INFO -> SUBMITTING -> CONFIRMED
                                  -> FAILED -> (edit / retry)

Required fields are checked only when the buyer submits. Editing the
district (or the cart) re-runs the debounced shipping estimation.
"""

import logging

from ..models.cart import Cart
from ..models.checkout import (
    CheckoutResult,
    CheckoutState,
    CheckoutView,
    Notice,
    NoticeVariant,
    PaymentMethod,
    PaymentOption,
    ShippingInfo,
    ShippingInfoUpdate,
    ShippingOption,
)
from .cart_store import CartStore
from .errors import (
    CheckoutClosedError,
    CheckoutValidationError,
    EmptyCartError,
    OrderCreationError,
    SubmissionInProgressError,
)
from .order_submitter import OrderSubmitter
from .shipping_estimator import ShippingEstimator

logger = logging.getLogger(__name__)


class CheckoutCoordinator:
    """State machine behind the checkout form"""

    def __init__(
        self,
        cart_store: CartStore,
        estimator: ShippingEstimator,
        submitter: OrderSubmitter,
        payment_method: PaymentMethod = PaymentMethod.MTN_MOBILE_MONEY,
    ):
        self.cart_store = cart_store
        self.estimator = estimator
        self.submitter = submitter
        self.payment_method = payment_method
        self.state = CheckoutState.COLLECTING_INFO
        self.shipping_info = ShippingInfo()
        self.field_errors: dict[str, str] = {}
        self._closed = False
        cart_store.subscribe(self._on_cart_changed)

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def total(self) -> float:
        """Cart total plus the currently selected shipping cost"""
        return self.cart_store.cart.total_amount + self.estimator.shipping_cost

    def view(self) -> CheckoutView:
        cart = self.cart_store.cart
        if cart.is_empty:
            return CheckoutView(
                empty=True,
                state=self.state,
                payment_method=self.payment_method,
            )

        return CheckoutView(
            empty=False,
            state=self.state,
            shipping_info=self.shipping_info,
            payment_method=self.payment_method,
            payment_options=[
                PaymentOption(value=method, label=strategy.label)
                for method, strategy in self.submitter.strategies.items()
            ],
            shipping_options=self.estimator.options,
            selected_shipping_method=self.estimator.selected_method,
            shipping_cost=self.estimator.shipping_cost,
            subtotal=cart.total_amount,
            total=cart.total_amount + self.estimator.shipping_cost,
            calculating_shipping=self.estimator.calculating,
            field_errors=self.field_errors,
        )

    def update_shipping_info(self, changes: ShippingInfoUpdate) -> ShippingInfo:
        """Apply a partial edit of the shipping form"""
        self._ensure_editable()

        updates = changes.model_dump(exclude_none=True)
        district_changed = (
            "district" in updates and updates["district"] != self.shipping_info.district
        )
        self.shipping_info = self.shipping_info.model_copy(update=updates)

        for name in updates:
            self.field_errors.pop(name, None)
        if self.state == CheckoutState.FAILED:
            self.state = CheckoutState.COLLECTING_INFO

        if district_changed:
            self.estimator.schedule(self.shipping_info.district, self.cart_store.cart)

        return self.shipping_info

    def select_payment_method(self, method: PaymentMethod) -> None:
        self._ensure_editable()
        if method not in self.submitter.strategies:
            raise ValueError(f"Unsupported payment method: {method}")
        self.payment_method = method

    def select_shipping_method(self, method: str) -> ShippingOption:
        self._ensure_editable()
        return self.estimator.select(method)

    def validate(self) -> None:
        """
        Raises:
            EmptyCartError: nothing to order
            CheckoutValidationError: a required shipping field is blank
        """
        if self.cart_store.cart.is_empty:
            raise EmptyCartError()

        missing = self.shipping_info.missing_fields()
        if missing:
            raise CheckoutValidationError(
                "Please fill in all required shipping information.",
                field_errors={
                    name: f"{ShippingInfo.REQUIRED_FIELDS[name]} is required"
                    for name in missing
                },
            )

    async def submit(self) -> CheckoutResult:
        """
        Validate and place the order.

        Validation problems and order-creation failures are returned as
        results; the buyer may edit and submit again after either.
        """
        self._ensure_editable()

        try:
            self.validate()
        except CheckoutValidationError as e:
            logger.debug(f"Checkout submission blocked: {e}")
            self.state = CheckoutState.COLLECTING_INFO
            self.field_errors = e.field_errors
            return CheckoutResult(
                state=self.state,
                notices=[Notice(title=e.title, description=str(e), variant=NoticeVariant.DESTRUCTIVE)],
                field_errors=e.field_errors,
            )

        self.field_errors = {}
        self.state = CheckoutState.SUBMITTING

        try:
            order = await self.submitter.submit(
                shipping_info=self.shipping_info,
                payment_method=self.payment_method,
                shipping_method=self.estimator.selected_method,
                shipping_cost=self.estimator.shipping_cost,
            )
        except OrderCreationError as e:
            self.state = CheckoutState.FAILED
            return CheckoutResult(
                state=self.state,
                notices=[Notice(title="Order failed", description=str(e), variant=NoticeVariant.DESTRUCTIVE)],
            )
        except BaseException:
            self.state = CheckoutState.FAILED
            raise

        self.state = CheckoutState.CONFIRMED
        await self.close()

        return CheckoutResult(
            state=self.state,
            notices=order.notices,
            order=order,
            redirect_to=order.redirect_to,
        )

    async def close(self) -> None:
        """Detach from the cart and stop shipping estimation"""
        if self._closed:
            return
        self._closed = True
        self.cart_store.unsubscribe(self._on_cart_changed)
        await self.estimator.close()

    def _ensure_editable(self) -> None:
        if self.state == CheckoutState.SUBMITTING:
            raise SubmissionInProgressError("Order submission is already in progress")
        if self._closed or self.state == CheckoutState.CONFIRMED:
            raise CheckoutClosedError("This checkout is no longer open")

    def _on_cart_changed(self, cart: Cart) -> None:
        if self._closed:
            return
        self.estimator.schedule(self.shipping_info.district, cart)
