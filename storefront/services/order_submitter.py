"""
Order Submitter

Turns a validated checkout into an order and, for mobile-money methods,
starts the payment. Payment trouble never undoes an order: once the order
exists the cart is cleared and the buyer is sent to their order list.
"""

import logging
from typing import Optional

from ..models.checkout import (
    Notice,
    NoticeVariant,
    OrderLine,
    OrderPayload,
    OrderResult,
    PaymentInitiation,
    PaymentMethod,
    ShippingInfo,
)
from .cart_store import CartStore
from .errors import EmptyCartError, OrderCreationError, PaymentInitiationError
from .marketplace_client import MarketplaceAPIError, MarketplaceClient
from .payment_strategies import PAYMENT_STRATEGIES, PaymentStrategy

logger = logging.getLogger(__name__)


class OrderSubmitter:
    """Creates orders from the current cart"""

    def __init__(
        self,
        client: MarketplaceClient,
        cart_store: CartStore,
        strategies: Optional[dict[PaymentMethod, PaymentStrategy]] = None,
        default_shipping_method: str = "STANDARD",
        orders_path: str = "/buyer-orders",
    ):
        self.client = client
        self.cart_store = cart_store
        self.strategies = strategies or PAYMENT_STRATEGIES
        self.default_shipping_method = default_shipping_method
        self.orders_path = orders_path

    def compose(
        self,
        shipping_info: ShippingInfo,
        payment_method: PaymentMethod,
        shipping_method: Optional[str],
        shipping_cost: float,
    ) -> OrderPayload:
        """Build the order body from the cart as it is right now"""
        cart = self.cart_store.cart
        if cart.is_empty:
            raise EmptyCartError()

        return OrderPayload(
            items=[
                OrderLine(
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=item.price,
                )
                for item in cart.items
            ],
            shipping_info=shipping_info,
            payment_method=payment_method,
            total_amount=cart.total_amount + shipping_cost,
            shipping_method=shipping_method or self.default_shipping_method,
            shipping_cost=shipping_cost,
        )

    async def submit(
        self,
        shipping_info: ShippingInfo,
        payment_method: PaymentMethod,
        shipping_method: Optional[str] = None,
        shipping_cost: float = 0.0,
    ) -> OrderResult:
        """
        Create the order, then start payment when the method calls for it.

        Raises:
            OrderCreationError: the order was not created; the cart is untouched
        """
        payload = self.compose(shipping_info, payment_method, shipping_method, shipping_cost)

        try:
            order = await self.client.create_order(payload)
        except MarketplaceAPIError as e:
            logger.error(f"Order creation failed: {e.status} - {e.message}")
            raise OrderCreationError(
                e.message or "Failed to place order. Please try again.",
                status=e.status,
            ) from e

        logger.info(
            f"Order {order.id} created: {payload.total_amount} "
            f"({payment_method.value}, shipping {payload.shipping_method})"
        )

        strategy = self.strategies[payment_method]
        payment: Optional[PaymentInitiation] = None

        if strategy.requires_auto_initiation:
            try:
                payment = await self.initiate_payment(order.id, shipping_info.phone)
                notice = Notice(
                    title="Payment Initiated!",
                    description=(
                        f"Please check your phone ({shipping_info.phone}) for the USSD prompt "
                        f"to approve the payment. Transaction reference: {payment.transaction_ref}"
                    ),
                )
            except PaymentInitiationError as e:
                notice = self._payment_pending_notice(str(e))
            except Exception:
                # The order exists at this point; never let payment undo it
                logger.exception(f"Unexpected error initiating payment for order {order.id}")
                notice = self._payment_pending_notice()
        else:
            notice = Notice(
                title="Order placed successfully!",
                description="Your order has been created and is being processed.",
            )

        try:
            self.cart_store.clear()
        except OSError:
            # Reported as placed regardless; the order already exists
            logger.exception(f"Order {order.id} created but the cart could not be cleared")

        return OrderResult(
            order_id=order.id,
            payment=payment,
            notices=[notice],
            redirect_to=self.orders_path,
        )

    async def retry_payment(self, order_id: str, phone_number: str) -> PaymentInitiation:
        """Restart payment for an order whose first initiation did not go through"""
        logger.info(f"Retrying payment for order {order_id}")
        return await self.initiate_payment(order_id, phone_number)

    async def initiate_payment(self, order_id: str, phone_number: str) -> PaymentInitiation:
        """Start a mobile-money payment for an existing order"""
        try:
            payment = await self.client.process_payment(order_id, phone_number)
        except MarketplaceAPIError as e:
            logger.warning(f"Payment initiation for order {order_id} failed: {e.message}")
            raise PaymentInitiationError(order_id, e.message) from e

        logger.info(f"Payment initiated for order {order_id}: {payment.transaction_ref}")
        return payment

    @staticmethod
    def _payment_pending_notice(reason: Optional[str] = None) -> Notice:
        description = "Order was created successfully."
        if reason:
            description += f" {reason.rstrip('.')}."
        return Notice(
            title="Order created, payment pending",
            description=f"{description} You can initiate payment from your orders page.",
            variant=NoticeVariant.WARNING,
        )
