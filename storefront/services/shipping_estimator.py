"""
Shipping Estimator

Quotes delivery options for the cart whenever the buyer's district settles.
Estimation is best effort: any failure degrades to "no options, no cost" so
checkout stays possible (pickup, unsupported district, API outage).
"""

import asyncio
import logging
from contextlib import suppress
from typing import Optional

from ..models.cart import Cart
from ..models.checkout import ShippingOption, ShippingQuoteItem, ShippingQuoteRequest
from .errors import ShippingEstimationError, UnknownShippingMethodError
from .marketplace_client import MarketplaceAPIError, MarketplaceClient

logger = logging.getLogger(__name__)


class ShippingEstimator:
    """
    Debounced, cancellable shipping quotes.

    Each scheduled estimation gets a sequence number; a response is applied
    only if its number is still the latest one issued.
    """

    def __init__(self, client: MarketplaceClient, debounce_seconds: float = 0.8):
        self.client = client
        self.debounce_seconds = debounce_seconds
        self.options: list[ShippingOption] = []
        self.selected_method: Optional[str] = None
        self.shipping_cost: float = 0.0
        self._sequence = 0
        self._pending: Optional[asyncio.Task] = None
        self._closed = False

    @property
    def calculating(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def schedule(self, district: str, cart: Cart) -> None:
        """(Re)start the debounce timer for a new district or cart"""
        if self._closed:
            return

        self.cancel()
        self._sequence += 1

        if not district.strip() or cart.is_empty:
            self._reset()
            return

        self._pending = asyncio.create_task(
            self._run(self._sequence, district.strip(), cart)
        )

    def select(self, method: str) -> ShippingOption:
        """Choose one of the current options and adopt its cost"""
        option = self._find(method)
        if option is None:
            raise UnknownShippingMethodError(method)
        self.selected_method = option.method
        self.shipping_cost = option.cost
        return option

    def cancel(self) -> None:
        """Drop the pending estimation, if any"""
        if self._pending is not None and not self._pending.done():
            self._pending.cancel()
        self._pending = None

    async def settle(self) -> None:
        """Wait until no estimation is pending"""
        while self._pending is not None and not self._pending.done():
            task = self._pending
            with suppress(asyncio.CancelledError):
                await task

    async def close(self) -> None:
        """Stop estimating; the checkout view is gone"""
        self._closed = True
        task = self._pending
        self.cancel()
        if task is not None:
            with suppress(asyncio.CancelledError):
                await task

    async def _run(self, sequence: int, district: str, cart: Cart) -> None:
        await asyncio.sleep(self.debounce_seconds)

        try:
            options = await self.estimate(district, cart)
        except ShippingEstimationError as e:
            if sequence != self._sequence:
                return
            logger.warning(f"Failed to calculate shipping for {district}: {e}")
            self._reset()
            return
        except Exception:
            if sequence != self._sequence:
                return
            logger.exception(f"Unexpected error calculating shipping for {district}")
            self._reset()
            return

        if sequence != self._sequence:
            logger.debug(f"Discarding stale shipping quote #{sequence} (latest #{self._sequence})")
            return

        self._apply(options)

    async def estimate(self, district: str, cart: Cart) -> list[ShippingOption]:
        """
        Quote shipping for the cart.

        The cooperative is taken from the first cart item's product record,
        since cart items do not carry it.
        """
        first_item = cart.items[0]
        try:
            product = await self.client.get_product_by_id(first_item.product_id)
            if not product.cooperative_id:
                raise ShippingEstimationError("Could not determine cooperative")

            return await self.client.calculate_shipping(
                ShippingQuoteRequest(
                    cooperative_id=product.cooperative_id,
                    buyer_district=district,
                    items=[
                        ShippingQuoteItem(product_id=item.product_id, quantity=item.quantity)
                        for item in cart.items
                    ],
                    total_amount=cart.total_amount,
                )
            )
        except MarketplaceAPIError as e:
            raise ShippingEstimationError(e.message) from e

    def _apply(self, options: list[ShippingOption]) -> None:
        self.options = options
        if not options:
            self.selected_method = None
            self.shipping_cost = 0.0
            return

        # A previously chosen method keeps its place if it is still offered,
        # otherwise the first option takes over.
        chosen = self._find(self.selected_method) if self.selected_method else None
        if chosen is None:
            chosen = options[0]
        self.selected_method = chosen.method
        self.shipping_cost = chosen.cost

    def _reset(self) -> None:
        self.options = []
        self.selected_method = None
        self.shipping_cost = 0.0

    def _find(self, method: Optional[str]) -> Optional[ShippingOption]:
        return next((option for option in self.options if option.method == method), None)
