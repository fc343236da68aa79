"""Checkout workflow errors"""

from typing import Optional


class CheckoutError(Exception):
    """Base exception for checkout errors"""
    pass


class CheckoutValidationError(CheckoutError):
    """Checkout input is incomplete; nothing is sent to the marketplace"""

    title = "Missing information"

    def __init__(self, message: str, field_errors: Optional[dict[str, str]] = None):
        super().__init__(message)
        self.field_errors = field_errors or {}


class EmptyCartError(CheckoutValidationError):
    """Submit attempted with nothing in the cart"""

    title = "Empty cart"

    def __init__(self):
        super().__init__("Your cart is empty. Add some items before checkout.")


class OutOfStockError(CheckoutError):
    """Product has no stock left to add"""

    def __init__(self, product_id: str, available: int):
        super().__init__(f"Not enough stock available for {product_id} (available: {available})")
        self.product_id = product_id
        self.available = available


class ShippingEstimationError(CheckoutError):
    """Shipping options could not be computed"""
    pass


class UnknownShippingMethodError(CheckoutError):
    """Selected shipping method is not among the current options"""

    def __init__(self, method: str):
        super().__init__(f"Shipping method {method!r} is not available")
        self.method = method


class OrderCreationError(CheckoutError):
    """The marketplace did not create the order"""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class PaymentInitiationError(CheckoutError):
    """Mobile-money payment could not be started"""

    def __init__(self, order_id: str, message: str):
        super().__init__(message)
        self.order_id = order_id


class SubmissionInProgressError(CheckoutError):
    """A submit is already running for this checkout"""
    pass


class CheckoutClosedError(CheckoutError):
    """Checkout is already confirmed or was closed"""
    pass
