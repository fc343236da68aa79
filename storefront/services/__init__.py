# Checkout services

from .marketplace_client import (
    MarketplaceClient,
    MarketplaceAPIError,
    AuthenticationError,
    ResponseShapeError,
)
from .cart_store import CartStore
from .shipping_estimator import ShippingEstimator
from .payment_strategies import PaymentStrategy, PAYMENT_STRATEGIES
from .order_submitter import OrderSubmitter
from .checkout_coordinator import CheckoutCoordinator

__all__ = [
    "MarketplaceClient",
    "MarketplaceAPIError",
    "AuthenticationError",
    "ResponseShapeError",
    "CartStore",
    "ShippingEstimator",
    "PaymentStrategy",
    "PAYMENT_STRATEGIES",
    "OrderSubmitter",
    "CheckoutCoordinator",
]
