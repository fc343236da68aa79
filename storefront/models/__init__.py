# Storefront Models

from .product import Product, CooperativeSummary
from .cart import Cart, CartItem, AddToCartRequest, UpdateCartItemRequest, CartResponse
from .checkout import (
    CheckoutResult,
    CheckoutState,
    CreatedOrder,
    Notice,
    NoticeVariant,
    OrderLine,
    OrderPayload,
    OrderResult,
    PaymentInitiation,
    PaymentMethod,
    ShippingInfo,
    ShippingInfoUpdate,
    ShippingOption,
    ShippingQuoteItem,
    ShippingQuoteRequest,
)
from .envelope import ApiEnvelope

__all__ = [
    "Product",
    "CooperativeSummary",
    "Cart",
    "CartItem",
    "AddToCartRequest",
    "UpdateCartItemRequest",
    "CartResponse",
    "CheckoutResult",
    "CheckoutState",
    "CreatedOrder",
    "Notice",
    "NoticeVariant",
    "OrderLine",
    "OrderPayload",
    "OrderResult",
    "PaymentInitiation",
    "PaymentMethod",
    "ShippingInfo",
    "ShippingInfoUpdate",
    "ShippingOption",
    "ShippingQuoteItem",
    "ShippingQuoteRequest",
    "ApiEnvelope",
]
