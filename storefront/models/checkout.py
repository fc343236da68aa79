"""Checkout and order models"""

from pydantic import Field
from typing import ClassVar, Optional
from enum import Enum

from .base import WireModel


class PaymentMethod(str, Enum):
    MTN_MOBILE_MONEY = "MTN_MOBILE_MONEY"
    AIRTEL_MOBILE_MONEY = "AIRTEL_MOBILE_MONEY"
    BANK_TRANSFER = "BANK_TRANSFER"
    CASH_ON_DELIVERY = "CASH_ON_DELIVERY"


class CheckoutState(str, Enum):
    COLLECTING_INFO = "collecting_info"
    SUBMITTING = "submitting"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class NoticeVariant(str, Enum):
    DEFAULT = "default"
    WARNING = "warning"
    DESTRUCTIVE = "destructive"


class ShippingInfo(WireModel):
    """Delivery details collected from the buyer"""
    full_name: str = ""
    phone: str = ""
    address: str = ""
    district: str = ""
    sector: str = ""
    delivery_notes: Optional[str] = None

    REQUIRED_FIELDS: ClassVar[dict[str, str]] = {
        "full_name": "Full name",
        "phone": "Phone number",
        "address": "Address",
        "district": "District",
        "sector": "Sector",
    }

    def missing_fields(self) -> list[str]:
        """Names of required fields that are still blank"""
        return [
            name for name in self.REQUIRED_FIELDS
            if not getattr(self, name).strip()
        ]


class ShippingInfoUpdate(WireModel):
    """Partial edit of the shipping form"""
    full_name: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    district: Optional[str] = None
    sector: Optional[str] = None
    delivery_notes: Optional[str] = None


class ShippingOption(WireModel):
    """Delivery option quoted for a (cooperative, district) pair"""
    method: str
    description: str = ""
    cost: float = Field(ge=0)
    estimated_days: int = Field(gt=0)


class ShippingQuoteItem(WireModel):
    product_id: str
    quantity: int = Field(gt=0)


class ShippingQuoteRequest(WireModel):
    """Body of the shipping-rate calculation"""
    cooperative_id: str
    buyer_district: str
    items: list[ShippingQuoteItem]
    total_amount: float


class OrderLine(WireModel):
    """Order line with the unit price captured at submission"""
    product_id: str
    quantity: int = Field(gt=0)
    unit_price: float = Field(ge=0)


class OrderPayload(WireModel):
    """Body of the order-creation call"""
    items: list[OrderLine]
    shipping_info: ShippingInfo
    payment_method: PaymentMethod
    total_amount: float
    shipping_method: str
    shipping_cost: float = Field(ge=0)


class CreatedOrder(WireModel):
    """Order record returned by the marketplace"""
    id: str
    status: Optional[str] = None
    payment_status: Optional[str] = None
    total_amount: Optional[float] = None


class PaymentInitiation(WireModel):
    """Result of starting a mobile-money payment"""
    transaction_ref: str
    status: Optional[str] = None
    message: Optional[str] = None


class PaymentRequest(WireModel):
    """Request to (re)initiate payment for an existing order"""
    phone_number: str = Field(min_length=1)


class Notice(WireModel):
    """Message shown to the buyer"""
    title: str
    description: str
    variant: NoticeVariant = NoticeVariant.DEFAULT


class OrderResult(WireModel):
    """Outcome of a successful order submission"""
    order_id: str
    payment: Optional[PaymentInitiation] = None
    notices: list[Notice] = []
    redirect_to: str


class CheckoutResult(WireModel):
    """Outcome of one submit attempt"""
    state: CheckoutState
    notices: list[Notice] = []
    field_errors: dict[str, str] = {}
    order: Optional[OrderResult] = None
    redirect_to: Optional[str] = None


class PaymentMethodRequest(WireModel):
    payment_method: PaymentMethod


class ShippingMethodRequest(WireModel):
    method: str


class PaymentOption(WireModel):
    value: PaymentMethod
    label: str


class CheckoutView(WireModel):
    """What the checkout screen shows at a given moment"""
    empty: bool
    state: CheckoutState
    # None while the cart is empty: there is no form to fill in
    shipping_info: Optional[ShippingInfo] = None
    payment_method: PaymentMethod
    payment_options: list[PaymentOption] = []
    shipping_options: list[ShippingOption] = []
    selected_shipping_method: Optional[str] = None
    shipping_cost: float = 0.0
    subtotal: float = 0.0
    total: float = 0.0
    calculating_shipping: bool = False
    field_errors: dict[str, str] = {}
