"""Payment method capabilities"""

from dataclasses import dataclass

from ..models.checkout import PaymentMethod


@dataclass(frozen=True)
class PaymentStrategy:
    """How the checkout treats a payment method once the order exists"""
    method: PaymentMethod
    label: str
    # Start the payment right after order creation using the collected phone
    requires_auto_initiation: bool = False


PAYMENT_STRATEGIES: dict[PaymentMethod, PaymentStrategy] = {
    PaymentMethod.MTN_MOBILE_MONEY: PaymentStrategy(
        method=PaymentMethod.MTN_MOBILE_MONEY,
        label="MTN Mobile Money",
        requires_auto_initiation=True,
    ),
    PaymentMethod.AIRTEL_MOBILE_MONEY: PaymentStrategy(
        method=PaymentMethod.AIRTEL_MOBILE_MONEY,
        label="AIRTEL Mobile Money",
        requires_auto_initiation=True,
    ),
    PaymentMethod.BANK_TRANSFER: PaymentStrategy(
        method=PaymentMethod.BANK_TRANSFER,
        label="Bank Transfer",
    ),
    PaymentMethod.CASH_ON_DELIVERY: PaymentStrategy(
        method=PaymentMethod.CASH_ON_DELIVERY,
        label="Cash on Delivery",
    ),
}
