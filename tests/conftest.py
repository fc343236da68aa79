"""
Shared test fixtures for the storefront test suite.
"""

from unittest.mock import AsyncMock

import pytest

from storefront.core.storage import InMemoryStorage
from storefront.models.cart import CartItem
from storefront.models.checkout import CreatedOrder, PaymentInitiation, ShippingInfo, ShippingOption
from storefront.models.product import CooperativeSummary, Product
from storefront.services.cart_store import CartStore
from storefront.services.marketplace_client import MarketplaceClient


# ============================================================================
# Builders
# ============================================================================


def make_item(product_id: str = "prod-1", price: float = 5000, quantity: int = 1, **overrides) -> CartItem:
    """Create a CartItem with sensible defaults."""
    defaults = {
        "product_id": product_id,
        "name": f"Product {product_id}",
        "price": price,
        "quantity": quantity,
        "unit": "kg",
        "cooperative": "Abahuzamugambi",
    }
    defaults.update(overrides)
    return CartItem(**defaults)


def make_product(product_id: str = "prod-1", **overrides) -> Product:
    defaults = {
        "id": product_id,
        "cooperative_id": "coop-1",
        "name": "Arabica Coffee",
        "price": 5000,
        "unit": "kg",
        "available_stock": 10,
        "images": ["/uploads/coffee.jpg"],
        "cooperative": CooperativeSummary(id="coop-1", name="Abahuzamugambi"),
    }
    defaults.update(overrides)
    return Product(**defaults)


def make_shipping_info(**overrides) -> ShippingInfo:
    defaults = {
        "full_name": "Aline Uwase",
        "phone": "0788123456",
        "address": "KG 11 Ave",
        "district": "Kigali",
        "sector": "Kimironko",
    }
    defaults.update(overrides)
    return ShippingInfo(**defaults)


def option(method: str, cost: float, days: int = 2) -> ShippingOption:
    return ShippingOption(method=method, description=f"{method} delivery", cost=cost, estimated_days=days)


class FailingStorage(InMemoryStorage):
    """In-memory storage whose reads or writes can be made to fail."""

    def __init__(self, fail_reads: bool = False, fail_writes: bool = False, fail_deletes: bool = False):
        super().__init__()
        self.fail_reads = fail_reads
        self.fail_writes = fail_writes
        self.fail_deletes = fail_deletes

    def get(self, key):
        if self.fail_reads:
            raise OSError("storage unavailable")
        return super().get(key)

    def set(self, key, value):
        if self.fail_writes:
            raise OSError("disk full")
        super().set(key, value)

    def delete(self, key):
        if self.fail_deletes:
            raise OSError("storage unavailable")
        super().delete(key)


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def storage():
    return InMemoryStorage()


@pytest.fixture
def cart_store(storage):
    return CartStore(storage)


@pytest.fixture
def client():
    """Marketplace client double with happy-path answers."""
    fake = AsyncMock(spec=MarketplaceClient)
    fake.get_product_by_id.return_value = make_product()
    fake.calculate_shipping.return_value = [option("STANDARD", 2000)]
    fake.create_order.return_value = CreatedOrder(id="order123", status="PENDING")
    fake.process_payment.return_value = PaymentInitiation(transaction_ref="TXN-998")
    return fake
