"""Cart models"""

from pydantic import Field, computed_field
from typing import Optional

from .base import WireModel
from .product import Product


class CartItem(WireModel):
    """Item in the buyer's cart, keyed by product_id"""
    product_id: str
    name: str
    price: float = Field(ge=0)
    quantity: int = Field(ge=1)
    unit: str = "unit"
    image: Optional[str] = None
    cooperative: str = "Unknown"
    # None when the stock level was not known at the time the item was added
    available_stock: Optional[int] = Field(default=None, ge=0)

    @property
    def line_total(self) -> float:
        return self.price * self.quantity

    @classmethod
    def from_product(cls, product: Product, quantity: int = 1) -> "CartItem":
        """Build a cart line from a catalog product"""
        return cls(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=quantity,
            unit=product.unit,
            image=product.images[0] if product.images else None,
            cooperative=product.cooperative.name if product.cooperative else "Unknown",
            available_stock=product.available_stock,
        )


class Cart(WireModel):
    """Snapshot of the buyer's cart"""
    items: list[CartItem] = []

    @computed_field
    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @computed_field
    @property
    def total_amount(self) -> float:
        return sum(item.line_total for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def find(self, product_id: str) -> Optional[CartItem]:
        return next(
            (item for item in self.items if item.product_id == product_id),
            None,
        )


class AddToCartRequest(WireModel):
    """Request to add a catalog product to the cart"""
    product_id: str
    quantity: int = Field(default=1, gt=0)


class UpdateCartItemRequest(WireModel):
    """Request to set an item's quantity; zero or less removes it"""
    quantity: int


class CartResponse(WireModel):
    """Cart API response"""
    session_id: str
    cart: Cart
    message: Optional[str] = None
