"""Catalog product models"""

from pydantic import Field
from typing import Optional

from .base import WireModel


class CooperativeSummary(WireModel):
    """Cooperative embedded in a product record"""
    id: str
    name: str


class Product(WireModel):
    """Product in the marketplace catalog"""
    id: str
    cooperative_id: str
    name: str
    description: str = ""
    category: Optional[str] = None
    price: float = Field(ge=0)
    unit: str = "unit"
    available_stock: int = Field(ge=0, default=0)
    images: list[str] = []
    is_active: bool = True
    cooperative: Optional[CooperativeSummary] = None
