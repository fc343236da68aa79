# API Routes

from .cart import router as cart_router
from .checkout import router as checkout_router
from .orders import router as orders_router

__all__ = ["cart_router", "checkout_router", "orders_router"]
