"""Cart API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.session import BuyerSession
from ..models.cart import (
    AddToCartRequest,
    CartItem,
    CartResponse,
    UpdateCartItemRequest,
)
from ..services.errors import OutOfStockError
from ..services.marketplace_client import MarketplaceAPIError, MarketplaceClient
from .dependencies import get_buyer_session, get_marketplace_client

router = APIRouter(prefix="/api/cart", tags=["Cart"])


@router.get("", response_model=CartResponse)
async def get_cart(session: BuyerSession = Depends(get_buyer_session)):
    """Get the session's cart"""
    return CartResponse(session_id=session.session_id, cart=session.cart_store.cart)


@router.post("/items", response_model=CartResponse)
async def add_to_cart(
    request: AddToCartRequest,
    session: BuyerSession = Depends(get_buyer_session),
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """Add a catalog product to the cart"""
    try:
        product = await client.get_product_by_id(request.product_id)
    except MarketplaceAPIError as e:
        status_code = 404 if e.status == 404 else 502
        raise HTTPException(status_code=status_code, detail=e.message)

    if not product.is_active:
        raise HTTPException(status_code=400, detail=f"{product.name} is not available")

    try:
        cart = session.cart_store.add_item(CartItem.from_product(product, request.quantity))
    except OutOfStockError as e:
        raise HTTPException(
            status_code=400,
            detail=f"Insufficient stock. Available: {e.available}",
        )

    item = cart.find(product.id)
    return CartResponse(
        session_id=session.session_id,
        cart=cart,
        message=f"{product.name} ({item.quantity} {product.unit}) in cart",
    )


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_cart_item(
    product_id: str,
    request: UpdateCartItemRequest,
    session: BuyerSession = Depends(get_buyer_session),
):
    """Set an item's quantity; zero or less removes it"""
    cart = session.cart_store.update_quantity(product_id, request.quantity)
    message = "Item removed" if request.quantity <= 0 else "Cart updated"
    return CartResponse(session_id=session.session_id, cart=cart, message=message)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_from_cart(
    product_id: str,
    session: BuyerSession = Depends(get_buyer_session),
):
    """Remove an item from the cart"""
    cart = session.cart_store.remove_item(product_id)
    return CartResponse(session_id=session.session_id, cart=cart, message="Item removed")
