"""Order API routes"""

from fastapi import APIRouter, HTTPException, Depends

from ..core.config import settings
from ..core.session import BuyerSession
from ..models.checkout import PaymentInitiation, PaymentRequest
from ..services.errors import PaymentInitiationError
from ..services.marketplace_client import MarketplaceClient
from ..services.order_submitter import OrderSubmitter
from .dependencies import get_buyer_session, get_marketplace_client

router = APIRouter(prefix="/api/orders", tags=["Orders"])


@router.post("/{order_id}/pay", response_model=PaymentInitiation)
async def retry_payment(
    order_id: str,
    request: PaymentRequest,
    session: BuyerSession = Depends(get_buyer_session),
    client: MarketplaceClient = Depends(get_marketplace_client),
):
    """Start (or restart) mobile-money payment for an existing order"""
    submitter = OrderSubmitter(
        client,
        session.cart_store,
        orders_path=settings.orders_redirect_path,
    )
    try:
        return await submitter.retry_payment(order_id, request.phone_number)
    except PaymentInitiationError as e:
        raise HTTPException(status_code=502, detail=str(e))
