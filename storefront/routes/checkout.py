"""Checkout API routes"""

import logging
from fastapi import APIRouter, HTTPException, Depends, Response

from ..core.session import BuyerSession, SessionManager
from ..models.checkout import (
    CheckoutResult,
    CheckoutState,
    CheckoutView,
    PaymentMethodRequest,
    ShippingInfoUpdate,
    ShippingMethodRequest,
)
from ..services.checkout_coordinator import CheckoutCoordinator
from ..services.errors import (
    CheckoutClosedError,
    SubmissionInProgressError,
    UnknownShippingMethodError,
)
from .dependencies import get_buyer_session, get_checkout, get_session_manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/checkout", tags=["Checkout"])

SUBMIT_STATUS_CODES = {
    CheckoutState.CONFIRMED: 201,
    CheckoutState.COLLECTING_INFO: 422,
    CheckoutState.FAILED: 502,
}


@router.get("", response_model=CheckoutView)
async def get_checkout_view(checkout: CheckoutCoordinator = Depends(get_checkout)):
    """Current checkout form, shipping options and totals"""
    return checkout.view()


@router.patch("/shipping-info", response_model=CheckoutView)
async def update_shipping_info(
    request: ShippingInfoUpdate,
    checkout: CheckoutCoordinator = Depends(get_checkout),
):
    """Edit shipping fields; a district change triggers a new shipping quote"""
    try:
        checkout.update_shipping_info(request)
    except (SubmissionInProgressError, CheckoutClosedError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return checkout.view()


@router.put("/payment-method", response_model=CheckoutView)
async def select_payment_method(
    request: PaymentMethodRequest,
    checkout: CheckoutCoordinator = Depends(get_checkout),
):
    """Choose how the buyer pays"""
    try:
        checkout.select_payment_method(request.payment_method)
    except (SubmissionInProgressError, CheckoutClosedError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return checkout.view()


@router.put("/shipping-method", response_model=CheckoutView)
async def select_shipping_method(
    request: ShippingMethodRequest,
    checkout: CheckoutCoordinator = Depends(get_checkout),
):
    """Choose one of the quoted shipping options"""
    try:
        checkout.select_shipping_method(request.method)
    except UnknownShippingMethodError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (SubmissionInProgressError, CheckoutClosedError) as e:
        raise HTTPException(status_code=409, detail=str(e))
    return checkout.view()


@router.post("/submit", response_model=CheckoutResult)
async def submit_checkout(
    response: Response,
    checkout: CheckoutCoordinator = Depends(get_checkout),
):
    """
    Place the order.

    - 201: order created (payment notices included)
    - 422: required information missing or cart empty; nothing was sent
    - 502: the marketplace refused the order; the cart is kept for a retry
    """
    try:
        result = await checkout.submit()
    except (SubmissionInProgressError, CheckoutClosedError) as e:
        raise HTTPException(status_code=409, detail=str(e))

    response.status_code = SUBMIT_STATUS_CODES.get(result.state, 200)
    return result


@router.delete("")
async def close_checkout(
    session: BuyerSession = Depends(get_buyer_session),
    manager: SessionManager = Depends(get_session_manager),
):
    """Leave the checkout view; pending shipping quotes are cancelled"""
    await manager.close_checkout(session)
    return {"message": "Checkout closed"}
