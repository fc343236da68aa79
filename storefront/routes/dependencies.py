"""Shared route dependencies"""

from typing import Optional
from fastapi import Depends, Header, Response

from ..core.config import settings
from ..core.session import BuyerSession, SessionManager
from ..services.checkout_coordinator import CheckoutCoordinator
from ..services.marketplace_client import MarketplaceClient

# Initialized lazily, torn down in the application lifespan
marketplace_client: Optional[MarketplaceClient] = None
session_manager: Optional[SessionManager] = None


def get_marketplace_client() -> MarketplaceClient:
    """Get or create marketplace client"""
    global marketplace_client
    if marketplace_client is None:
        marketplace_client = MarketplaceClient(
            base_url=settings.marketplace_api_url,
            api_token=settings.marketplace_api_token,
            timeout=settings.request_timeout,
            retries=settings.request_retries,
        )
    return marketplace_client


def get_session_manager() -> SessionManager:
    """Get or create session manager"""
    global session_manager
    if session_manager is None:
        session_manager = SessionManager(settings)
    return session_manager


async def get_buyer_session(
    response: Response,
    x_session_id: Optional[str] = Header(None),
    manager: SessionManager = Depends(get_session_manager),
) -> BuyerSession:
    """Resolve the caller's session from the X-Session-Id header"""
    session = manager.get_or_create_session(x_session_id)
    response.headers["X-Session-Id"] = session.session_id
    return session


async def get_checkout(
    session: BuyerSession = Depends(get_buyer_session),
    manager: SessionManager = Depends(get_session_manager),
    client: MarketplaceClient = Depends(get_marketplace_client),
) -> CheckoutCoordinator:
    return manager.open_checkout(session, client)
