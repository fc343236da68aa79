"""Session management for buyer storefront sessions"""

import re
import asyncio
import uuid
import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional
from dataclasses import dataclass

from .config import Settings
from .storage import JsonFileStorage, KeyValueStorage
from ..services.cart_store import CartStore
from ..services.checkout_coordinator import CheckoutCoordinator
from ..services.marketplace_client import MarketplaceClient
from ..services.order_submitter import OrderSubmitter
from ..services.shipping_estimator import ShippingEstimator

logger = logging.getLogger(__name__)

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9-]{8,64}$")

StorageFactory = Callable[[str], KeyValueStorage]


@dataclass
class BuyerSession:
    """One buyer's browsing session: a cart and, while open, a checkout"""
    session_id: str
    created_at: datetime
    updated_at: datetime
    cart_store: CartStore
    checkout: Optional[CheckoutCoordinator] = None

    def touch(self) -> None:
        self.updated_at = datetime.utcnow()


class SessionManager:
    """Manages buyer sessions"""

    def __init__(self, settings: Settings, storage_factory: Optional[StorageFactory] = None):
        self.settings = settings
        self.sessions: dict[str, BuyerSession] = {}
        self._storage_factory = storage_factory or self._file_storage

    def _file_storage(self, session_id: str) -> KeyValueStorage:
        return JsonFileStorage(Path(self.settings.cart_storage_dir) / session_id)

    def create_session(self, session_id: Optional[str] = None) -> BuyerSession:
        """
        Create a session.

        A known-good id supplied by the caller is reused so a returning buyer
        gets their persisted cart back.
        """
        if not session_id or not _SESSION_ID_PATTERN.match(session_id):
            session_id = str(uuid.uuid4())

        now = datetime.utcnow()
        session = BuyerSession(
            session_id=session_id,
            created_at=now,
            updated_at=now,
            cart_store=CartStore(
                storage=self._storage_factory(session_id),
                storage_key=self.settings.cart_storage_key,
            ),
        )
        self.sessions[session_id] = session
        return session

    def get_session(self, session_id: str) -> Optional[BuyerSession]:
        """Get session by ID"""
        return self.sessions.get(session_id)

    def get_or_create_session(self, session_id: Optional[str] = None) -> BuyerSession:
        """Get existing session or create new one"""
        if session_id and session_id in self.sessions:
            session = self.sessions[session_id]
        else:
            session = self.create_session(session_id)
        session.touch()
        return session

    def open_checkout(self, session: BuyerSession, client: MarketplaceClient) -> CheckoutCoordinator:
        """Return the session's open checkout, starting a new one if needed"""
        if session.checkout is None or session.checkout.closed:
            session.checkout = CheckoutCoordinator(
                cart_store=session.cart_store,
                estimator=ShippingEstimator(
                    client,
                    debounce_seconds=self.settings.shipping_debounce_seconds,
                ),
                submitter=OrderSubmitter(
                    client,
                    session.cart_store,
                    default_shipping_method=self.settings.default_shipping_method,
                    orders_path=self.settings.orders_redirect_path,
                ),
            )
        return session.checkout

    async def close_checkout(self, session: BuyerSession) -> None:
        """Buyer left the checkout view"""
        if session.checkout is not None:
            await session.checkout.close()
            session.checkout = None

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session"""
        session = self.sessions.pop(session_id, None)
        if session is None:
            return False
        await self.close_checkout(session)
        return True

    async def cleanup_old_sessions(self, max_age_hours: Optional[int] = None) -> int:
        """Remove sessions older than max_age_hours"""
        max_age_hours = max_age_hours or self.settings.session_max_age_hours
        now = datetime.utcnow()
        old_sessions = [
            sid for sid, session in self.sessions.items()
            if (now - session.updated_at).total_seconds() > max_age_hours * 3600
        ]
        for sid in old_sessions:
            await self.delete_session(sid)
        if old_sessions:
            logger.info(f"Removed {len(old_sessions)} idle sessions")
        return len(old_sessions)

    async def run_cleanup(self, interval_seconds: Optional[float] = None) -> None:
        """Remove idle sessions every interval until cancelled"""
        interval_seconds = interval_seconds or self.settings.session_cleanup_interval_seconds
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.cleanup_old_sessions()
            except Exception:
                logger.exception("Session cleanup failed")

    async def close_all(self) -> None:
        for sid in list(self.sessions):
            await self.delete_session(sid)
