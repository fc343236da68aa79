"""
Marketplace API Client

HTTP client for the remote cooperative marketplace API.
Every response is validated against a strict envelope at this boundary.
"""

import logging
from typing import Optional, Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, RetryCallState, retry_if_result, stop_after_attempt

from ..models.checkout import (
    CreatedOrder,
    OrderPayload,
    PaymentInitiation,
    ShippingOption,
    ShippingQuoteRequest,
)
from ..models.envelope import ApiEnvelope
from ..models.product import Product

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Longest Retry-After we are willing to honor
MAX_RETRY_WAIT_SECONDS = 10.0


def _is_rate_limited(response: httpx.Response) -> bool:
    return response.status_code == 429


class MarketplaceAPIError(Exception):
    """Base exception for marketplace API errors"""

    def __init__(self, status: int, message: str, details: Any = None):
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details


class AuthenticationError(MarketplaceAPIError):
    """The API rejected our credentials"""
    pass


class ResponseShapeError(MarketplaceAPIError):
    """The API answered with a body that does not match the expected schema"""
    pass


class MarketplaceClient:
    """
    Client for the marketplace API.

    Covers the calls the checkout workflow depends on: product lookup,
    shipping-rate calculation, order creation and payment initiation.
    """

    def __init__(
        self,
        base_url: str,
        api_token: Optional[str] = None,
        timeout: float = 30.0,
        retries: int = 3,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize marketplace client.

        Args:
            base_url: Normalized API base URL (ending in /api)
            api_token: Bearer token sent with every request
            timeout: Request timeout in seconds
            retries: How many times a rate-limited (429) request is retried
            http_client: Pre-built client, mainly for tests
        """
        self.base_url = base_url.rstrip("/")
        self.retries = retries
        self._api_token = api_token
        self._http_client = http_client or httpx.AsyncClient(timeout=timeout)

        if not api_token:
            logger.warning("No marketplace API token provided - requests are anonymous")

    async def close(self) -> None:
        """Close HTTP client"""
        await self._http_client.aclose()

    def _generate_headers(self, has_body: bool) -> dict[str, str]:
        """Generate headers including bearer token if available"""
        headers = {"Accept": "application/json"}
        if has_body:
            headers["Content-Type"] = "application/json"
        if self._api_token:
            headers["Authorization"] = f"Bearer {self._api_token}"
        return headers

    @staticmethod
    def _retry_delay(response: httpx.Response, attempt: int) -> float:
        """Seconds to wait before retrying a 429, honoring Retry-After"""
        try:
            wait_seconds = float(response.headers.get("retry-after", ""))
        except ValueError:
            wait_seconds = 0.0
        if wait_seconds <= 0:
            wait_seconds = attempt * 0.5
        return min(wait_seconds, MAX_RETRY_WAIT_SECONDS)

    def _rate_limit_wait(self, retry_state: RetryCallState) -> float:
        return self._retry_delay(retry_state.outcome.result(), retry_state.attempt_number)

    @staticmethod
    def _log_rate_limited(retry_state: RetryCallState) -> None:
        response = retry_state.outcome.result()
        logger.warning(
            f"Rate limited on {response.request.method} {response.request.url.path}, "
            f"retrying in {retry_state.next_action.sleep:.1f}s"
        )

    def _rate_limit_retry(self) -> AsyncRetrying:
        return AsyncRetrying(
            retry=retry_if_result(_is_rate_limited),
            stop=stop_after_attempt(self.retries + 1),
            wait=self._rate_limit_wait,
            before_sleep=self._log_rate_limited,
            # Out of retries: hand back the last 429 so it becomes an API error
            retry_error_callback=lambda retry_state: retry_state.outcome.result(),
        )

    @staticmethod
    def _error_payload(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError:
            return {"message": response.text} if response.text else None

    async def _request(
        self,
        method: str,
        path: str,
        body: Optional[dict] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body"""
        url = f"{self.base_url}{path}"
        headers = self._generate_headers(has_body=body is not None)

        try:
            response = await self._rate_limit_retry()(
                self._http_client.request,
                method=method,
                url=url,
                headers=headers,
                json=body,
            )
        except httpx.TransportError as e:
            logger.error(f"Request to {url} failed: {e}")
            raise MarketplaceAPIError(
                status=0,
                message="Cannot connect to server. Please ensure the backend server is running.",
                details={"original_error": str(e)},
            ) from e

        if response.status_code >= 400:
            payload = self._error_payload(response)
            message = response.reason_phrase
            if isinstance(payload, dict):
                message = payload.get("error") or payload.get("message") or message
            logger.error(f"Request failed: {response.status_code} - {message}")

            error_cls = AuthenticationError if response.status_code == 401 else MarketplaceAPIError
            raise error_cls(status=response.status_code, message=message, details=payload)

        try:
            return response.json()
        except ValueError as e:
            raise ResponseShapeError(
                status=response.status_code,
                message=f"Expected a JSON body from {method} {path}",
                details=response.text,
            ) from e

    def _unwrap(self, payload: Any, data_type: type[T], endpoint: str) -> T:
        """Validate the {message, data} envelope and return its data"""
        try:
            envelope = ApiEnvelope[data_type].model_validate(payload)
        except ValidationError as e:
            logger.error(f"Unexpected response shape from {endpoint}: {e}")
            raise ResponseShapeError(
                status=200,
                message=f"Unexpected response shape from {endpoint}",
                details=e.errors(),
            ) from e
        return envelope.data

    # ==================== Catalog APIs ====================

    async def get_product_by_id(self, product_id: str) -> Product:
        """Get full product record"""
        payload = await self._request("GET", f"/products/{quote(product_id, safe='')}")
        return self._unwrap(payload, Product, "GET /products/{id}")

    # ==================== Order APIs ====================

    async def calculate_shipping(self, request: ShippingQuoteRequest) -> list[ShippingOption]:
        """Quote shipping options for a cooperative and buyer district"""
        payload = await self._request(
            "POST",
            "/orders/calculate-shipping",
            body=request.model_dump(mode="json", by_alias=True),
        )
        return self._unwrap(payload, list[ShippingOption], "POST /orders/calculate-shipping")

    async def create_order(self, order: OrderPayload) -> CreatedOrder:
        """Create an order"""
        payload = await self._request(
            "POST",
            "/orders",
            body=order.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return self._unwrap(payload, CreatedOrder, "POST /orders")

    async def process_payment(self, order_id: str, phone_number: str) -> PaymentInitiation:
        """
        Initiate a mobile-money payment for an order.

        The buyer approves the resulting prompt on their phone; confirmation
        happens later and is not tracked here.
        """
        payload = await self._request(
            "POST",
            f"/orders/{quote(order_id, safe='')}/pay",
            body={"phoneNumber": phone_number},
        )
        return self._unwrap(payload, PaymentInitiation, "POST /orders/{id}/pay")
