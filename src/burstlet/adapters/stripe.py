"""Stripe REST client for subscriptions, checkout and invoices."""

from typing import Any

import httpx

from burstlet.adapters.base import response_payload, vendor_message
from burstlet.config import settings
from burstlet.errors import ConfigurationError, ProviderError, TransportError
from burstlet.logging import get_logger

logger = get_logger(__name__)


class StripeClient:
    """Thin async client over the Stripe REST API.

    Stripe takes form-encoded bodies; nested parameters use bracket keys such
    as ``line_items[0][price]``.
    """

    name = "stripe"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = "https://api.stripe.com/v1",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or settings.stripe_secret_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def _request(
        self,
        method: str,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        if not self.api_key:
            raise ConfigurationError("Stripe secret key is required", details={"provider": self.name})

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.request(
                    method,
                    f"{self.base_url}{path}",
                    headers={"Authorization": f"Bearer {self.api_key}"},
                    data=data,
                    params=params,
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            payload = response_payload(e.response)
            message = vendor_message(payload) or f"HTTP {e.response.status_code}"
            logger.error("stripe_api_error", status_code=e.response.status_code, error=message)
            raise ProviderError(
                f"stripe API error: {message}",
                provider=self.name,
                payload=payload,
                status_code=e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            logger.error("stripe_unreachable", error=str(e))
            raise TransportError(f"Could not reach stripe: {e}", provider=self.name) from e

        return response.json()

    async def create_customer(self, user_id: str, email: str | None = None) -> dict[str, Any]:
        data = {"metadata[user_id]": user_id}
        if email:
            data["email"] = email
        return await self._request("POST", "/customers", data=data)

    async def create_checkout_session(
        self,
        customer_id: str,
        price_id: str,
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        data = {
            "mode": "subscription",
            "customer": customer_id,
            "line_items[0][price]": price_id,
            "line_items[0][quantity]": "1",
            "success_url": success_url,
            "cancel_url": cancel_url,
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = value
        return await self._request("POST", "/checkout/sessions", data=data)

    async def cancel_subscription(
        self,
        subscription_id: str,
        at_period_end: bool = True,
    ) -> dict[str, Any]:
        if at_period_end:
            return await self._request(
                "POST",
                f"/subscriptions/{subscription_id}",
                data={"cancel_at_period_end": "true"},
            )
        return await self._request("DELETE", f"/subscriptions/{subscription_id}")

    async def list_invoices(self, customer_id: str, limit: int = 10) -> list[dict[str, Any]]:
        data = await self._request(
            "GET", "/invoices", params={"customer": customer_id, "limit": limit}
        )
        return data.get("data", [])

    async def list_payment_methods(self, customer_id: str) -> list[dict[str, Any]]:
        data = await self._request(
            "GET", "/payment_methods", params={"customer": customer_id, "type": "card"}
        )
        return data.get("data", [])
