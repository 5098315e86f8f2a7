"""
Payment Gateway API Client

Async client for a Stripe-compatible payment provider using Bearer auth.

Connection Details:
    - Base URL: https://api.stripe.com (PAYMENT_GATEWAY_BASE_URL)
    - Auth: Bearer Token (secret API key)
    - Request bodies: application/x-www-form-urlencoded

Endpoints:
    - POST /v1/payment_intents - Create payment intent
    - POST /v1/payment_intents/{id} - Update payment intent
    - GET /v1/payment_intents/{id} - Get payment intent
    - POST /v1/refunds - Refund (part of) a captured intent

Webhooks are signed with HMAC-SHA256 over "{timestamp}.{payload}" and sent
with a "Stripe-Signature: t=...,v1=..." header.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import time
from typing import Any

import httpx

from storefront.config.settings import Settings, get_settings
from storefront.domains.ecommerce.application.ports import (
    PaymentGatewayError,
    PaymentIntent,
    RefundResult,
)

logger = logging.getLogger(__name__)


class PaymentGatewayAuthError(PaymentGatewayError):
    """Authentication error (invalid secret key)."""

    def __init__(self, message: str = "Invalid API key"):
        super().__init__("AUTH_ERROR", message)


class PaymentGatewayConnectionError(PaymentGatewayError):
    """Network connectivity issues."""

    def __init__(self, message: str):
        super().__init__("CONNECTION_ERROR", message, retryable=True)


class PaymentGatewayValidationError(PaymentGatewayError):
    """Request rejected by the provider."""

    def __init__(self, message: str):
        super().__init__("VALIDATION_ERROR", message)


class PaymentGatewayClient:
    """
    Async HTTP client implementing IPaymentGateway.

    Environment Variables:
        PAYMENT_GATEWAY_BASE_URL: Provider API base URL
        PAYMENT_GATEWAY_SECRET_KEY: Bearer token for API auth
        PAYMENT_WEBHOOK_SECRET: Webhook signing secret
        PAYMENT_WEBHOOK_TOLERANCE_SECONDS: Max accepted webhook age
        PAYMENT_GATEWAY_TIMEOUT: Request timeout in seconds

    Example:
        async with PaymentGatewayClient() as client:
            intent = await client.create_intent(2500, "usd", {"basket_id": "7"})
    """

    def __init__(
        self,
        settings: Settings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize client with settings.

        Args:
            settings: Application settings (defaults to the global instance)
            transport: Optional httpx transport, used by tests
        """
        settings = settings or get_settings()

        self._base_url = settings.PAYMENT_GATEWAY_BASE_URL
        self._secret_key = settings.PAYMENT_GATEWAY_SECRET_KEY
        self._webhook_secret = settings.PAYMENT_WEBHOOK_SECRET
        self._tolerance = settings.PAYMENT_WEBHOOK_TOLERANCE_SECONDS
        self._timeout = settings.PAYMENT_GATEWAY_TIMEOUT
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

        if not self._secret_key:
            logger.error("PAYMENT_GATEWAY_SECRET_KEY not configured")

    async def __aenter__(self) -> PaymentGatewayClient:
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {self._secret_key}"},
            timeout=self._timeout,
            transport=self._transport,
        )
        return self

    async def __aexit__(self, *args) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(self, method: str, path: str, data: dict[str, Any] | None = None) -> dict[str, Any]:
        if not self._client:
            raise PaymentGatewayError("CLIENT_NOT_INITIALIZED", "Client not initialized. Use 'async with' context.")

        try:
            response = await self._client.request(method, path, data=data)
        except httpx.ConnectError as e:
            logger.error(f"Payment gateway connection error: {e}")
            raise PaymentGatewayConnectionError(f"Could not connect to payment gateway: {e}") from e
        except httpx.TimeoutException as e:
            logger.error(f"Payment gateway timeout: {e}")
            raise PaymentGatewayConnectionError(f"Payment gateway request timed out: {e}") from e

        if response.status_code == 401:
            raise PaymentGatewayAuthError("Invalid or expired API key")

        if response.status_code in (400, 402):
            message = response.json().get("error", {}).get("message", "Validation error")
            raise PaymentGatewayValidationError(message)

        if response.status_code == 404:
            raise PaymentGatewayError("NOT_FOUND", f"Resource {path} not found")

        if response.status_code >= 500:
            raise PaymentGatewayError("PROVIDER_ERROR", f"Provider returned {response.status_code}", retryable=True)

        response.raise_for_status()
        return response.json()

    @staticmethod
    def _to_intent(data: dict[str, Any]) -> PaymentIntent:
        return PaymentIntent(
            id=data["id"],
            status=data.get("status", ""),
            amount=int(data.get("amount", 0)),
            currency=data.get("currency", ""),
            client_secret=data.get("client_secret"),
            metadata=dict(data.get("metadata") or {}),
        )

    async def create_intent(
        self, amount: int, currency: str, metadata: dict[str, str] | None = None
    ) -> PaymentIntent:
        """
        Create a payment intent.

        Args:
            amount: Amount in minor units
            currency: ISO currency code
            metadata: Correlation data echoed back in webhooks

        Raises:
            PaymentGatewayValidationError: amount is not positive or the provider rejected it
        """
        if amount <= 0:
            raise PaymentGatewayValidationError("Amount must be greater than zero")

        data: dict[str, Any] = {
            "amount": amount,
            "currency": currency.lower(),
            "payment_method_types[]": "card",
        }
        for key, value in (metadata or {}).items():
            data[f"metadata[{key}]"] = value

        logger.info(f"Creating payment intent: amount={amount} {currency}")
        intent = self._to_intent(await self._request("POST", "/v1/payment_intents", data))
        logger.info(f"Payment intent created: {intent.id}")
        return intent

    async def update_intent(self, intent_id: str, amount: int) -> PaymentIntent:
        logger.info(f"Updating payment intent {intent_id}: amount={amount}")
        return self._to_intent(await self._request("POST", f"/v1/payment_intents/{intent_id}", {"amount": amount}))

    async def get_intent(self, intent_id: str) -> PaymentIntent:
        return self._to_intent(await self._request("GET", f"/v1/payment_intents/{intent_id}"))

    async def refund(self, intent_id: str, amount: int) -> RefundResult:
        logger.info(f"Refunding {amount} on payment intent {intent_id}")
        data = await self._request("POST", "/v1/refunds", {"payment_intent": intent_id, "amount": amount})
        return RefundResult(id=data["id"], status=data.get("status", ""), amount=int(data.get("amount", amount)))

    def construct_event(self, payload: bytes, signature_header: str) -> dict[str, Any]:
        """
        Verify a webhook signature and parse the event.

        Args:
            payload: Raw request body
            signature_header: Value of the signature header

        Returns:
            Parsed event

        Raises:
            ValueError: Missing secret, malformed header, bad signature or stale timestamp
        """
        if not self._webhook_secret:
            raise ValueError("Webhook secret not configured")

        timestamp: str | None = None
        signatures: list[str] = []
        for part in (signature_header or "").split(","):
            key, _, value = part.strip().partition("=")
            if key == "t":
                timestamp = value
            elif key == "v1":
                signatures.append(value)

        if not timestamp or not signatures:
            raise ValueError("Malformed signature header")

        try:
            signed_at = int(timestamp)
        except ValueError as e:
            raise ValueError("Invalid signature timestamp") from e

        if self._tolerance and abs(time.time() - signed_at) > self._tolerance:
            raise ValueError("Signature timestamp outside tolerance")

        signed_payload = f"{timestamp}.".encode() + payload
        expected = hmac.new(self._webhook_secret.encode(), signed_payload, hashlib.sha256).hexdigest()
        if not any(hmac.compare_digest(expected, sig) for sig in signatures):
            raise ValueError("Signature mismatch")

        try:
            return json.loads(payload)
        except json.JSONDecodeError as e:
            raise ValueError("Invalid webhook payload") from e


def sign_payload(payload: bytes, secret: str, timestamp: int | None = None) -> str:
    """Build a signature header for ``payload``; used by tests and local tooling."""
    timestamp = timestamp if timestamp is not None else int(time.time())
    digest = hmac.new(secret.encode(), f"{timestamp}.".encode() + payload, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


__all__ = [
    "PaymentGatewayClient",
    "PaymentGatewayAuthError",
    "PaymentGatewayConnectionError",
    "PaymentGatewayValidationError",
    "sign_payload",
]
