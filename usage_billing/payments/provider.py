from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

import httpx

from ..config import PAYMENT_PROVIDER_TIMEOUT, PAYMENT_PROVIDER_URL


class PaymentProviderError(Exception):
    """Terminal provider failure (rejected payment, bad request, server error)."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderConnectionError(Exception):
    """Transient connectivity failure raised by non-HTTP providers."""


# Connection-class failures only: the request never reached the provider.
TRANSIENT_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, ProviderConnectionError)


class PaymentProvider(Protocol):
    def create_payment(self, invoice_id: str, *, idempotency_key: str) -> Dict[str, Any]: ...


class HttpPaymentProvider:
    """Posts the invoice id to a payment endpoint; the token travels as Idempotency-Key."""

    def __init__(self, url: str = PAYMENT_PROVIDER_URL, timeout: float = PAYMENT_PROVIDER_TIMEOUT, client=None):
        if not url:
            raise ValueError("Payment provider URL is not configured")
        self.url = url
        self.timeout = httpx.Timeout(timeout, connect=min(timeout, 10.0))
        self._client = client

    def create_payment(self, invoice_id: str, *, idempotency_key: str) -> Dict[str, Any]:
        client = self._client or httpx.Client(timeout=self.timeout)
        try:
            resp = client.post(
                self.url,
                json={"invoice_id": invoice_id},
                headers={"Idempotency-Key": idempotency_key},
            )
        finally:
            if self._client is None:
                client.close()
        if resp.status_code >= 400:
            raise PaymentProviderError(
                f"Provider rejected invoice {invoice_id}: HTTP {resp.status_code}",
                status_code=resp.status_code,
            )
        try:
            return resp.json()
        except ValueError:
            return {}
