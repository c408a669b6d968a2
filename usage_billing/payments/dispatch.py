"""Hands finalized invoices to the payment provider.

The trigger is delivered at least once, so the job keys every execution by
the invoice id. A submission for a token that is in flight or already
completed is dropped. Connection-class failures are retried with
exponential backoff up to the policy's attempt ceiling; any other error is
terminal and propagates to the caller (the worker marks the job failed).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from ..utils.trace import TraceLogger
from .http_policy import RetryPolicy
from .idempotency import IdempotencyRegistry
from .provider import TRANSIENT_ERRORS, PaymentProvider

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    invoice_id: str
    status: str  # "succeeded" | "skipped"
    attempts: int = 0
    response: Dict[str, Any] = field(default_factory=dict)


class PaymentDispatchJob:
    def __init__(
        self,
        provider: PaymentProvider,
        registry: Optional[IdempotencyRegistry] = None,
        policy: Optional[RetryPolicy] = None,
        trace: Optional[TraceLogger] = None,
    ) -> None:
        self.provider = provider
        self.registry = registry or IdempotencyRegistry()
        self.policy = policy or RetryPolicy()
        self.trace = trace

    def _trace(self, phase: str, invoice_id: str, **payload: Any) -> None:
        if self.trace is not None:
            self.trace.log(phase, payload, invoice_id=invoice_id)

    def perform(self, invoice_id: str) -> DispatchOutcome:
        token = str(invoice_id)
        if not self.registry.acquire(token):
            _LOGGER.info("Payment for invoice %s already %s; submission dropped", token, self.registry.status(token))
            self._trace("payment_skipped", token, status=str(self.registry.status(token)))
            return DispatchOutcome(invoice_id=token, status="skipped")

        attempt = 0
        try:
            while True:
                attempt += 1
                try:
                    response = self.provider.create_payment(token, idempotency_key=token)
                    break
                except TRANSIENT_ERRORS as ex:
                    self._trace("payment_attempt_failed", token, attempt=attempt, error=repr(ex), transient=True)
                    if not self.policy.should_retry(attempt):
                        _LOGGER.error("Payment for invoice %s failed after %d attempts: %s", token, attempt, ex)
                        raise
                    _LOGGER.warning("Transient failure for invoice %s (attempt %d): %s", token, attempt, ex)
                    self.policy.wait(attempt)
        except Exception as ex:
            self.registry.release(token)
            self._trace("payment_failed", token, attempts=attempt, error=repr(ex))
            raise

        self.registry.complete(token)
        self._trace("payment_succeeded", token, attempts=attempt)
        _LOGGER.info("Payment for invoice %s dispatched in %d attempt(s)", token, attempt)
        return DispatchOutcome(
            invoice_id=token,
            status="succeeded",
            attempts=attempt,
            response=dict(response or {}),
        )
