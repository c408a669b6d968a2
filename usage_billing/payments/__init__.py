from .dispatch import DispatchOutcome, PaymentDispatchJob
from .http_policy import RetryPolicy
from .idempotency import IdempotencyRegistry, TokenStatus
from .provider import (
    TRANSIENT_ERRORS,
    HttpPaymentProvider,
    PaymentProvider,
    PaymentProviderError,
    ProviderConnectionError,
)

__all__ = [
    "DispatchOutcome",
    "HttpPaymentProvider",
    "IdempotencyRegistry",
    "PaymentDispatchJob",
    "PaymentProvider",
    "PaymentProviderError",
    "ProviderConnectionError",
    "RetryPolicy",
    "TRANSIENT_ERRORS",
    "TokenStatus",
]
