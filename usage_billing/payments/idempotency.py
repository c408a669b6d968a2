from __future__ import annotations

import threading
from enum import Enum
from typing import Dict, Optional


class TokenStatus(str, Enum):
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


class IdempotencyRegistry:
    """token -> status; at most one in-flight execution per token.

    A token that completed stays registered so a late redelivery of the same
    trigger never charges twice. A failed execution releases its token.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: Dict[str, TokenStatus] = {}

    def acquire(self, token: str) -> bool:
        with self._lock:
            if token in self._tokens:
                return False
            self._tokens[token] = TokenStatus.IN_FLIGHT
            return True

    def complete(self, token: str) -> None:
        with self._lock:
            self._tokens[token] = TokenStatus.COMPLETED

    def release(self, token: str) -> None:
        with self._lock:
            if self._tokens.get(token) is TokenStatus.IN_FLIGHT:
                del self._tokens[token]

    def status(self, token: str) -> Optional[TokenStatus]:
        with self._lock:
            return self._tokens.get(token)
