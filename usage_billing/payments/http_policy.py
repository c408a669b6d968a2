import random
import time

from ..config import PAYMENT_BASE_DELAY, PAYMENT_MAX_ATTEMPTS, PAYMENT_MAX_DELAY


class RetryPolicy:
    """Exponential backoff with jitter, capped at max_attempts total attempts."""

    def __init__(
        self,
        max_attempts=PAYMENT_MAX_ATTEMPTS,
        base_delay=PAYMENT_BASE_DELAY,
        max_delay=PAYMENT_MAX_DELAY,
        sleep=time.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.sleep = sleep

    def delay(self, attempt):
        # attempt is 1-based: the wait after the first failure uses base_delay.
        delay = min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))
        delay += random.uniform(0, delay * 0.2)
        return delay

    def should_retry(self, attempt):
        return attempt < self.max_attempts

    def wait(self, attempt):
        self.sleep(self.delay(attempt))
