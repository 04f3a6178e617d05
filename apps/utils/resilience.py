import functools
import logging

from django.core.cache import cache

from apps.utils.exceptions import ServiceUnavailable

logger = logging.getLogger(__name__)


class CircuitBreaker:
    """
    Opens after `failure_threshold` failures inside `failure_window`
    seconds and rejects calls for `recovery_timeout` seconds.
    """

    def __init__(self, service_name, failure_threshold=5, recovery_timeout=60, failure_window=120):
        self.service_name = service_name
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_window = failure_window
        self.cache_key_failures = f"cb_failures:{service_name}"
        self.cache_key_open = f"cb_open:{service_name}"

    @property
    def is_open(self):
        return bool(cache.get(self.cache_key_open))

    def reset(self):
        cache.delete_many([self.cache_key_failures, self.cache_key_open])

    def record_failure(self):
        # add() is a no-op when the counter already exists
        cache.add(self.cache_key_failures, 0, timeout=self.failure_window)
        failures = cache.incr(self.cache_key_failures)

        if failures >= self.failure_threshold:
            logger.warning("Circuit %s opened after %s failures", self.service_name, failures)
            cache.set(self.cache_key_open, "OPEN", timeout=self.recovery_timeout)
            cache.delete(self.cache_key_failures)

    def __call__(self, func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            if self.is_open:
                raise ServiceUnavailable(
                    f"{self.service_name} is temporarily unavailable. Please try again later.",
                    code="circuit_open",
                )

            try:
                return func(*args, **kwargs)
            except Exception:
                self.record_failure()
                raise

        return wrapper
