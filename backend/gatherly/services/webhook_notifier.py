"""
Gatherly Backend: Webhook Notifier
====================================

What:  Notifier that POSTs each notification as JSON to a configured URL.
How:   httpx.AsyncClient for transport, tenacity for retries with exponential
       backoff and jitter, and a circuit breaker in front of both.
Who:   Selected by `build_notifier()` when NOTIFIER_WEBHOOK_URL is set.

Error Handling Chain:
    POST fails with a transport error, 429 or 5xx → tenacity retries
    → retries exhausted → circuit breaker records a failure → NotificationError
    → threshold reached → circuit OPEN, calls rejected with CircuitBreakerOpenError
    → recovery timeout elapsed → HALF_OPEN, one trial delivery
    → trial succeeds → CLOSED
    Other 4xx responses are not retried; they count as one failure.
"""

import logging
import time
from typing import Optional

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from gatherly.exceptions import CircuitBreakerOpenError, NotificationError
from gatherly.services.notifier_base import Notification, Notifier

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    Not thread-safe; one instance lives in a single async worker process.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(self, failure_threshold: int = 5, recovery_timeout: int = 60):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at: Optional[float] = None
        self._trial_in_flight = False

    def before_call(self) -> None:
        """
        Gate a delivery attempt.

        Raises:
            CircuitBreakerOpenError while OPEN and the recovery timeout has
            not elapsed, or while HALF_OPEN with a trial already in flight.
        """
        if self.state == self.CLOSED:
            return
        if self.state == self.HALF_OPEN:
            if self._trial_in_flight:
                raise CircuitBreakerOpenError(recovery_time=max(1, int(self.recovery_timeout)))
            self._trial_in_flight = True
            return
        elapsed = time.monotonic() - (self.opened_at or 0.0)
        if elapsed < self.recovery_timeout:
            raise CircuitBreakerOpenError(
                recovery_time=max(1, int(self.recovery_timeout - elapsed)),
            )
        logger.info("Notifier circuit HALF_OPEN after %.1fs", elapsed)
        self.state = self.HALF_OPEN
        self._trial_in_flight = True

    def record_success(self) -> None:
        if self.state != self.CLOSED:
            logger.info("Notifier circuit CLOSED (delivery recovered)")
        self.failure_count = 0
        self.state = self.CLOSED
        self.opened_at = None
        self._trial_in_flight = False

    def record_failure(self) -> None:
        self.failure_count += 1
        self._trial_in_flight = False
        if self.state == self.HALF_OPEN or self.failure_count >= self.failure_threshold:
            if self.state != self.OPEN:
                logger.warning(
                    "Notifier circuit OPEN after %d consecutive failure(s)",
                    self.failure_count,
                )
            self.state = self.OPEN
            self.opened_at = time.monotonic()


def _is_retryable(exc: BaseException) -> bool:
    """Transport errors, 429 and 5xx are worth another attempt."""
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status == 429 or status >= 500
    return False


# ══════════════════════════════════════════════════════════════════════════
# Webhook Notifier
# ══════════════════════════════════════════════════════════════════════════

class WebhookNotifier(Notifier):
    """
    Delivers notifications to an HTTP endpoint.

    Request:
        POST <url>
        Content-Type: application/json
        X-Gatherly-Topic: <topic>
        body: Notification serialized with model_dump(mode="json")

    Any 2xx response is a successful delivery.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 5.0,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 5.0,
        jitter: float = 0.5,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        client: Optional[httpx.AsyncClient] = None,
        strict: bool = False,
    ):
        super().__init__(strict=strict)
        self.url = url
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait
        self.jitter = jitter
        self.client = client or httpx.AsyncClient(timeout=timeout)
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
        )
        logger.info(
            "WebhookNotifier initialized with url=%s, retries=%d, "
            "circuit_breaker(threshold=%d, recovery=%ds)",
            url,
            max_attempts,
            failure_threshold,
            recovery_timeout,
        )

    async def notify(self, notification: Notification) -> None:
        """
        Raises:
            CircuitBreakerOpenError: circuit is open
            NotificationError: every attempt failed, or the endpoint refused it
        """
        self.circuit_breaker.before_call()

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception(_is_retryable),
                stop=stop_after_attempt(self.max_attempts),
                wait=wait_exponential_jitter(
                    multiplier=self.min_wait,
                    max=self.max_wait,
                    jitter=self.jitter,
                ),
                before_sleep=before_sleep_log(logger, logging.WARNING),
                reraise=True,
            ):
                with attempt:
                    await self._post(notification)
        except httpx.HTTPError as e:
            self.circuit_breaker.record_failure()
            logger.error(
                "Webhook delivery of %s (%s) failed: %s",
                notification.topic,
                notification.id,
                str(e),
            )
            raise NotificationError(
                message="The notification could not be delivered.",
                context={
                    "topic": notification.topic,
                    "notification_id": str(notification.id),
                    "error_type": type(e).__name__,
                },
            ) from e

        self.circuit_breaker.record_success()

    async def _post(self, notification: Notification) -> None:
        start_time = time.perf_counter()
        response = await self.client.post(
            self.url,
            json=notification.model_dump(mode="json"),
            headers={"X-Gatherly-Topic": notification.topic},
        )
        response.raise_for_status()
        logger.debug(
            "Webhook accepted %s in %.0fms (HTTP %d)",
            notification.topic,
            (time.perf_counter() - start_time) * 1000,
            response.status_code,
        )

    async def health_check(self) -> bool:
        return self.circuit_breaker.state != CircuitBreaker.OPEN

    async def aclose(self) -> None:
        await self.client.aclose()
