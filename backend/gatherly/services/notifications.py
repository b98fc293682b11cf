"""
Gatherly Backend: Notifier Wiring
===================================

What:  Chooses the process-wide notifier from settings and exposes it as a
       FastAPI dependency.
How:   One instance per process; it owns the HTTP client and circuit breaker
       state, which must outlive individual requests.
"""

from gatherly.config import Settings, settings
from gatherly.services.notifier_base import LogNotifier, Notifier
from gatherly.services.webhook_notifier import WebhookNotifier


def build_notifier(config: Settings) -> Notifier:
    """WebhookNotifier when a URL is configured, LogNotifier otherwise."""
    if config.notifier_webhook_url:
        return WebhookNotifier(
            url=config.notifier_webhook_url,
            timeout=config.notifier_timeout,
            max_attempts=config.retry_max_attempts,
            min_wait=config.retry_min_wait,
            max_wait=config.retry_max_wait,
            failure_threshold=config.cb_failure_threshold,
            recovery_timeout=config.cb_recovery_timeout,
            strict=config.notification_strict,
        )
    return LogNotifier(
        outbox_size=config.notifier_outbox_size,
        strict=config.notification_strict,
    )


notifier = build_notifier(settings)


def get_notifier() -> Notifier:
    """FastAPI dependency; tests override it with a recording notifier."""
    return notifier
