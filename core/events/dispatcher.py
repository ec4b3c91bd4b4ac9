"""
FieldSync Notification Bus — Dispatcher
=========================================
Routes committed snapshots to registered subscribers.

Dispatch behavior:
1. Look up subscribers by snapshot path
2. Execute handlers sequentially
3. Catch subscriber exceptions per handler
4. Log failure
5. Continue to next subscriber
6. NEVER roll back the committed write

A failure processing one snapshot must not stop the handler
from receiving the next one, and must not stop other handlers.
"""

import logging
from typing import Any

from core.events.registry import SubscriberRegistry

logger = logging.getLogger("fieldsync.events")


def dispatch(snapshot: Any, registry: SubscriberRegistry) -> dict:
    """
    Deliver one snapshot to every subscriber of its path.

    Returns:
        {
            'path': str,
            'version': int,
            'subscribers_notified': int,
            'subscribers_failed': int,
            'failures': list[dict]
        }

    This function NEVER raises exceptions.
    """
    subscribers = registry.get_subscribers(snapshot.path)

    result = {
        "path": snapshot.path,
        "version": snapshot.version,
        "subscribers_notified": 0,
        "subscribers_failed": 0,
        "failures": [],
    }

    if not subscribers:
        return result

    for handler, subscriber_name in subscribers:
        handler_name = getattr(handler, "__qualname__", str(handler))

        try:
            handler(snapshot)
            result["subscribers_notified"] += 1
            logger.debug(
                f"Delivered {snapshot.path}@{snapshot.version} → {handler_name} "
                f"(subscriber: {subscriber_name})"
            )

        except Exception as exc:
            result["subscribers_failed"] += 1
            result["failures"].append({
                "handler": handler_name,
                "subscriber": subscriber_name,
                "error": str(exc),
                "error_type": type(exc).__name__,
            })

            logger.error(
                f"Subscriber failed: {handler_name} for "
                f"{snapshot.path}@{snapshot.version}: {exc}",
                exc_info=True,
            )
            # Continue to next subscriber; NEVER break dispatch

    return result
