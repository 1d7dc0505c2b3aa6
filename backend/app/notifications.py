"""
Notification sink used by the scheduled jobs.

Delivery (email, push) lives outside this service. Jobs hand a kind and a
JSON-serializable payload to a Notifier and only log failures.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.exceptions import NotificationFailure

logger = logging.getLogger(__name__)

BUDGET_ALERT = "budget_alert"
WEEKLY_REPORT = "weekly_report"
MONTHLY_REPORT = "monthly_report"
RECURRING_PROCESSED = "recurring_transaction_processed"
RECURRING_FAILED = "recurring_transaction_failed"
RECURRING_SUMMARY = "recurring_transactions_summary"


@dataclass
class NotificationResult:
    success: bool
    error: Optional[str] = None


class Notifier(ABC):
    """Abstract notification sink."""

    @abstractmethod
    async def notify(self, kind: str, payload: Dict[str, Any]) -> NotificationResult:
        """
        Deliver a notification.

        Implementations return a failed result or raise NotificationFailure
        when delivery is not possible.
        """
        pass


class LoggingNotifier(Notifier):
    """Notifier that writes every notification to the log."""

    async def notify(self, kind: str, payload: Dict[str, Any]) -> NotificationResult:
        logger.info("Notification %s: %s", kind, payload)
        return NotificationResult(success=True)


async def send_notification(
    notifier: Notifier,
    kind: str,
    payload: Dict[str, Any]
) -> NotificationResult:
    """Send through the notifier, converting any failure into a logged result."""
    try:
        result = await notifier.notify(kind, payload)
    except NotificationFailure as e:
        logger.warning(f"Notification {kind} failed: {e}")
        return NotificationResult(success=False, error=str(e))
    except Exception as e:
        logger.warning(f"Notification {kind} raised unexpectedly: {e}", exc_info=True)
        return NotificationResult(success=False, error=str(e))

    if not result.success:
        logger.warning(f"Notification {kind} was not delivered: {result.error}")
    return result
