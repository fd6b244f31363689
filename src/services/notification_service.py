"""Daily notification about pantry items that are about to expire."""

import logging
from collections.abc import Awaitable, Callable, Sequence
from datetime import date

from src.core.config import Constants, settings
from src.core.logging import span
from src.domain.pantry import PantryItem
from src.services.pantry_service import days_until_expiry


logger = logging.getLogger(__name__)

# (title, body) -> None; raises if the notification could not be delivered
NotificationSender = Callable[[str, str], Awaitable[None]]


def find_expiring_items(
    items: Sequence[PantryItem],
    today: date | None = None,
    window_days: int | None = None,
) -> list[PantryItem]:
    """Return items expiring within window_days, already expired ones included."""
    today = today or date.today()
    window = settings.expiry_warning_days if window_days is None else window_days
    result = []
    for item in items:
        days = days_until_expiry(item, today)
        if days is not None and days <= window:
            result.append(item)
    return result


def build_expiry_message(items: Sequence[PantryItem]) -> tuple[str, str]:
    """Build the (title, body) of the expiry notification.

    The body names the first two items and summarizes the rest, e.g.
    "Hai 3 prodotti in scadenza: Latte, Yogurt e altri 1. Cucinali subito con EcoChef!"
    """
    shown = [item.name for item in items[: Constants.EXPIRY_NOTIFICATION_MAX_NAMES]]
    rest = len(items) - len(shown)
    names = ", ".join(shown)
    if rest > 0:
        names += f" e altri {rest}"
    body = f"Hai {len(items)} prodotti in scadenza: {names}. Cucinali subito con EcoChef!"
    return Constants.EXPIRY_NOTIFICATION_TITLE, body


class ExpiryNotifier:
    """Sends at most one expiry notification per calendar day."""

    def __init__(self, send: NotificationSender) -> None:
        self._send = send
        self.last_notified: date | None = None

    async def check_and_notify(self, items: Sequence[PantryItem], today: date | None = None) -> bool:
        """Notify about expiring items unless a notification already went out today.

        A failed send is logged and leaves the day unmarked, so the next
        check retries.

        Returns:
            True if a notification was sent
        """
        today = today or date.today()
        if self.last_notified == today:
            return False

        expiring = find_expiring_items(items, today)
        if not expiring:
            return False

        with span("notification_service.check_and_notify"):
            title, body = build_expiry_message(expiring)
            try:
                await self._send(title, body)
            except Exception as e:
                logger.error("expiry_notification_failed", extra={"error": str(e), "count": len(expiring)})
                return False

            self.last_notified = today
            logger.info("expiry_notification_sent", extra={"count": len(expiring)})
            return True
