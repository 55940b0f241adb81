"""
Newsletter Notification Channel

Registers each offer for recurring announcement. When a webhook is
configured the first announcement is posted right away; later sends are
driven by whatever reads the schedule.
"""

import os
import threading
from dataclasses import dataclass, field, asdict, replace
from datetime import datetime, timedelta
from typing import Dict, Any, Optional, List

import requests

from analysis.entities import Offer
from analysis.interfaces import NewsList

from .logging import get_logger

logger = get_logger(__name__)


@dataclass
class ScheduledAnnouncement:
    """A recurring newsletter entry for one offer."""
    offer_id: str
    product_id: int
    customer_id: int
    recipient: str
    subject: str
    interval_days: int
    next_send_at: str
    scheduled_at: str = field(default_factory=lambda: datetime.now().isoformat())
    deliveries: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class NewsletterChannel(NewsList):
    """
    Schedules periodic offer announcements.

    Supports:
    - In-memory schedule (always)
    - Webhook delivery of the first announcement (optional)
    """

    def __init__(
        self,
        interval_days: int = 7,
        webhook_url: Optional[str] = None,
        timeout_seconds: float = 5.0,
    ):
        self.interval_days = interval_days
        self.webhook_url = webhook_url or os.environ.get("NEWSLETTER_WEBHOOK")
        self.timeout_seconds = timeout_seconds
        self._schedule: Dict[str, ScheduledAnnouncement] = {}
        self._lock = threading.Lock()

    def send_periodically(self, offer: Offer) -> None:
        """Register ``offer`` for recurring delivery. Never raises on delivery errors."""
        now = datetime.now()
        entry = ScheduledAnnouncement(
            offer_id=offer.id,
            product_id=offer.product.id,
            customer_id=offer.customer.id,
            recipient=offer.customer.email,
            subject=_subject(offer),
            interval_days=self.interval_days,
            next_send_at=(now + timedelta(days=self.interval_days)).isoformat(),
        )

        with self._lock:
            self._schedule[offer.id] = entry

        logger.info(
            "offer_scheduled",
            offer_id=offer.id,
            customer_id=offer.customer.id,
            interval_days=self.interval_days,
        )

        if self.webhook_url:
            delivery = self._post_webhook(offer, entry)
            with self._lock:
                entry.deliveries.append(delivery)

    def get_schedule(self) -> List[ScheduledAnnouncement]:
        """Snapshot of the schedule; entries are copies, safe to read while sends continue."""
        with self._lock:
            return [replace(entry, deliveries=list(entry.deliveries)) for entry in self._schedule.values()]

    def cancel(self, offer_id: str) -> bool:
        """Stop announcing an offer."""
        with self._lock:
            removed = self._schedule.pop(offer_id, None)
        if removed:
            logger.info("offer_unscheduled", offer_id=offer_id)
        return removed is not None

    def _post_webhook(self, offer: Offer, entry: ScheduledAnnouncement) -> Dict[str, Any]:
        """Post the announcement to the newsletter webhook."""
        payload = {
            "offer_id": offer.id,
            "recipient": entry.recipient,
            "subject": entry.subject,
            "product": {
                "id": offer.product.id,
                "name": offer.product.name,
                "price": offer.product.price,
            },
            "interval_days": entry.interval_days,
        }

        try:
            response = requests.post(self.webhook_url, json=payload, timeout=self.timeout_seconds)
            success = response.status_code < 300

            logger.info(
                "newsletter_webhook_sent",
                offer_id=offer.id,
                success=success,
                status_code=response.status_code,
            )
            return {"sent": success, "status_code": response.status_code}

        except requests.RequestException as e:
            logger.error("newsletter_webhook_failed", offer_id=offer.id, error=str(e))
            return {"sent": False, "error": str(e)}


def _subject(offer: Offer) -> str:
    name = offer.customer.name.split(" ")[0] if offer.customer.name else "there"
    return f"{name}, we picked {offer.product.name} for you"
