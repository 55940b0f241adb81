"""
Error Reporting

ErrorHandler implementations that receive isolated engine failures from
CustomerAnalysis. A handler never raises back into the caller.

1. LoggingErrorHandler - structured log line per failure
2. AlertingErrorHandler - alert history, cooldown, Slack webhook, custom hooks
"""

import os
import hashlib
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Dict, Any, Optional, List, Callable

import requests

from analysis.exceptions import CantUnderstandError
from analysis.interfaces import ErrorHandler

from .logging import get_logger

logger = get_logger(__name__)


class LoggingErrorHandler(ErrorHandler):
    """Writes each reported failure to the structured log."""

    def __init__(self, logger_name: str = "engine_errors"):
        self._logger = get_logger(logger_name)

    def handle(self, error: Exception) -> None:
        self._logger.warning(
            "engine_error_reported",
            error=str(error),
            error_type=type(error).__name__,
        )


class AlertSeverity(Enum):
    """Alert severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class Alert:
    """An alert raised for a reported failure."""
    id: str
    timestamp: str
    severity: AlertSeverity
    title: str
    message: str
    error_type: str
    error: Optional[Exception] = field(default=None, repr=False)


def classify(error: Exception) -> AlertSeverity:
    """An engine that cannot interpret its input is routine; anything else is not."""
    if isinstance(error, CantUnderstandError):
        return AlertSeverity.INFO
    return AlertSeverity.ERROR


class AlertingErrorHandler(ErrorHandler):
    """
    Turns reported failures into alerts.

    Usage:
        handler = AlertingErrorHandler(
            slack_webhook="https://hooks.slack.com/...",
        )
        analysis = CustomerAnalysis(engines, storage, news_list, handler)

    Supports:
    - Log output (always)
    - Slack webhooks for ERROR and CRITICAL alerts
    - Custom handlers
    - Cooldown per error type to prevent alert storms
    """

    def __init__(
        self,
        slack_webhook: str = None,
        custom_handlers: List[Callable[[Alert], None]] = None,
        cooldown_seconds: int = 300,
    ):
        self.slack_webhook = slack_webhook or os.getenv("ALERT_SLACK_WEBHOOK")
        self.custom_handlers = custom_handlers or []

        # Alert history
        self._alerts: List[Alert] = []
        self._lock = threading.Lock()

        # Rate limiting for alerts (prevent alert storms)
        self._last_alert_time: Dict[str, datetime] = {}
        self._alert_cooldown_seconds = cooldown_seconds

    def handle(self, error: Exception) -> None:
        self.send(error)

    def send(self, error: Exception, force: bool = False) -> Optional[Alert]:
        """
        Record an alert for ``error``.

        Args:
            error: The failure reported by CustomerAnalysis
            force: Bypass rate limiting

        Returns:
            Alert object if sent, None if rate limited
        """
        severity = classify(error)
        error_type = type(error).__name__
        title = f"Analytical engine failed: {error_type}"

        alert_key = f"{severity.value}:{error_type}"
        now = datetime.now()
        with self._lock:
            last = self._last_alert_time.get(alert_key)
            if not force and last is not None:
                time_since = (now - last).total_seconds()
                if time_since < self._alert_cooldown_seconds:
                    logger.debug("alert_rate_limited", title=title, seconds_since=round(time_since))
                    return None

            alert = Alert(
                id=f"alert-{now.strftime('%Y%m%d%H%M%S')}-{hashlib.md5(title.encode()).hexdigest()[:8]}",
                timestamp=now.isoformat(),
                severity=severity,
                title=title,
                message=str(error),
                error_type=error_type,
                error=error,
            )
            self._alerts.append(alert)
            self._last_alert_time[alert_key] = now

        log = logger.error if severity in (AlertSeverity.ERROR, AlertSeverity.CRITICAL) else logger.info
        log("alert_raised", alert_id=alert.id, severity=severity.value, title=title, message=alert.message)

        if self.slack_webhook and severity in (AlertSeverity.ERROR, AlertSeverity.CRITICAL):
            self._send_slack(alert)

        for handler in self.custom_handlers:
            try:
                handler(alert)
            except Exception as e:
                logger.error("custom_alert_handler_failed", alert_id=alert.id, error=str(e))

        return alert

    def _send_slack(self, alert: Alert):
        """Send alert to Slack."""
        color_map = {
            AlertSeverity.INFO: "#36a64f",
            AlertSeverity.WARNING: "#ffcc00",
            AlertSeverity.ERROR: "#ff6600",
            AlertSeverity.CRITICAL: "#ff0000",
        }

        payload = {
            "attachments": [{
                "color": color_map.get(alert.severity, "#808080"),
                "title": f"[{alert.severity.value.upper()}] {alert.title}",
                "text": alert.message,
                "fields": [
                    {"title": "Error type", "value": alert.error_type, "short": True},
                    {"title": "Time", "value": alert.timestamp, "short": True},
                ],
                "footer": f"Alert ID: {alert.id}",
            }]
        }

        try:
            response = requests.post(self.slack_webhook, json=payload, timeout=5)
            if response.status_code != 200:
                logger.error("slack_alert_failed", status_code=response.status_code)
        except requests.RequestException as e:
            logger.error("slack_alert_failed", error=str(e))

    def get_recent_alerts(self, hours: int = 24) -> List[Alert]:
        """Get alerts from the last N hours."""
        cutoff = datetime.now() - timedelta(hours=hours)

        with self._lock:
            return [
                a for a in self._alerts
                if datetime.fromisoformat(a.timestamp) > cutoff
            ]

    def get_alert_stats(self, hours: int = 24) -> Dict[str, Any]:
        """Get alert statistics."""
        recent = self.get_recent_alerts(hours)

        by_severity = {}
        for alert in recent:
            sev = alert.severity.value
            by_severity[sev] = by_severity.get(sev, 0) + 1

        return {
            "hours": hours,
            "total_alerts": len(recent),
            "by_severity": by_severity,
        }
