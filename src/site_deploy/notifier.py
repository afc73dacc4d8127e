"""
site_deploy.notifier — Best-effort deployment status messages.

The orchestrator only needs send_message(text). Failures surface as
NotificationError; the caller logs them and moves on.
"""

from __future__ import annotations

from typing import Any, Protocol

import requests

from site_deploy.exceptions import NotificationError

DEFAULT_TIMEOUT_SECONDS = 10


class Notifier(Protocol):
    def send_message(self, text: str) -> None: ...


class SlackWebhookNotifier:
    """Posts {"text": ...} to a Slack incoming webhook URL."""

    def __init__(
        self,
        webhook_url: str,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        session: Any = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._timeout_seconds = timeout_seconds
        self._http: Any = session or requests

    def send_message(self, text: str) -> None:
        try:
            response = self._http.post(
                self._webhook_url,
                json={"text": text},
                timeout=self._timeout_seconds,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise NotificationError(f"Failed to send Slack message: {exc}") from exc
