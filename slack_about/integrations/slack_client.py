"""
Slack response delivery.

Slash command responses are delivered by POSTing a message payload to the
``response_url`` Slack supplies with every command invocation.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import requests

from ..slash_about.models import DisplayMessage

logger = logging.getLogger(__name__)

DEFAULT_DELIVERY_TIMEOUT_SECONDS = 10.0


class DeliveryError(RuntimeError):
    """Raised when a message cannot be delivered to a Slack response URL."""


class SlackResponseSink:
    """
    Posts formatted messages to Slack response URLs.

    One POST per call, no retries: a response URL is single-use from this
    service's perspective.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        *,
        session: Optional[requests.Session] = None,
    ):
        about_cfg = (config or {}).get("slash_about") or {}
        try:
            self.timeout = float(about_cfg.get("delivery_timeout_seconds", DEFAULT_DELIVERY_TIMEOUT_SECONDS))
        except (TypeError, ValueError):
            self.timeout = DEFAULT_DELIVERY_TIMEOUT_SECONDS
        self.session = session or self._build_session()

    @staticmethod
    def _build_session() -> requests.Session:
        session = requests.Session()
        session.headers.update({
            "Content-Type": "application/json; charset=utf-8",
            "User-Agent": "SlackAboutService/ResponseSink",
        })
        return session

    def post(self, response_url: str, message: DisplayMessage) -> Dict[str, Any]:
        """
        Send ``message`` to ``response_url``.

        Returns:
            Summary of the Slack reply (status code and body text).

        Raises:
            DeliveryError: on network failure or a non-2xx reply.
        """
        if not response_url:
            raise DeliveryError("No Slack response URL provided.")

        payload = message.to_payload()
        logger.debug("[SLACK] Sending payload %s to %s", payload, response_url)
        try:
            response = self.session.post(response_url, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            logger.error("[SLACK] Error sending payload to response URL %s: %s", response_url, exc)
            raise DeliveryError(f"Failed to reach Slack response URL: {exc}") from exc

        if not response.ok:
            logger.error(
                "[SLACK] Response URL %s rejected payload: HTTP %s %s",
                response_url,
                response.status_code,
                response.text,
            )
            raise DeliveryError(f"Slack rejected the payload with HTTP {response.status_code}")

        logger.debug("[SLACK] Slack response: %s", response.text)
        return {"status_code": response.status_code, "body": response.text}
