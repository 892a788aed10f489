"""
Notification gateway client for guest payment messages.

Posts JSON to the messaging gateway, which owns delivery (email, SMS,
WhatsApp). Requests carry an HMAC-SHA256 signature of the exact body.
"""

import hashlib
import hmac
import json
import logging
from typing import Any
from uuid import UUID

import requests

logger = logging.getLogger(__name__)


class NotificationGatewayError(Exception):
    """Raised when the notification gateway rejects or cannot take a request."""


class NotificationGatewayClient:
    """Send guest notifications via HTTP gateway with HMAC signature."""

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, timeout: float = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the notification endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            timeout: Request timeout in seconds

        Raises:
            ValueError: If any credential is empty
        """
        if not gateway_url:
            raise ValueError("gateway_url is required")
        if not api_key:
            raise ValueError("api_key is required")
        if not hmac_secret:
            raise ValueError("hmac_secret is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.timeout = timeout

    def sign(self, body: str) -> str:
        """Hex HMAC-SHA256 of body."""
        return hmac.new(
            self.hmac_secret.encode("utf-8"),
            body.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

    def _sign_and_send(self, payload: dict) -> None:
        """
        Sign payload with HMAC and send to gateway.

        Raises:
            NotificationGatewayError: On any failure
        """
        payload_json = json.dumps(payload, separators=(",", ":"), sort_keys=True)

        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": self.sign(payload_json),
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=payload_json,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Notification gateway connection failed: {e}")
            raise NotificationGatewayError(f"Connection failed: {e}")

        try:
            response_data = response.json()
        except ValueError:
            logger.error(f"Notification gateway returned invalid JSON: {response.text}")
            raise NotificationGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Notification gateway error: {error_msg}")
            raise NotificationGatewayError(f"Gateway error: {error_msg}")

    def send_notification(
        self,
        event_type: str,
        guest_id: UUID,
        reservation_id: UUID,
        subject: str,
        body: str,
        data: dict[str, Any] | None = None,
    ) -> None:
        """
        Queue a notification for a guest.

        Args:
            event_type: Machine name (e.g. "payment_recorded")
            guest_id: Recipient guest; the gateway resolves contact details
            reservation_id: Reservation the message is about
            subject: Short subject line
            body: Plain text body
            data: Extra structured fields for templates

        Raises:
            NotificationGatewayError: On gateway failure
        """
        payload = {
            "type": event_type,
            "guest_id": str(guest_id),
            "reservation_id": str(reservation_id),
            "subject": subject,
            "body": body,
            "data": data or {},
        }
        self._sign_and_send(payload)
        logger.info(f"Notification {event_type} queued for reservation {reservation_id}")
