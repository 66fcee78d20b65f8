"""
Email gateway client for sending emails via HTTP gateway.

Uses HMAC-SHA256 signature for request authentication. Template rendering
and SMTP delivery happen on the gateway side; this client only posts the
template name and its variables.
"""

import hashlib
import hmac
import json
import logging

import requests

logger = logging.getLogger(__name__)


class EmailGatewayError(Exception):
    """Raised when email gateway request fails."""


class EmailGatewayClient:
    """Send emails via HTTP gateway with HMAC signature verification."""

    VERIFY_ACCOUNT_TEMPLATE = "verifyAccount"

    def __init__(self, gateway_url: str, api_key: str, hmac_secret: str, sender: str, timeout: float = 10):
        """
        Initialize with gateway credentials.

        Args:
            gateway_url: Full URL to the email gateway endpoint
            api_key: API key for X-API-Key header
            hmac_secret: Secret for HMAC-SHA256 signature
            sender: From address used for outgoing mail
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
        if not sender:
            raise ValueError("sender is required")

        self.gateway_url = gateway_url
        self.api_key = api_key
        self.hmac_secret = hmac_secret
        self.sender = sender
        self.timeout = timeout

    def _sign_and_send(self, payload: dict) -> None:
        """
        Sign payload with HMAC and send to gateway.

        Args:
            payload: Dict to send as JSON

        Raises:
            EmailGatewayError: On any failure
        """
        payload_json = json.dumps(payload, separators=(",", ":"))

        signature = hmac.new(
            self.hmac_secret.encode("utf-8"),
            payload_json.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()

        headers = {
            "Content-Type": "application/json",
            "X-API-Key": self.api_key,
            "X-Signature": signature,
        }

        try:
            response = requests.post(
                self.gateway_url,
                data=payload_json,
                headers=headers,
                timeout=self.timeout,
            )
        except (requests.exceptions.RequestException, ConnectionError) as e:
            logger.error(f"Email gateway connection failed: {e}")
            raise EmailGatewayError(f"Connection failed: {e}")

        try:
            response_data = response.json()
        except ValueError:
            logger.error(f"Email gateway returned invalid JSON (status {response.status_code})")
            raise EmailGatewayError("Invalid response from gateway")

        if response.status_code != 200 or not response_data.get("success"):
            error_msg = response_data.get("message", "Unknown error")
            logger.error(f"Email gateway error: {error_msg}")
            raise EmailGatewayError(f"Gateway error: {error_msg}")

    def send_verification_code(self, email: str, name: str, otp: int, app_name: str) -> None:
        """
        Send the account verification email carrying the cleartext OTP.

        Args:
            email: Recipient email address
            name: Recipient display name
            otp: Verification code
            app_name: Application name shown in the email

        Raises:
            EmailGatewayError: On any failure
        """
        payload = {
            "template": self.VERIFY_ACCOUNT_TEMPLATE,
            "subject": "Email verification",
            "from": f"{app_name} <{self.sender}>",
            "email": email,
            "data": {
                "user": {"name": name, "email": email},
                "otp": otp,
            },
        }
        self._sign_and_send(payload)
        logger.info(f"Verification email sent to {email}")
