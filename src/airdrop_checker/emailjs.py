"""
EmailJS REST API client.

Sends a template-based email through an EmailJS service. The message body is
rendered by EmailJS from the template; this client only supplies params.

API Documentation: https://www.emailjs.com/docs/rest-api/send/
"""

import logging
from typing import Any

import httpx

logger = logging.getLogger(__name__)

EMAILJS_API_BASE = "https://api.emailjs.com"
SEND_PATH = "/api/v1.0/email/send"

# Public key set once for the process via init()
_default_public_key: str | None = None


def init(public_key: str) -> None:
    """Register the account public key used by clients created without one."""
    global _default_public_key
    _default_public_key = public_key


class EmailSendError(Exception):
    """
    Delivery failure reported by EmailJS or the network.

    Attributes:
        status: HTTP status code, or None when no response was received
        text: Diagnostic text returned by the service, if any
    """

    def __init__(self, status: int | None = None, text: str | None = None):
        self.status = status
        self.text = text or None
        super().__init__(f"EmailJS send failed (status={status}): {text or 'no details'}")


class EmailJSClient:
    """Client for the EmailJS send endpoint."""

    def __init__(
        self,
        public_key: str | None = None,
        private_key: str | None = None,
        api_base: str = EMAILJS_API_BASE,
        timeout_seconds: float = 10.0,
    ):
        """
        Initialize the EmailJS client.

        Args:
            public_key: Account public key (falls back to the key given to init())
            private_key: Optional access token for server-side calls
            api_base: API root URL
            timeout_seconds: Request timeout in seconds
        """
        self.public_key = public_key
        self.private_key = private_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout_seconds

    @property
    def send_url(self) -> str:
        return f"{self.api_base}{SEND_PATH}"

    async def send(
        self,
        service_id: str,
        template_id: str,
        template_params: dict[str, Any],
    ) -> str:
        """
        Send an email using a stored template.

        Returns:
            Response text from EmailJS ("OK" on success)

        Raises:
            EmailSendError: On a non-200 response or a transport failure
        """
        public_key = self.public_key or _default_public_key
        payload: dict[str, Any] = {
            "service_id": service_id,
            "template_id": template_id,
            "user_id": public_key,
            "template_params": template_params,
        }
        if self.private_key:
            payload["accessToken"] = self.private_key

        logger.debug(f"Sending EmailJS template {template_id} via {service_id}")

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(self.send_url, json=payload)
            except httpx.HTTPError as e:
                logger.warning(f"EmailJS request failed: {e}")
                raise EmailSendError() from e

        if response.status_code != 200:
            raise EmailSendError(response.status_code, response.text)

        return response.text
