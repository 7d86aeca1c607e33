"""Email delivery through an HTTP email API."""

from typing import Optional

import httpx

from site_monitor.core.interfaces import EmailSender

DEFAULT_API_URL = "https://api.resend.com/emails"


class HttpEmailSender(EmailSender):
    """Send alert emails via a JSON email API (Resend-compatible)."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        sender: Optional[str] = None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
    ) -> None:
        """Initialize email sender.

        Args:
            api_key: Bearer token for the email API. If None, sending is disabled.
            sender: From-address for alerts.
            api_url: Endpoint accepting {from, to, subject, html}.
            timeout: Request timeout in seconds.
        """
        self.api_key = api_key
        self.sender = sender
        self.api_url = api_url
        self.timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.sender)

    async def send(self, to: str, subject: str, html_body: str) -> str:
        """Send one email.

        Returns:
            Delivery id reported by the API (empty if none)

        Raises:
            RuntimeError: if the sender is not configured
            httpx.HTTPError: on transport or HTTP status failure
        """
        if not self.configured:
            raise RuntimeError("Email sender is not configured")

        payload = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html_body,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
            response.raise_for_status()

        try:
            data = response.json()
        except ValueError:
            return ""
        return str(data.get("id", "")) if isinstance(data, dict) else ""
