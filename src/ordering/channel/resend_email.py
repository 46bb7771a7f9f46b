"""Resend email adapter — delivers transactional email over the Resend HTTP API."""

import os

import httpx
import structlog

from ordering.channel.email_port import EmailPort

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.resend.com"


class ResendEmailAdapter(EmailPort):
    def __init__(
        self,
        api_key: str | None = None,
        sender: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self.api_key = api_key or os.environ.get("RESEND_API_KEY")
        if not self.api_key:
            raise ValueError("RESEND_API_KEY is not configured")
        self.sender = sender or os.environ.get("EMAIL_FROM", "orders@example.com")
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def send(
        self,
        to: str,
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> dict:
        payload = {"from": self.sender, "to": [to], "subject": subject, "text": body}
        if html_body:
            payload["html"] = html_body

        try:
            response = self._client.post(
                "/emails",
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except httpx.HTTPError as exc:
            logger.error("Email provider unreachable", to=to, error=str(exc))
            return {"message_id": None, "status": "failed", "error": str(exc)}

        if not response.is_success:
            logger.error(
                "Email provider rejected message",
                to=to,
                status_code=response.status_code,
                body=response.text,
            )
            return {
                "message_id": None,
                "status": "failed",
                "error": f"{response.status_code}: {response.text}",
            }

        # Accepted by the provider even when the body is unreadable
        try:
            message_id = response.json().get("id")
        except ValueError:
            logger.warning(
                "Email provider returned a non-JSON body",
                to=to,
                status_code=response.status_code,
                body=response.text,
            )
            message_id = None

        return {"message_id": message_id, "status": "sent"}
