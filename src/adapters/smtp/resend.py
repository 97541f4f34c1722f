"""
Resend email sender adapter - Implements EmailSender protocol over HTTP.

Posts one-time codes to a Resend-compatible transactional email API with
httpx. Transport failures and non-2xx answers become DownstreamError so
the domain decides whether the request fails.
"""

import logging

import httpx

from src.domain.exceptions import DownstreamError
from src.domain.ports import OtpPurpose

logger = logging.getLogger(__name__)

_SUBJECTS = {
    OtpPurpose.REGISTRATION: "Verify your email",
    OtpPurpose.PASSWORD_RESET: "Your password reset code",
    OtpPurpose.ACCOUNT_DELETION: "Confirm account deletion",
}


class ResendEmailSender:
    """Implements EmailSender protocol via the Resend HTTP API."""

    def __init__(
        self,
        api_key: str,
        sender: str,
        api_url: str = "https://api.resend.com/emails",
        ttl_minutes: int = 10,
        client: httpx.Client | None = None,
        timeout: float = 20.0,
    ) -> None:
        self._api_key = api_key
        self._sender = sender
        self._api_url = api_url
        self._ttl_minutes = ttl_minutes
        self._client = client or httpx.Client(timeout=timeout)

    def send_code(self, email: str, code: str, purpose: OtpPurpose) -> None:
        if not self._api_key:
            raise DownstreamError("Mail provider is not configured")

        payload = {
            "from": self._sender,
            "to": [email],
            "subject": _SUBJECTS[purpose],
            "text": f"Your code is {code}. It expires in {self._ttl_minutes} minutes.",
        }
        headers = {"Authorization": f"Bearer {self._api_key}"}
        try:
            response = self._client.post(self._api_url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error("Mail delivery to %s failed: %s", email, e)
            raise DownstreamError("Mail delivery failed") from e

        logger.info("Sent %s code to %s", purpose.value, email)

    def close(self) -> None:
        self._client.close()
