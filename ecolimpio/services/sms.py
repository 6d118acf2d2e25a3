"""Outbound SMS through the Bird messaging API"""

from dataclasses import dataclass
from typing import Optional

import requests
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from ..utils.config import SmsSettings
from ..utils.exceptions import UpstreamServiceError
from ..utils.logger import get_logger
from ..utils.validation import is_valid_e164

logger = get_logger(__name__)


@dataclass(frozen=True)
class SmsResult:
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class SmsClient:
    """
    Bird API client.

    `send` never raises: every failure comes back as an unsuccessful
    SmsResult so callers can decide how to degrade. In development messages
    are logged instead of sent.
    """

    def __init__(
        self,
        settings: SmsSettings,
        development: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = settings.api_key
        self.api_url = settings.api_url
        self.timeout = settings.timeout_seconds
        self.max_attempts = max(1, settings.max_attempts)
        self.development = development
        self.session = session or requests.Session()

    def _payload(self, to: str, body: str) -> dict:
        return {
            "body": {"type": "text", "text": {"text": body}},
            "receiver": {
                "contacts": [{"identifierValue": to, "identifierKey": "phonenumber"}]
            },
        }

    def _post(self, to: str, body: str) -> requests.Response:
        """POST with retries on transport errors; UpstreamServiceError once they run out"""
        @retry(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=0.5, min=0.5, max=2),
            retry=retry_if_exception_type(requests.exceptions.RequestException),
        )
        def _attempt() -> requests.Response:
            return self.session.post(
                self.api_url,
                json=self._payload(to, body),
                headers={
                    "Authorization": f"AccessKey {self.api_key}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )

        try:
            return _attempt()
        except RetryError as e:
            cause = e.last_attempt.exception()
            raise UpstreamServiceError(str(cause) or "Failed to send SMS")

    def send(self, to: str, body: str) -> SmsResult:
        if not is_valid_e164(to):
            return SmsResult(success=False, error="Invalid E.164 phone number")

        if self.development:
            logger.info("SMS (development, not sent)", to=to, body=body)
            return SmsResult(success=True, message_id="dev-message")

        if not self.api_key:
            logger.error("SMS provider not configured")
            return SmsResult(success=False, error="SMS service not configured")

        try:
            response = self._post(to, body)
        except UpstreamServiceError as e:
            logger.error("SMS dispatch failed", to=to, error=e.message)
            return SmsResult(success=False, error=e.message)

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not response.ok:
            error = data.get("message") if isinstance(data, dict) else None
            logger.error("SMS provider error", status_code=response.status_code, error=error)
            return SmsResult(
                success=False,
                error=error or f"HTTP {response.status_code}: Failed to send SMS",
            )

        message_id = data.get("id") if isinstance(data, dict) else None
        logger.info("SMS sent", to=to, message_id=message_id)
        return SmsResult(success=True, message_id=message_id)
