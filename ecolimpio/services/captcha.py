"""Google reCAPTCHA v3 server-side verification"""

from typing import Optional

import requests

from ..utils.config import CaptchaSettings
from ..utils.exceptions import UpstreamServiceError
from ..utils.logger import get_logger

logger = get_logger(__name__)

SEND_CODE_ACTION = "send_code"


class CaptchaVerifier:
    """
    Verifies client CAPTCHA tokens against the siteverify endpoint.

    Fails closed: transport errors, timeouts and malformed responses all count
    as a failed check. Without a secret key every check fails, except in
    development where it is allowed with a warning.
    """

    def __init__(
        self,
        settings: CaptchaSettings,
        development: bool = False,
        session: Optional[requests.Session] = None,
    ):
        self.secret_key = settings.secret_key
        self.verify_url = settings.verify_url
        self.min_score = settings.min_score
        self.timeout = settings.timeout_seconds
        self.development = development
        self.session = session or requests.Session()

    def _siteverify(self, token: str) -> dict:
        """POST the token; UpstreamServiceError on transport or body failure"""
        try:
            response = self.session.post(
                self.verify_url,
                data={"secret": self.secret_key, "response": token},
                timeout=self.timeout,
            )
            data = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            raise UpstreamServiceError(f"CAPTCHA verification request failed: {e}")
        if not isinstance(data, dict):
            raise UpstreamServiceError("Malformed CAPTCHA verification response")
        return data

    def verify(self, token: str, expected_action: str = SEND_CODE_ACTION) -> bool:
        if not self.secret_key:
            if self.development:
                logger.warning(
                    "CAPTCHA secret not configured, skipping verification in development"
                )
                return True
            logger.error("CAPTCHA secret not configured, rejecting token")
            return False

        try:
            data = self._siteverify(token)
        except UpstreamServiceError as e:
            logger.error("CAPTCHA verification unavailable", error=e.message)
            return False

        if data.get("success") is not True:
            logger.warning("CAPTCHA rejected", error_codes=data.get("error-codes"))
            return False

        score = data.get("score")
        if score is not None:
            if score < self.min_score:
                logger.warning("CAPTCHA score below threshold", score=score, min_score=self.min_score)
                return False
            if data.get("action") != expected_action:
                logger.warning(
                    "CAPTCHA action mismatch",
                    action=data.get("action"),
                    expected=expected_action,
                )
                return False

        return True
