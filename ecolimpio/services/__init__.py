from .captcha import SEND_CODE_ACTION, CaptchaVerifier
from .sms import SmsClient, SmsResult
from .verification_service import VerificationService, generate_code

__all__ = [
    "SEND_CODE_ACTION",
    "CaptchaVerifier",
    "SmsClient",
    "SmsResult",
    "VerificationService",
    "generate_code",
]
