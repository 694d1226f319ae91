"""Email one-time-password challenges.

One live challenge per lower-cased email. A challenge is dead once it is past
its expiry or has absorbed the maximum number of wrong guesses; dead
challenges are deleted the next time they are looked at.
"""
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from .. import models
from ..core.config import Settings, settings as default_settings
from ..core.exceptions import DownstreamError
from ..repositories import OTPRepository
from ..utils import generate_otp, utcnow
from .mailer import EmailDispatcher

logger = logging.getLogger(__name__)

OTP_NOT_FOUND = "OTP not found or expired"
OTP_EXPIRED = "OTP has expired"
OTP_TOO_MANY_ATTEMPTS = "Too many attempts. Please request a new OTP"
OTP_INVALID = "Invalid OTP. Please try again"
OTP_VERIFIED = "OTP verified successfully"
OTP_SENT = "OTP sent successfully"


@dataclass
class OTPResult:
    valid: bool
    reason: str


@dataclass
class ResendResult:
    allowed: bool
    message: str
    wait_seconds: int = 0


class OTPService:
    def __init__(
        self,
        repository: OTPRepository,
        dispatcher: EmailDispatcher,
        settings: Settings = default_settings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.repository = repository
        self.dispatcher = dispatcher
        self.settings = settings
        self.clock = clock

    def issue(self, email: str) -> str:
        """Create a fresh challenge for the email, replacing any previous one."""
        now = self.clock()
        self.repository.purge_expired(now)
        code = generate_otp(self.settings.OTP_LENGTH)
        self.repository.replace(models.OTPVerification(
            email=email.lower(),
            otp=code,
            expires_at=now + timedelta(minutes=self.settings.OTP_EXPIRE_MINUTES),
            attempts=0,
            is_verified=False,
            created_at=now,
            updated_at=now,
        ))
        logger.info("Issued OTP challenge for %s", email.lower())
        return code

    def send(self, email: str, user_name: Optional[str] = None) -> str:
        code = self.issue(email)
        # the challenge stays redeemable even when delivery fails
        if not self.dispatcher.send_otp_email(email, code, user_name):
            raise DownstreamError("Failed to send OTP. Please try again later.")
        return code

    def verify(self, email: str, code: str) -> OTPResult:
        email = email.lower()
        challenge = self.repository.get(email)
        if challenge is None:
            return OTPResult(False, OTP_NOT_FOUND)

        if self.clock() > challenge.expires_at:
            self.repository.delete(email)
            return OTPResult(False, OTP_EXPIRED)

        if challenge.attempts >= self.settings.OTP_MAX_ATTEMPTS:
            self.repository.delete(email)
            logger.warning("OTP attempts exhausted for %s", email)
            return OTPResult(False, OTP_TOO_MANY_ATTEMPTS)

        if not secrets.compare_digest(challenge.otp.encode(), code.encode()):
            self.repository.increment_attempts(email)
            return OTPResult(False, OTP_INVALID)

        self.repository.mark_verified(email)
        logger.info("OTP verified for %s", email)
        return OTPResult(True, OTP_VERIFIED)

    def resend(self, email: str, user_name: Optional[str] = None) -> ResendResult:
        cooldown = self.settings.OTP_RESEND_COOLDOWN_SECONDS
        existing = self.repository.get(email)
        if existing is not None:
            elapsed = int((self.clock() - existing.created_at).total_seconds())
            if elapsed < cooldown:
                wait_seconds = cooldown - elapsed
                return ResendResult(
                    allowed=False,
                    message=f"Please wait {wait_seconds} seconds before requesting a new OTP",
                    wait_seconds=wait_seconds,
                )

        self.send(email, user_name)
        return ResendResult(allowed=True, message=OTP_SENT)

    def is_verified(self, email: str) -> bool:
        challenge = self.repository.get(email)
        if challenge is None or not challenge.is_verified:
            return False
        return self.clock() <= challenge.expires_at

    def purge_expired(self) -> int:
        return self.repository.purge_expired(self.clock())
