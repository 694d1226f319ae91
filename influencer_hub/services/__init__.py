from .accounts import AccountService
from .campaigns import CampaignService
from .mailer import EmailDispatcher
from .otp import OTPService

__all__ = ["AccountService", "CampaignService", "EmailDispatcher", "OTPService"]
