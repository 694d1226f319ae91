import logging

from fastapi import APIRouter, BackgroundTasks, Depends, status

from .. import schemas
from ..core.dependencies import get_account_service, get_mailer, get_otp_service
from ..core.exceptions import AuthError, RateLimitError
from ..services import AccountService, EmailDispatcher, OTPService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=schemas.AuthResponse, status_code=status.HTTP_201_CREATED,
             response_model_exclude_none=True)
def signup(
        payload: schemas.SignupRequest,
        background_tasks: BackgroundTasks,
        accounts: AccountService = Depends(get_account_service),
        mailer: EmailDispatcher = Depends(get_mailer),
):
    result = accounts.signup(payload.root)
    background_tasks.add_task(mailer.send_welcome_email, result.user.email, result.user.name)
    return result


@router.post("/login", response_model=schemas.AuthResponse, response_model_exclude_none=True)
def login(
        payload: schemas.LoginRequest,
        accounts: AccountService = Depends(get_account_service),
):
    return accounts.login(payload)


@router.post("/send-otp", response_model=schemas.OTPSentResponse)
def send_otp(
        payload: schemas.SendOTPRequest,
        otp_service: OTPService = Depends(get_otp_service),
):
    email = str(payload.email).lower()
    if payload.is_resend:
        result = otp_service.resend(email, payload.user_name)
        if not result.allowed:
            raise RateLimitError(result.message, result.wait_seconds)
        return {"message": result.message, "email": email}

    otp_service.send(email, payload.user_name)
    return {"message": "OTP sent successfully", "email": email}


@router.post("/verify-otp", response_model=schemas.OTPVerifiedResponse)
def verify_otp(
        payload: schemas.VerifyOTPRequest,
        otp_service: OTPService = Depends(get_otp_service),
):
    result = otp_service.verify(payload.email, payload.otp)
    if not result.valid:
        raise AuthError(result.reason)
    return {"message": result.reason, "verified": True, "email": payload.email.lower()}
