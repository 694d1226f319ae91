from fastapi import Request, Depends
from sqlalchemy.orm import Session

from . import security
from .exceptions import AuthError
from influencer_hub import schemas
from influencer_hub.database import get_db
from influencer_hub.repositories import Repositories, build_sql_repositories
from influencer_hub.services import AccountService, CampaignService, EmailDispatcher, OTPService


async def get_token_from_header(request: Request) -> str:
    token = security.extract_token_from_header(request.headers.get("Authorization"))
    if token is None:
        raise AuthError("Not authenticated")
    return token


async def get_current_user(token: str = Depends(get_token_from_header)) -> schemas.TokenPayload:
    payload = security.verify_token(token)
    if payload is None:
        raise AuthError("Could not validate credentials")
    return payload


def require_role(*roles: str):
    async def role_checker(
            current_user: schemas.TokenPayload = Depends(get_current_user)
    ) -> schemas.TokenPayload:
        if current_user.role not in roles:
            raise AuthError()
        return current_user

    return role_checker


def get_repositories(db: Session = Depends(get_db)) -> Repositories:
    return build_sql_repositories(db)


def get_mailer() -> EmailDispatcher:
    return EmailDispatcher()


def get_otp_service(
        repositories: Repositories = Depends(get_repositories),
        mailer: EmailDispatcher = Depends(get_mailer),
) -> OTPService:
    return OTPService(repositories.otp, mailer)


def get_account_service(
        repositories: Repositories = Depends(get_repositories),
        otp_service: OTPService = Depends(get_otp_service),
) -> AccountService:
    return AccountService(repositories.accounts, otp_service)


def get_campaign_service(repositories: Repositories = Depends(get_repositories)) -> CampaignService:
    return CampaignService(repositories.campaigns)
