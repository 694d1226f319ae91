import logging
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .. import models
from ..core.exceptions import ConflictError, DownstreamError
from .base import (
    ACCOUNT_MODELS,
    CAMPAIGN_LIST_LIMIT,
    Account,
    AccountRepository,
    CampaignRepository,
    OTPRepository,
    Repositories,
)

logger = logging.getLogger(__name__)


def _commit(db: Session, conflict_message: str = "Record already exists") -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(conflict_message) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Database commit failed")
        raise DownstreamError("Internal server error") from exc


class SqlAccountRepository(AccountRepository):
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, role: str, email: str) -> Optional[Account]:
        model = ACCOUNT_MODELS[role]
        return self.db.query(model).filter(func.lower(model.email) == email.lower()).first()

    def get_by_id(self, role: str, account_id: str) -> Optional[Account]:
        return self.db.get(ACCOUNT_MODELS[role], account_id)

    def find_creator_by_instagram(self, instagram_username: str) -> Optional[models.Creator]:
        return (
            self.db.query(models.Creator)
            .filter(func.lower(models.Creator.instagram_username) == instagram_username.lower())
            .first()
        )

    def find_creator_by_phone(self, phone: str) -> Optional[models.Creator]:
        return self.db.query(models.Creator).filter(models.Creator.phone == phone).first()

    def add(self, account: Account) -> Account:
        self.db.add(account)
        _commit(self.db, "Account already exists")
        self.db.refresh(account)
        return account

    def update(self, account: Account, changes: dict) -> Account:
        for field, value in changes.items():
            setattr(account, field, value)
        _commit(self.db, "Profile update conflicts with an existing account")
        self.db.refresh(account)
        return account


class SqlOTPRepository(OTPRepository):
    def __init__(self, db: Session):
        self.db = db

    def _by_email(self, email: str):
        return self.db.query(models.OTPVerification).filter(
            models.OTPVerification.email == email.lower()
        )

    def get(self, email: str) -> Optional[models.OTPVerification]:
        return self._by_email(email).first()

    def replace(self, challenge: models.OTPVerification) -> models.OTPVerification:
        self._by_email(challenge.email).delete(synchronize_session=False)
        self.db.add(challenge)
        _commit(self.db, "A verification code was issued concurrently for this email")
        self.db.refresh(challenge)
        return challenge

    def delete(self, email: str) -> None:
        self._by_email(email).delete(synchronize_session=False)
        _commit(self.db)

    def increment_attempts(self, email: str) -> None:
        # single UPDATE so concurrent wrong guesses are all counted
        self._by_email(email).update(
            {models.OTPVerification.attempts: models.OTPVerification.attempts + 1},
            synchronize_session=False,
        )
        _commit(self.db)

    def mark_verified(self, email: str) -> None:
        self._by_email(email).update(
            {models.OTPVerification.is_verified: True},
            synchronize_session=False,
        )
        _commit(self.db)

    def purge_expired(self, now: datetime) -> int:
        deleted = (
            self.db.query(models.OTPVerification)
            .filter(models.OTPVerification.expires_at < now)
            .delete(synchronize_session=False)
        )
        _commit(self.db)
        return deleted


class SqlCampaignRepository(CampaignRepository):
    def __init__(self, db: Session):
        self.db = db

    def add(self, campaign: models.Campaign) -> models.Campaign:
        self.db.add(campaign)
        _commit(self.db)
        self.db.refresh(campaign)
        return campaign

    def get(self, campaign_id: str) -> Optional[models.Campaign]:
        return self.db.get(models.Campaign, campaign_id)

    def get_many(self, campaign_ids: Iterable[str]) -> List[models.Campaign]:
        ids = [campaign_id for campaign_id in campaign_ids]
        if not ids:
            return []
        return self.db.query(models.Campaign).filter(models.Campaign.id.in_(ids)).all()

    def list(
        self,
        brand_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = CAMPAIGN_LIST_LIMIT,
    ) -> List[models.Campaign]:
        query = self.db.query(models.Campaign).filter(models.Campaign.status != "draft")
        if brand_id:
            query = query.filter(models.Campaign.brand_id == brand_id)
        if status:
            query = query.filter(models.Campaign.status == status)
        return query.order_by(models.Campaign.created_at.desc()).limit(limit).all()

    def ids_for_brand(self, brand_id: str) -> List[str]:
        rows = self.db.query(models.Campaign.id).filter(models.Campaign.brand_id == brand_id).all()
        return [row.id for row in rows]

    def get_application(self, campaign_id: str, creator_id: str) -> Optional[models.CampaignApplication]:
        return (
            self.db.query(models.CampaignApplication)
            .filter(
                models.CampaignApplication.campaign_id == campaign_id,
                models.CampaignApplication.creator_id == creator_id,
            )
            .first()
        )

    def add_application(self, application: models.CampaignApplication) -> models.CampaignApplication:
        # one transaction: the application row and the campaign's applicant set
        campaign = self.db.get(models.Campaign, application.campaign_id)
        self.db.add(application)
        if campaign is not None:
            applicants = campaign.applicant_ids or []
            if application.creator_id not in applicants:
                campaign.applicant_ids = applicants + [application.creator_id]
        _commit(self.db, "Already applied to this campaign")
        self.db.refresh(application)
        return application

    def list_applications(
        self,
        creator_id: Optional[str] = None,
        campaign_ids: Optional[Iterable[str]] = None,
    ) -> List[models.CampaignApplication]:
        query = self.db.query(models.CampaignApplication)
        if creator_id:
            query = query.filter(models.CampaignApplication.creator_id == creator_id)
        if campaign_ids is not None:
            ids = [campaign_id for campaign_id in campaign_ids]
            if not ids:
                return []
            query = query.filter(models.CampaignApplication.campaign_id.in_(ids))
        return query.order_by(models.CampaignApplication.created_at.desc()).all()


def build_sql_repositories(db: Session) -> Repositories:
    return Repositories(
        accounts=SqlAccountRepository(db),
        otp=SqlOTPRepository(db),
        campaigns=SqlCampaignRepository(db),
    )
