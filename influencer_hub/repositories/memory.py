"""In-memory repositories used as test doubles.

Each instance owns its own state; nothing is shared between instances.
"""
import itertools
import threading
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from .. import models
from ..core.exceptions import ConflictError
from ..utils import utcnow
from .base import (
    CAMPAIGN_LIST_LIMIT,
    Account,
    AccountRepository,
    CampaignRepository,
    OTPRepository,
    Repositories,
)


def _stamp(record, record_id=None):
    now = utcnow()
    if getattr(record, "id", None) is None:
        record.id = record_id if record_id is not None else models.new_id()
    if record.created_at is None:
        record.created_at = now
    record.updated_at = now
    return record


def _newest_first(records):
    return sorted(records, key=lambda record: record.created_at, reverse=True)


class InMemoryAccountRepository(AccountRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._accounts: Dict[str, Dict[str, Account]] = {"creator": {}, "brand": {}}

    def get_by_email(self, role: str, email: str) -> Optional[Account]:
        email = email.lower()
        for account in self._accounts[role].values():
            if account.email.lower() == email:
                return account
        return None

    def get_by_id(self, role: str, account_id: str) -> Optional[Account]:
        return self._accounts[role].get(account_id)

    def find_creator_by_instagram(self, instagram_username: str) -> Optional[models.Creator]:
        handle = instagram_username.lower()
        for creator in self._accounts["creator"].values():
            if creator.instagram_username.lower() == handle:
                return creator
        return None

    def find_creator_by_phone(self, phone: str) -> Optional[models.Creator]:
        for creator in self._accounts["creator"].values():
            if creator.phone == phone:
                return creator
        return None

    def add(self, account: Account) -> Account:
        with self._lock:
            if self.get_by_email(account.role, account.email) is not None:
                raise ConflictError("Account already exists")
            _stamp(account)
            self._accounts[account.role][account.id] = account
        return account

    def update(self, account: Account, changes: dict) -> Account:
        with self._lock:
            for field, value in changes.items():
                setattr(account, field, value)
            _stamp(account)
        return account


class InMemoryOTPRepository(OTPRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._challenges: Dict[str, models.OTPVerification] = {}

    def get(self, email: str) -> Optional[models.OTPVerification]:
        return self._challenges.get(email.lower())

    def replace(self, challenge: models.OTPVerification) -> models.OTPVerification:
        with self._lock:
            _stamp(challenge, next(self._ids))
            self._challenges[challenge.email.lower()] = challenge
        return challenge

    def delete(self, email: str) -> None:
        with self._lock:
            self._challenges.pop(email.lower(), None)

    def increment_attempts(self, email: str) -> None:
        with self._lock:
            challenge = self._challenges.get(email.lower())
            if challenge is not None:
                challenge.attempts += 1

    def mark_verified(self, email: str) -> None:
        with self._lock:
            challenge = self._challenges.get(email.lower())
            if challenge is not None:
                challenge.is_verified = True

    def purge_expired(self, now: datetime) -> int:
        with self._lock:
            expired = [email for email, challenge in self._challenges.items() if challenge.expires_at < now]
            for email in expired:
                del self._challenges[email]
        return len(expired)


class InMemoryCampaignRepository(CampaignRepository):
    def __init__(self):
        self._lock = threading.Lock()
        self._campaigns: Dict[str, models.Campaign] = {}
        self._applications: Dict[str, models.CampaignApplication] = {}

    def add(self, campaign: models.Campaign) -> models.Campaign:
        with self._lock:
            _stamp(campaign)
            self._campaigns[campaign.id] = campaign
        return campaign

    def get(self, campaign_id: str) -> Optional[models.Campaign]:
        return self._campaigns.get(campaign_id)

    def get_many(self, campaign_ids: Iterable[str]) -> List[models.Campaign]:
        return [self._campaigns[cid] for cid in campaign_ids if cid in self._campaigns]

    def list(
        self,
        brand_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = CAMPAIGN_LIST_LIMIT,
    ) -> List[models.Campaign]:
        matches = [
            campaign
            for campaign in self._campaigns.values()
            if campaign.status != "draft"
            and (not brand_id or campaign.brand_id == brand_id)
            and (not status or campaign.status == status)
        ]
        return _newest_first(matches)[:limit]

    def ids_for_brand(self, brand_id: str) -> List[str]:
        return [cid for cid, campaign in self._campaigns.items() if campaign.brand_id == brand_id]

    def get_application(self, campaign_id: str, creator_id: str) -> Optional[models.CampaignApplication]:
        for application in self._applications.values():
            if application.campaign_id == campaign_id and application.creator_id == creator_id:
                return application
        return None

    def add_application(self, application: models.CampaignApplication) -> models.CampaignApplication:
        with self._lock:
            if self.get_application(application.campaign_id, application.creator_id) is not None:
                raise ConflictError("Already applied to this campaign")
            _stamp(application)
            self._applications[application.id] = application
            campaign = self._campaigns.get(application.campaign_id)
            if campaign is not None and application.creator_id not in campaign.applicant_ids:
                campaign.applicant_ids = campaign.applicant_ids + [application.creator_id]
        return application

    def list_applications(
        self,
        creator_id: Optional[str] = None,
        campaign_ids: Optional[Iterable[str]] = None,
    ) -> List[models.CampaignApplication]:
        wanted = set(campaign_ids) if campaign_ids is not None else None
        matches = [
            application
            for application in self._applications.values()
            if (not creator_id or application.creator_id == creator_id)
            and (wanted is None or application.campaign_id in wanted)
        ]
        return _newest_first(matches)


def build_memory_repositories() -> Repositories:
    return Repositories(
        accounts=InMemoryAccountRepository(),
        otp=InMemoryOTPRepository(),
        campaigns=InMemoryCampaignRepository(),
    )
