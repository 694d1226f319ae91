from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional, Union

from .. import models

Account = Union[models.Creator, models.Brand]

ACCOUNT_MODELS = {
    "creator": models.Creator,
    "brand": models.Brand,
}

CAMPAIGN_LIST_LIMIT = 50


class AccountRepository(ABC):
    @abstractmethod
    def get_by_email(self, role: str, email: str) -> Optional[Account]:
        """Case-insensitive lookup within the role's own collection."""

    @abstractmethod
    def get_by_id(self, role: str, account_id: str) -> Optional[Account]:
        ...

    @abstractmethod
    def find_creator_by_instagram(self, instagram_username: str) -> Optional[models.Creator]:
        ...

    @abstractmethod
    def find_creator_by_phone(self, phone: str) -> Optional[models.Creator]:
        ...

    @abstractmethod
    def add(self, account: Account) -> Account:
        ...

    @abstractmethod
    def update(self, account: Account, changes: dict) -> Account:
        ...


class OTPRepository(ABC):
    @abstractmethod
    def get(self, email: str) -> Optional[models.OTPVerification]:
        ...

    @abstractmethod
    def replace(self, challenge: models.OTPVerification) -> models.OTPVerification:
        """Drop any challenge for the same email and store this one."""

    @abstractmethod
    def delete(self, email: str) -> None:
        ...

    @abstractmethod
    def increment_attempts(self, email: str) -> None:
        ...

    @abstractmethod
    def mark_verified(self, email: str) -> None:
        ...

    @abstractmethod
    def purge_expired(self, now: datetime) -> int:
        ...


class CampaignRepository(ABC):
    @abstractmethod
    def add(self, campaign: models.Campaign) -> models.Campaign:
        ...

    @abstractmethod
    def get(self, campaign_id: str) -> Optional[models.Campaign]:
        ...

    @abstractmethod
    def get_many(self, campaign_ids: Iterable[str]) -> List[models.Campaign]:
        ...

    @abstractmethod
    def list(
        self,
        brand_id: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = CAMPAIGN_LIST_LIMIT,
    ) -> List[models.Campaign]:
        """Newest first. Drafts never appear."""

    @abstractmethod
    def ids_for_brand(self, brand_id: str) -> List[str]:
        ...

    @abstractmethod
    def get_application(self, campaign_id: str, creator_id: str) -> Optional[models.CampaignApplication]:
        ...

    @abstractmethod
    def add_application(self, application: models.CampaignApplication) -> models.CampaignApplication:
        """Store the application and add its creator to the campaign's applicants in one step.

        Raises ConflictError when the (campaign, creator) pair already exists.
        """

    @abstractmethod
    def list_applications(
        self,
        creator_id: Optional[str] = None,
        campaign_ids: Optional[Iterable[str]] = None,
    ) -> List[models.CampaignApplication]:
        ...


@dataclass
class Repositories:
    accounts: AccountRepository
    otp: OTPRepository
    campaigns: CampaignRepository
