import logging
from datetime import timezone
from typing import List, Optional

from .. import models, schemas
from ..core.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from ..repositories import CampaignRepository

logger = logging.getLogger(__name__)


def _naive_utc(value):
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class CampaignService:
    def __init__(self, campaigns: CampaignRepository):
        self.campaigns = campaigns

    def create(self, brand_id: str, payload: schemas.CampaignCreate) -> schemas.CampaignCreatedResponse:
        start_date = _naive_utc(payload.start_date)
        end_date = _naive_utc(payload.end_date)
        if end_date <= start_date:
            raise ValidationError("End date must be after start date")

        campaign = self.campaigns.add(models.Campaign(
            brand_id=brand_id,
            title=payload.title,
            description=payload.description,
            budget=payload.budget,
            start_date=start_date,
            end_date=end_date,
            required_niches=list(payload.required_niches),
            required_followers=payload.required_followers,
            status=payload.status,
            applicant_ids=[],
            approved_influencer_ids=[],
        ))
        logger.info("Brand %s created campaign %s", brand_id, campaign.id)
        return schemas.CampaignCreatedResponse(
            message="Campaign created successfully",
            campaign=schemas.CampaignSummary.model_validate(campaign),
        )

    def list(
        self,
        creator_id: Optional[str] = None,
        brand_id: Optional[str] = None,
        status: Optional[str] = None,
    ) -> List[schemas.CampaignOut]:
        campaigns = self.campaigns.list(brand_id=brand_id, status=status)
        results = [schemas.CampaignOut.model_validate(campaign) for campaign in campaigns]
        if creator_id and results:
            applications = self.campaigns.list_applications(
                creator_id=creator_id,
                campaign_ids=[campaign.id for campaign in results],
            )
            statuses = {application.campaign_id: application.status for application in applications}
            for campaign in results:
                campaign.application_status = statuses.get(campaign.id)
        return results

    def apply(self, creator_id: str, campaign_id: Optional[str]) -> schemas.ApplicationCreatedResponse:
        if not campaign_id:
            raise ValidationError("Campaign ID is required")
        if self.campaigns.get(campaign_id) is None:
            raise NotFoundError("Campaign not found")

        # add_application enforces this as well
        if self.campaigns.get_application(campaign_id, creator_id) is not None:
            raise ConflictError("Already applied to this campaign")

        application = self.campaigns.add_application(models.CampaignApplication(
            campaign_id=campaign_id,
            creator_id=creator_id,
            status="applied",
            submitted_assets=[],
        ))
        logger.info("Creator %s applied to campaign %s", creator_id, campaign_id)
        return schemas.ApplicationCreatedResponse(
            message="Applied to campaign successfully",
            application=schemas.ApplicationSummary.model_validate(application),
        )

    def list_applications(
        self,
        identity: schemas.TokenPayload,
        role: Optional[str] = None,
    ) -> List[schemas.ApplicationOut]:
        if role and role != identity.role:
            raise AuthError()

        if identity.role == "creator":
            applications = self.campaigns.list_applications(creator_id=identity.user_id)
        elif identity.role == "brand":
            applications = self.campaigns.list_applications(
                campaign_ids=self.campaigns.ids_for_brand(identity.user_id)
            )
        else:
            applications = self.campaigns.list_applications()

        titles = {
            campaign.id: campaign.title
            for campaign in self.campaigns.get_many({a.campaign_id for a in applications})
        }
        results = []
        for application in applications:
            item = schemas.ApplicationOut.model_validate(application)
            item.campaign_title = titles.get(application.campaign_id, "")
            results.append(item)
        return results
