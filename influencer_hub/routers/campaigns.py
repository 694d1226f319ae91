from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from .. import schemas
from ..core.dependencies import get_campaign_service, get_current_user, require_role
from ..services import CampaignService

router = APIRouter()


@router.get("", response_model=schemas.CampaignListResponse)
def list_campaigns(
        creator_id: Optional[str] = Query(None, alias="creatorId"),
        brand_id: Optional[str] = Query(None, alias="brandId"),
        campaign_status: Optional[str] = Query(None, alias="status"),
        campaigns: CampaignService = Depends(get_campaign_service),
):
    return {"campaigns": campaigns.list(creator_id=creator_id, brand_id=brand_id, status=campaign_status)}


@router.post("", response_model=schemas.CampaignCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_campaign(
        payload: schemas.CampaignCreate,
        current_user: schemas.TokenPayload = Depends(require_role("brand")),
        campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.create(current_user.user_id, payload)


@router.get("/applications", response_model=schemas.ApplicationListResponse)
def list_applications(
        role: Optional[str] = None,
        current_user: schemas.TokenPayload = Depends(get_current_user),
        campaigns: CampaignService = Depends(get_campaign_service),
):
    return {"applications": campaigns.list_applications(current_user, role)}


@router.post("/applications", response_model=schemas.ApplicationCreatedResponse,
             status_code=status.HTTP_201_CREATED)
def apply_to_campaign(
        payload: schemas.ApplyRequest,
        current_user: schemas.TokenPayload = Depends(require_role("creator")),
        campaigns: CampaignService = Depends(get_campaign_service),
):
    return campaigns.apply(current_user.user_id, payload.campaign_id)
