from __future__ import annotations
from datetime import datetime
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, EmailStr, Field, RootModel, field_validator
from pydantic.alias_generators import to_camel

Role = Literal["creator", "brand", "admin"]
AccountRole = Literal["creator", "brand"]
VerificationStatus = Literal["pending", "verified", "rejected"]
CampaignStatus = Literal["draft", "active", "closed", "completed"]
ApplicationStatus = Literal["applied", "approved", "rejected", "in-progress", "submitted", "completed"]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _as_list(value):
    if isinstance(value, str):
        return [value]
    return value


class TokenPayload(CamelModel):
    user_id: str
    email: str
    role: Role
    iat: Optional[int] = None
    exp: Optional[int] = None


# Auth

class CreatorSignup(CamelModel):
    role: Literal["creator"]
    name: str = Field(min_length=1)
    email: EmailStr
    password: str
    phone: str = Field(min_length=1)
    whatsapp_number: str = Field(min_length=1)
    instagram_profile: str = Field(min_length=1)
    instagram_username: str = Field(min_length=1)
    followers_count: int = Field(ge=0)
    average_reel_views: int = Field(ge=0)
    past_collaborations: int = Field(ge=0)
    age: int
    gender: Literal["male", "female", "other"]
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = "India"
    pincode: str = Field(min_length=1)
    content_niche: List[str] = Field(min_length=1)
    creator_type: str = Field(min_length=1)
    youtube_link: Optional[str] = None
    youtube_subscribers: Optional[int] = Field(default=None, ge=0)

    @field_validator("content_niche", mode="before")
    @classmethod
    def wrap_niche(cls, value):
        return _as_list(value)


class BrandSignup(CamelModel):
    role: Literal["brand"]
    name: str = Field(min_length=1)
    email: EmailStr
    password: str
    phone: str = Field(min_length=1)
    company_name: str = Field(min_length=1)
    website: Optional[str] = None
    industry: str = Field(min_length=1)
    description: str = Field(min_length=1)
    logo: Optional[str] = None


class SignupRequest(RootModel):
    root: Annotated[Union[CreatorSignup, BrandSignup], Field(discriminator="role")]


class LoginRequest(CamelModel):
    email: str = Field(min_length=1)
    password: str = Field(min_length=1)
    role: AccountRole


class SendOTPRequest(CamelModel):
    email: EmailStr
    user_name: Optional[str] = None
    is_resend: bool = False


class VerifyOTPRequest(CamelModel):
    email: str = Field(min_length=1)
    otp: str = Field(min_length=1)


class UserSummary(CamelModel):
    id: str
    name: str
    email: str
    role: AccountRole
    verification_status: VerificationStatus
    subscription_status: Optional[str] = None


class AuthResponse(CamelModel):
    message: str
    access_token: str
    refresh_token: str
    user: UserSummary


class OTPSentResponse(CamelModel):
    message: str
    email: str


class OTPVerifiedResponse(CamelModel):
    message: str
    verified: bool
    email: str


# Profiles

class CreatorProfile(CamelModel):
    id: str
    role: Literal["creator"] = "creator"
    name: str
    email: str
    phone: str
    whatsapp_number: str
    instagram_profile: str
    instagram_username: str
    followers_count: int
    average_reel_views: int
    past_collaborations: int
    age: int
    gender: str
    address: str
    city: str
    state: str
    country: str
    pincode: str
    content_niche: List[str]
    creator_type: str
    youtube_link: Optional[str] = None
    youtube_subscribers: Optional[int] = None
    subscription_status: str
    subscription_start_date: Optional[datetime] = None
    subscription_end_date: Optional[datetime] = None
    verification_status: VerificationStatus
    created_at: datetime
    updated_at: datetime


class BrandProfile(CamelModel):
    id: str
    role: Literal["brand"] = "brand"
    name: str
    email: str
    phone: str
    company_name: str
    website: Optional[str] = None
    industry: str
    description: str
    logo: Optional[str] = None
    verification_status: VerificationStatus
    created_at: datetime
    updated_at: datetime


class ProfileUpdate(CamelModel):
    """Fields an account holder may change on their own profile.

    Email, role and password are not fields here, so they are dropped
    from incoming payloads.
    """

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = Field(default=None, min_length=1)


class CreatorProfileUpdate(ProfileUpdate):
    whatsapp_number: Optional[str] = Field(default=None, min_length=1)
    instagram_profile: Optional[str] = Field(default=None, min_length=1)
    instagram_username: Optional[str] = Field(default=None, min_length=1)
    followers_count: Optional[int] = Field(default=None, ge=0)
    average_reel_views: Optional[int] = Field(default=None, ge=0)
    past_collaborations: Optional[int] = Field(default=None, ge=0)
    age: Optional[int] = None
    gender: Optional[Literal["male", "female", "other"]] = None
    address: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = Field(default=None, min_length=1)
    pincode: Optional[str] = Field(default=None, min_length=1)
    content_niche: Optional[List[str]] = Field(default=None, min_length=1)
    creator_type: Optional[str] = Field(default=None, min_length=1)
    youtube_link: Optional[str] = None
    youtube_subscribers: Optional[int] = Field(default=None, ge=0)

    @field_validator("content_niche", mode="before")
    @classmethod
    def wrap_niche(cls, value):
        return _as_list(value)


class BrandProfileUpdate(ProfileUpdate):
    company_name: Optional[str] = Field(default=None, min_length=1)
    website: Optional[str] = None
    industry: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    logo: Optional[str] = None


class ProfileResponse(CamelModel):
    user: Union[CreatorProfile, BrandProfile]


class ProfileUpdatedResponse(ProfileResponse):
    message: str


# Campaigns

class CampaignCreate(CamelModel):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    budget: float = Field(gt=0)
    start_date: datetime
    end_date: datetime
    required_niches: List[str] = Field(min_length=1)
    required_followers: int = Field(default=0, ge=0)
    status: CampaignStatus = "active"

    @field_validator("required_niches", mode="before")
    @classmethod
    def wrap_niches(cls, value):
        return _as_list(value)


class CampaignSummary(CamelModel):
    id: str
    title: str
    status: CampaignStatus
    budget: float


class CampaignCreatedResponse(CamelModel):
    message: str
    campaign: CampaignSummary


class CampaignOut(CamelModel):
    id: str
    brand_id: str
    title: str
    description: str
    budget: float
    start_date: datetime
    end_date: datetime
    required_niches: List[str]
    required_followers: int
    status: CampaignStatus
    applicant_ids: List[str]
    approved_influencer_ids: List[str]
    created_at: datetime
    updated_at: datetime
    application_status: Optional[ApplicationStatus] = None


class CampaignListResponse(CamelModel):
    campaigns: List[CampaignOut]


class ApplyRequest(CamelModel):
    campaign_id: Optional[str] = None


class ApplicationSummary(CamelModel):
    id: str
    campaign_id: str
    status: ApplicationStatus


class ApplicationCreatedResponse(CamelModel):
    message: str
    application: ApplicationSummary


class ApplicationOut(CamelModel):
    id: str
    campaign_id: str
    campaign_title: str = ""
    creator_id: str
    status: ApplicationStatus
    submitted_assets: List[str] = []
    submission_date: Optional[datetime] = None
    approval_date: Optional[datetime] = None
    created_at: datetime


class ApplicationListResponse(CamelModel):
    applications: List[ApplicationOut]
