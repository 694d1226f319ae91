# influencer_hub/models.py
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
    UniqueConstraint,
)

from .database import Base
from .utils import utcnow


def new_id() -> str:
    return uuid.uuid4().hex


class TimestampMixin:
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)


class Creator(TimestampMixin, Base):
    __tablename__ = "creators"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    phone = Column(String, unique=True, index=True, nullable=False)
    whatsapp_number = Column(String, nullable=False)

    instagram_profile = Column(String, nullable=False)
    instagram_username = Column(String, unique=True, index=True, nullable=False)
    followers_count = Column(Integer, default=0, nullable=False)
    average_reel_views = Column(Integer, default=0, nullable=False)
    past_collaborations = Column(Integer, default=0, nullable=False)

    age = Column(Integer, nullable=False)
    gender = Column(String, nullable=False)

    address = Column(String, nullable=False)
    city = Column(String, nullable=False)
    state = Column(String, nullable=False)
    country = Column(String, nullable=False, default="India")
    pincode = Column(String, nullable=False)

    content_niche = Column(JSON, nullable=False, default=list)
    creator_type = Column(String, nullable=False)
    youtube_link = Column(String, nullable=True)
    youtube_subscribers = Column(Integer, nullable=True)

    subscription_status = Column(String, nullable=False, default="free")
    subscription_start_date = Column(DateTime, nullable=True)
    subscription_end_date = Column(DateTime, nullable=True)
    verification_status = Column(String, nullable=False, default="pending")

    role = "creator"


class Brand(TimestampMixin, Base):
    __tablename__ = "brands"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    phone = Column(String, index=True, nullable=False)
    company_name = Column(String, nullable=False)
    website = Column(String, nullable=True)
    industry = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    logo = Column(String, nullable=True)
    verification_status = Column(String, nullable=False, default="pending")

    role = "brand"


class OTPVerification(TimestampMixin, Base):
    __tablename__ = "otp_verifications"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, index=True, nullable=False)
    otp = Column(String, nullable=False)
    expires_at = Column(DateTime, index=True, nullable=False)
    attempts = Column(Integer, default=0, nullable=False)
    is_verified = Column(Boolean, default=False, nullable=False)


class Campaign(TimestampMixin, Base):
    __tablename__ = "campaigns"

    id = Column(String(32), primary_key=True, default=new_id)
    brand_id = Column(String(32), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    budget = Column(Float, nullable=False)
    start_date = Column(DateTime, nullable=False)
    end_date = Column(DateTime, nullable=False)
    required_niches = Column(JSON, nullable=False, default=list)
    required_followers = Column(Integer, nullable=False, default=0)
    status = Column(String, index=True, nullable=False, default="active")
    applicant_ids = Column(JSON, nullable=False, default=list)
    approved_influencer_ids = Column(JSON, nullable=False, default=list)


class CampaignApplication(TimestampMixin, Base):
    __tablename__ = "campaign_applications"
    __table_args__ = (
        UniqueConstraint("campaign_id", "creator_id", name="uq_application_campaign_creator"),
    )

    id = Column(String(32), primary_key=True, default=new_id)
    campaign_id = Column(String(32), index=True, nullable=False)
    creator_id = Column(String(32), index=True, nullable=False)
    status = Column(String, nullable=False, default="applied")
    submitted_assets = Column(JSON, nullable=False, default=list)
    submission_date = Column(DateTime, nullable=True)
    approval_date = Column(DateTime, nullable=True)
