import logging
from typing import Union

from pydantic import ValidationError as PydanticValidationError

from .. import models, schemas
from ..core import security
from ..core.config import Settings, settings as default_settings
from ..core.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from ..repositories import ACCOUNT_MODELS, Account, AccountRepository
from ..utils import is_valid_pincode, normalize_phone, validate_password
from .otp import OTPService

logger = logging.getLogger(__name__)

MINIMUM_CREATOR_AGE = 18
INVALID_CREDENTIALS = "Invalid email or password"

PROFILE_SCHEMAS = {
    "creator": (schemas.CreatorProfile, schemas.CreatorProfileUpdate),
    "brand": (schemas.BrandProfile, schemas.BrandProfileUpdate),
}


def display_name(account: Account) -> str:
    if isinstance(account, models.Brand):
        return account.company_name
    return account.name


def user_summary(account: Account) -> schemas.UserSummary:
    return schemas.UserSummary(
        id=account.id,
        name=display_name(account),
        email=account.email,
        role=account.role,
        verification_status=account.verification_status,
        subscription_status=getattr(account, "subscription_status", None),
    )


def validation_details(exc: PydanticValidationError) -> list:
    return [
        f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
        for error in exc.errors()
    ]


class AccountService:
    """Signup, login and profile management for creator and brand accounts."""

    def __init__(
        self,
        accounts: AccountRepository,
        otp: OTPService,
        settings: Settings = default_settings,
    ):
        self.accounts = accounts
        self.otp = otp
        self.settings = settings

    def _normalize_phone(self, phone: str) -> str:
        try:
            return normalize_phone(phone, self.settings.DEFAULT_COUNTRY_CODE)
        except ValueError:
            raise ValidationError("Invalid phone number")

    def _check_password(self, password: str) -> None:
        is_valid, errors = validate_password(password)
        if not is_valid:
            raise ValidationError("Password does not meet requirements", details=errors)

    def _check_email_available(self, role: str, email: str) -> None:
        if self.accounts.get_by_email(role, email) is not None:
            raise ConflictError("Email already registered")

    def _check_email_verified(self, email: str) -> None:
        if self.settings.SIGNUP_REQUIRES_VERIFIED_EMAIL and not self.otp.is_verified(email):
            raise ValidationError("Email address has not been verified")

    def _authenticated(self, account: Account, message: str) -> schemas.AuthResponse:
        tokens = security.issue_token_pair(account.id, account.email, account.role)
        return schemas.AuthResponse(message=message, user=user_summary(account), **tokens)

    def signup(self, payload: Union[schemas.CreatorSignup, schemas.BrandSignup]) -> schemas.AuthResponse:
        if payload.role == "creator":
            account = self._signup_creator(payload)
            message = "Creator account created successfully"
        else:
            account = self._signup_brand(payload)
            message = "Brand account created successfully"
        logger.info("Created %s account %s", account.role, account.id)
        return self._authenticated(account, message)

    def _signup_creator(self, payload: schemas.CreatorSignup) -> models.Creator:
        self._check_password(payload.password)
        if not is_valid_pincode(payload.pincode):
            raise ValidationError("Pincode must be 5-6 digits")
        if payload.age < MINIMUM_CREATOR_AGE:
            raise ValidationError("Must be at least 18 years old")

        email = str(payload.email).lower()
        instagram_username = payload.instagram_username.lower()
        phone = self._normalize_phone(payload.phone)
        whatsapp_number = self._normalize_phone(payload.whatsapp_number)

        self._check_email_available("creator", email)
        if self.accounts.find_creator_by_instagram(instagram_username) is not None:
            raise ConflictError("Instagram username already registered")
        if self.accounts.find_creator_by_phone(phone) is not None:
            raise ConflictError("Phone number already registered")
        self._check_email_verified(email)

        creator = models.Creator(
            name=payload.name,
            email=email,
            password_hash=security.get_password_hash(payload.password),
            phone=phone,
            whatsapp_number=whatsapp_number,
            instagram_profile=payload.instagram_profile,
            instagram_username=instagram_username,
            followers_count=payload.followers_count,
            average_reel_views=payload.average_reel_views,
            past_collaborations=payload.past_collaborations,
            age=payload.age,
            gender=payload.gender,
            address=payload.address,
            city=payload.city,
            state=payload.state,
            country=payload.country,
            pincode=payload.pincode,
            content_niche=list(payload.content_niche),
            creator_type=payload.creator_type,
            youtube_link=payload.youtube_link,
            youtube_subscribers=payload.youtube_subscribers,
            subscription_status="free",
            verification_status="pending",
        )
        return self.accounts.add(creator)

    def _signup_brand(self, payload: schemas.BrandSignup) -> models.Brand:
        self._check_password(payload.password)

        email = str(payload.email).lower()
        phone = self._normalize_phone(payload.phone)

        self._check_email_available("brand", email)
        self._check_email_verified(email)

        brand = models.Brand(
            name=payload.name,
            email=email,
            password_hash=security.get_password_hash(payload.password),
            phone=phone,
            company_name=payload.company_name,
            website=payload.website,
            industry=payload.industry,
            description=payload.description,
            logo=payload.logo,
            verification_status="pending",
        )
        return self.accounts.add(brand)

    def login(self, payload: schemas.LoginRequest) -> schemas.AuthResponse:
        account = self.accounts.get_by_email(payload.role, payload.email)
        if account is None:
            security.verify_password(payload.password, security.dummy_password_hash())
            logger.info("Failed %s login attempt", payload.role)
            raise AuthError(INVALID_CREDENTIALS)
        if not security.verify_password(payload.password, account.password_hash):
            logger.info("Failed %s login attempt", payload.role)
            raise AuthError(INVALID_CREDENTIALS)
        return self._authenticated(account, "Login successful")

    def _load(self, identity: schemas.TokenPayload) -> Account:
        account = None
        if identity.role in ACCOUNT_MODELS:
            account = self.accounts.get_by_id(identity.role, identity.user_id)
        if account is None:
            raise NotFoundError("User not found")
        return account

    def get_profile(self, identity: schemas.TokenPayload):
        account = self._load(identity)
        profile_schema, _ = PROFILE_SCHEMAS[identity.role]
        return profile_schema.model_validate(account)

    def update_profile(self, identity: schemas.TokenPayload, payload: dict):
        account = self._load(identity)
        profile_schema, update_schema = PROFILE_SCHEMAS[identity.role]
        try:
            update = update_schema.model_validate(payload)
        except PydanticValidationError as exc:
            raise ValidationError("Missing or invalid fields", details=validation_details(exc))

        changes = update.model_dump(exclude_none=True)
        if "phone" in changes:
            changes["phone"] = self._normalize_phone(changes["phone"])
        if "whatsapp_number" in changes:
            changes["whatsapp_number"] = self._normalize_phone(changes["whatsapp_number"])
        if "pincode" in changes and not is_valid_pincode(changes["pincode"]):
            raise ValidationError("Pincode must be 5-6 digits")
        if changes.get("age", MINIMUM_CREATOR_AGE) < MINIMUM_CREATOR_AGE:
            raise ValidationError("Must be at least 18 years old")

        if identity.role == "creator":
            self._check_creator_uniqueness(account, changes)

        account = self.accounts.update(account, changes)
        return profile_schema.model_validate(account)

    def _check_creator_uniqueness(self, creator: models.Creator, changes: dict) -> None:
        if "instagram_username" in changes:
            changes["instagram_username"] = changes["instagram_username"].lower()
            other = self.accounts.find_creator_by_instagram(changes["instagram_username"])
            if other is not None and other.id != creator.id:
                raise ConflictError("Instagram username already registered")
        if "phone" in changes:
            other = self.accounts.find_creator_by_phone(changes["phone"])
            if other is not None and other.id != creator.id:
                raise ConflictError("Phone number already registered")
