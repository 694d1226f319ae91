import os
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

import pytest

TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="influencer_hub_tests_"))

os.environ.setdefault("SECRET_KEY", "test-signing-secret-for-influencer-hub-suite")
os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_DIR / 'influencer_hub.db'}")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')
os.environ.setdefault("PASSWORD_HASH_ROUNDS", "4")

from influencer_hub.repositories import build_memory_repositories  # noqa: E402
from influencer_hub.services import AccountService, CampaignService, OTPService  # noqa: E402


class FakeMailer:
    def __init__(self):
        self.fail = False
        self.otp_emails = []
        self.welcome_emails = []

    def send_otp_email(self, to_email, otp, user_name=None):
        self.otp_emails.append((to_email, otp, user_name))
        return not self.fail

    def send_welcome_email(self, to_email, user_name):
        self.welcome_emails.append((to_email, user_name))
        return True

    def last_code(self, email):
        for to_email, otp, _ in reversed(self.otp_emails):
            if to_email.lower() == email.lower():
                return otp
        raise AssertionError(f"no OTP sent to {email}")


class FakeClock:
    def __init__(self, start=datetime(2025, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture()
def mailer():
    return FakeMailer()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def repositories():
    return build_memory_repositories()


@pytest.fixture()
def otp_service(repositories, mailer, clock):
    return OTPService(repositories.otp, mailer, clock=clock)


@pytest.fixture()
def account_service(repositories, otp_service):
    return AccountService(repositories.accounts, otp_service)


@pytest.fixture()
def campaign_service(repositories):
    return CampaignService(repositories.campaigns)


@pytest.fixture()
def creator_data():
    return {
        "role": "creator",
        "name": "Asha Rao",
        "email": "a@b.com",
        "password": "Abcdef1!",
        "phone": "9876543210",
        "whatsappNumber": "98765 43210",
        "instagramProfile": "https://instagram.com/asha.creates",
        "instagramUsername": "Asha.Creates",
        "followersCount": 12000,
        "averageReelViews": 4000,
        "pastCollaborations": 3,
        "age": 24,
        "gender": "female",
        "address": "12 MG Road",
        "city": "Bengaluru",
        "state": "Karnataka",
        "pincode": "560001",
        "contentNiche": ["fashion", "travel"],
        "creatorType": "micro",
    }


@pytest.fixture()
def brand_data():
    return {
        "role": "brand",
        "name": "Ravi Mehta",
        "email": "team@glowco.in",
        "password": "Brand#2024",
        "phone": "+91 91234 56789",
        "companyName": "GlowCo",
        "website": "https://glowco.in",
        "industry": "Beauty",
        "description": "Skincare for humid climates",
    }


@pytest.fixture()
def api_client(mailer):
    from fastapi.testclient import TestClient

    import influencer_hub.main as main_module
    from influencer_hub.core.dependencies import get_mailer
    from influencer_hub.database import Base, engine

    Base.metadata.drop_all(bind=engine)
    main_module.app.dependency_overrides[get_mailer] = lambda: mailer
    try:
        with TestClient(main_module.app) as client:
            yield client
    finally:
        main_module.app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="session", autouse=True)
def test_database_dir():
    yield TEST_DB_DIR
    from influencer_hub.database import engine

    engine.dispose()
    shutil.rmtree(TEST_DB_DIR, ignore_errors=True)
