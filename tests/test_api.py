from datetime import datetime, timedelta, timezone

import pytest

from influencer_hub import models
from influencer_hub.core import security
from influencer_hub.database import SessionLocal
from influencer_hub.main import purge_expired_otps
from influencer_hub.utils import utcnow


def _verify_email(client, mailer, email, user_name=None):
    response = client.post("/auth/send-otp", json={"email": email, "userName": user_name})
    assert response.status_code == 200, response.text
    response = client.post("/auth/verify-otp", json={"email": email, "otp": mailer.last_code(email)})
    assert response.status_code == 200, response.text


def _signup(client, mailer, data):
    _verify_email(client, mailer, data["email"])
    response = client.post("/auth/signup", json=data)
    assert response.status_code == 201, response.text
    return response.json()


def _auth(body):
    return {"Authorization": f"Bearer {body['accessToken']}"}


CAMPAIGN = {
    "title": "Monsoon Glow",
    "description": "Reels featuring the new sunscreen",
    "budget": 50000,
    "startDate": "2025-03-01T09:00:00Z",
    "endDate": "2025-03-31T09:00:00Z",
    "requiredNiches": ["beauty"],
    "requiredFollowers": 5000,
}


def test_health_check(api_client):
    response = api_client.get("/")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "message": "Nice and Healthy"}
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert "X-Process-Time" in response.headers


def test_creator_signup_end_to_end(api_client, mailer, creator_data):
    response = api_client.post("/auth/signup", json=creator_data)
    assert response.status_code == 400
    assert response.json()["error"] == "Email address has not been verified"

    response = api_client.post("/auth/send-otp", json={"email": "a@b.com", "userName": "Asha"})
    assert response.status_code == 200
    assert response.json() == {"message": "OTP sent successfully", "email": "a@b.com"}
    code = mailer.last_code("a@b.com")
    assert len(code) == 6 and code.isdigit()

    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": code})
    assert response.status_code == 200
    assert response.json() == {"message": "OTP verified successfully", "verified": True, "email": "a@b.com"}

    response = api_client.post("/auth/signup", json=creator_data)
    assert response.status_code == 201, response.text
    body = response.json()
    assert body["message"] == "Creator account created successfully"
    assert body["user"]["role"] == "creator"
    assert body["user"]["subscriptionStatus"] == "free"
    assert "passwordHash" not in body["user"]

    claims = security.verify_token(body["accessToken"])
    assert claims.role == "creator"
    assert claims.user_id == body["user"]["id"]
    assert claims.exp > datetime.now(timezone.utc).timestamp()
    assert mailer.welcome_emails == [("a@b.com", "Asha Rao")]

    response = api_client.post("/auth/signup", json=creator_data)
    assert response.status_code == 409
    assert response.json() == {"error": "Email already registered"}


def test_brand_signup_omits_subscription(api_client, mailer, brand_data):
    body = _signup(api_client, mailer, brand_data)
    assert body["user"]["name"] == "GlowCo"
    assert "subscriptionStatus" not in body["user"]


def test_signup_reports_password_rules(api_client, creator_data):
    creator_data["password"] = "ab"
    response = api_client.post("/auth/signup", json=creator_data)

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Password does not meet requirements"
    assert len(body["details"]) == 3


@pytest.mark.parametrize("payload", [
    {"role": "creator", "email": "a@b.com"},
    {"role": "agency", "email": "a@b.com", "password": "Abcdef1!"},
    {},
])
def test_signup_rejects_incomplete_payloads(api_client, payload):
    response = api_client.post("/auth/signup", json=payload)
    assert response.status_code == 400
    assert response.json()["error"] == "Missing or invalid fields"


def test_login(api_client, mailer, creator_data):
    created = _signup(api_client, mailer, creator_data)

    response = api_client.post("/auth/login", json={
        "email": "A@B.com", "password": creator_data["password"], "role": "creator",
    })
    assert response.status_code == 200
    assert response.json()["user"]["id"] == created["user"]["id"]

    response = api_client.post("/auth/login", json={
        "email": "a@b.com", "password": "Wrong#123", "role": "creator",
    })
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}
    assert response.headers["WWW-Authenticate"] == "Bearer"


def test_send_otp_rejects_malformed_email(api_client):
    response = api_client.post("/auth/send-otp", json={"email": "not-an-email"})
    assert response.status_code == 400


def test_send_otp_reports_delivery_failure(api_client, mailer):
    mailer.fail = True
    response = api_client.post("/auth/send-otp", json={"email": "a@b.com"})
    assert response.status_code == 500
    assert response.json() == {"error": "Failed to send OTP. Please try again later."}


def test_resend_too_soon_is_rate_limited(api_client, mailer):
    api_client.post("/auth/send-otp", json={"email": "a@b.com"})

    response = api_client.post("/auth/send-otp", json={"email": "a@b.com", "isResend": True})

    assert response.status_code == 429
    assert response.json()["error"].startswith("Please wait ")
    assert int(response.headers["Retry-After"]) > 0
    assert len(mailer.otp_emails) == 1


def test_verify_otp_requires_fields(api_client):
    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com"})
    assert response.status_code == 400


def test_verify_otp_rejects_wrong_code(api_client, mailer):
    api_client.post("/auth/send-otp", json={"email": "a@b.com"})
    wrong = "000000" if mailer.last_code("a@b.com") != "000000" else "111111"

    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": wrong})

    assert response.status_code == 401
    assert response.json() == {"error": "Invalid OTP. Please try again"}


def test_verify_otp_without_challenge(api_client):
    response = api_client.post("/auth/verify-otp", json={"email": "ghost@b.com", "otp": "123456"})
    assert response.status_code == 401
    assert response.json() == {"error": "OTP not found or expired"}


def test_campaign_flow(api_client, mailer, creator_data, brand_data):
    brand = _signup(api_client, mailer, brand_data)
    creator = _signup(api_client, mailer, creator_data)

    response = api_client.post("/campaigns", json=CAMPAIGN, headers=_auth(creator))
    assert response.status_code == 401

    response = api_client.post("/campaigns", json=CAMPAIGN, headers=_auth(brand))
    assert response.status_code == 201, response.text
    campaign = response.json()["campaign"]
    assert campaign["status"] == "active"

    response = api_client.post("/campaigns/applications", json={"campaignId": campaign["id"]},
                               headers=_auth(brand))
    assert response.status_code == 401

    response = api_client.post("/campaigns/applications", json={"campaignId": campaign["id"]},
                               headers=_auth(creator))
    assert response.status_code == 201, response.text
    assert response.json()["application"]["status"] == "applied"

    response = api_client.post("/campaigns/applications", json={"campaignId": campaign["id"]},
                               headers=_auth(creator))
    assert response.status_code == 409
    assert response.json() == {"error": "Already applied to this campaign"}

    response = api_client.get("/campaigns", params={"creatorId": creator["user"]["id"]})
    assert response.status_code == 200
    listed = response.json()["campaigns"]
    assert len(listed) == 1
    assert listed[0]["applicationStatus"] == "applied"
    assert listed[0]["applicantIds"] == [creator["user"]["id"]]
    assert listed[0]["brandId"] == brand["user"]["id"]

    response = api_client.get("/campaigns/applications", params={"role": "brand"}, headers=_auth(brand))
    assert response.status_code == 200
    applications = response.json()["applications"]
    assert len(applications) == 1
    assert applications[0]["campaignTitle"] == "Monsoon Glow"
    assert applications[0]["creatorId"] == creator["user"]["id"]

    response = api_client.get("/campaigns/applications", params={"role": "brand"}, headers=_auth(creator))
    assert response.status_code == 401


def test_create_campaign_rejects_bad_dates(api_client, mailer, brand_data):
    brand = _signup(api_client, mailer, brand_data)

    response = api_client.post("/campaigns", json=dict(CAMPAIGN, endDate=CAMPAIGN["startDate"]),
                               headers=_auth(brand))

    assert response.status_code == 400
    assert response.json() == {"error": "End date must be after start date"}


def test_apply_edge_cases(api_client, mailer, creator_data):
    creator = _signup(api_client, mailer, creator_data)

    response = api_client.post("/campaigns/applications", json={}, headers=_auth(creator))
    assert response.status_code == 400
    assert response.json() == {"error": "Campaign ID is required"}

    response = api_client.post("/campaigns/applications", json={"campaignId": "nope"}, headers=_auth(creator))
    assert response.status_code == 404


@pytest.mark.parametrize("headers", [{}, {"Authorization": "Bearer garbage"}, {"Authorization": "Basic abc"}])
def test_authenticated_routes_reject_bad_credentials(api_client, headers):
    response = api_client.get("/users/profile", headers=headers)
    assert response.status_code == 401


def test_profile_read_and_update(api_client, mailer, creator_data):
    creator = _signup(api_client, mailer, creator_data)

    response = api_client.get("/users/profile", headers=_auth(creator))
    assert response.status_code == 200
    profile = response.json()["user"]
    assert profile["email"] == "a@b.com"
    assert profile["role"] == "creator"
    assert profile["contentNiche"] == ["fashion", "travel"]
    assert "passwordHash" not in profile

    response = api_client.put("/users/profile", json={
        "email": "hijack@b.com", "password": "Changed#99", "city": "Mysuru",
    }, headers=_auth(creator))
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["message"] == "Profile updated"
    assert body["user"]["email"] == "a@b.com"
    assert body["user"]["city"] == "Mysuru"

    response = api_client.post("/auth/login", json={
        "email": "a@b.com", "password": creator_data["password"], "role": "creator",
    })
    assert response.status_code == 200


def test_brand_profile(api_client, mailer, brand_data):
    brand = _signup(api_client, mailer, brand_data)

    response = api_client.get("/users/profile", headers=_auth(brand))

    assert response.status_code == 200
    profile = response.json()["user"]
    assert profile["role"] == "brand"
    assert profile["companyName"] == "GlowCo"


def test_profile_update_cannot_blank_address(api_client, mailer, creator_data):
    creator = _signup(api_client, mailer, creator_data)

    response = api_client.put("/users/profile", json={
        "verificationStatus": "verified", "subscriptionStatus": "premium", "role": "brand", "address": "",
    }, headers=_auth(creator))
    assert response.status_code == 400
    assert response.json()["error"] == "Missing or invalid fields"

    profile = api_client.get("/users/profile", headers=_auth(creator)).json()["user"]
    assert profile["address"] == "12 MG Road"
    assert profile["verificationStatus"] == "pending"
    assert profile["subscriptionStatus"] == "free"


def test_otp_locked_after_five_wrong_guesses(api_client, mailer):
    api_client.post("/auth/send-otp", json={"email": "a@b.com"})
    code = mailer.last_code("a@b.com")
    wrong = "000000" if code != "000000" else "111111"

    for _ in range(5):
        response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": wrong})
        assert response.json() == {"error": "Invalid OTP. Please try again"}

    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": code})
    assert response.status_code == 401
    assert response.json() == {"error": "Too many attempts. Please request a new OTP"}

    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": code})
    assert response.json() == {"error": "OTP not found or expired"}

    api_client.post("/auth/send-otp", json={"email": "a@b.com"})
    response = api_client.post("/auth/verify-otp", json={"email": "a@b.com", "otp": mailer.last_code("a@b.com")})
    assert response.status_code == 200


def test_otp_routes_echo_lowercased_email(api_client, mailer):
    response = api_client.post("/auth/send-otp", json={"email": "Mixed@Case.COM"})
    assert response.json()["email"] == "mixed@case.com"

    response = api_client.post("/auth/verify-otp", json={
        "email": "MIXED@case.com", "otp": mailer.last_code("mixed@case.com"),
    })
    assert response.status_code == 200
    assert response.json()["email"] == "mixed@case.com"


def test_startup_purge_removes_expired_challenges(api_client):
    db = SessionLocal()
    try:
        db.add(models.OTPVerification(
            email="stale@b.com", otp="123456", expires_at=utcnow() - timedelta(minutes=1),
            attempts=0, is_verified=False,
        ))
        db.add(models.OTPVerification(
            email="fresh@b.com", otp="654321", expires_at=utcnow() + timedelta(minutes=5),
            attempts=0, is_verified=False,
        ))
        db.commit()

        assert purge_expired_otps() == 1
        remaining = [row.email for row in db.query(models.OTPVerification).all()]
    finally:
        db.close()
    assert remaining == ["fresh@b.com"]
