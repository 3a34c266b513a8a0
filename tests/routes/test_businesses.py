from datetime import datetime, timedelta

from zentra.models import Business

ONBOARDING = {
    "businessName": "Glow Studio",
    "ownerName": "Sam Taylor",
    "email": "Owner@GlowStudio.co.uk",
    "phone": "+44 7700 900123",
    "businessType": "salon",
    "currency": "GBP",
}


# --- POST /businesses ---
def test_onboard_business_starts_trial(client, db_session, mock_send_email):
    response = client.post("/businesses", json=ONBOARDING)
    assert response.status_code == 201

    data = response.json()
    assert data["businessName"] == "Glow Studio"
    assert data["email"] == "owner@glowstudio.co.uk"
    assert data["phone"] == "+447700900123"
    assert data["currency"] == "gbp"
    assert data["stripeConnected"] is False
    assert data["settings"]["currency"] == "gbp"

    business = db_session.query(Business).one()
    assert business.owner_uid == "owner-1"
    assert (business.trial_end - business.trial_start) == timedelta(days=14)
    mock_send_email.assert_awaited_once()


def test_onboard_business_twice_conflicts(client, seed_business):
    response = client.post("/businesses", json=ONBOARDING)
    assert response.status_code == 409


def test_onboard_business_welcome_email_failure_is_not_fatal(client, mock_send_email):
    from zentra.email_service import EmailDeliveryError

    mock_send_email.side_effect = EmailDeliveryError("Email service not configured")
    response = client.post("/businesses", json=ONBOARDING)
    assert response.status_code == 201


def test_onboard_business_rejects_bad_email(client):
    response = client.post("/businesses", json={**ONBOARDING, "email": "not-an-email"})
    assert response.status_code == 422


# --- GET /businesses/me ---
def test_get_my_business_requires_onboarding(client):
    response = client.get("/businesses/me")
    assert response.status_code == 404
    assert response.headers["X-Onboarding-Required"] == "true"


def test_get_my_business_requires_token(anonymous_client):
    response = anonymous_client.get("/businesses/me")
    assert response.status_code in (401, 403)


def test_get_my_business(client, seed_business):
    response = client.get("/businesses/me")
    assert response.status_code == 200
    assert response.json()["id"] == seed_business.id
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["Cache-Control"] == "no-store"


# --- PATCH /businesses/me ---
def test_update_business_merges_settings(client, seed_business):
    response = client.patch(
        "/businesses/me",
        json={"businessName": "Glow Studio & Spa", "settings": {"depositPercentage": 30, "notifications": {"sms": True}}},
    )
    assert response.status_code == 200

    data = response.json()
    assert data["businessName"] == "Glow Studio & Spa"
    assert data["settings"]["depositPercentage"] == 30
    assert data["settings"]["depositRequired"] is True
    assert data["settings"]["notifications"]["sms"] is True
    assert data["settings"]["timezone"] == "Europe/London"


def test_update_business_currency_follows_settings(client, seed_business):
    response = client.patch("/businesses/me", json={"settings": {"currency": "EUR"}})
    assert response.status_code == 200
    assert response.json()["currency"] == "eur"


# --- PUT /businesses/me/reminders ---
def test_update_reminder_settings(client, seed_business, db_session):
    response = client.put(
        "/businesses/me/reminders",
        json={
            "dailyReminders": {"enabled": True, "sendTime": "07:30"},
            "clientReminders": {"enabled": True, "daysBefore": 2},
        },
    )
    assert response.status_code == 200

    db_session.expire_all()
    business = db_session.get(Business, seed_business.id)
    assert business.daily_reminders == {"enabled": True, "sendTime": "07:30", "recipientStaffId": None}
    assert business.client_reminders == {"enabled": True, "daysBefore": 2}


def test_update_reminder_settings_rejects_bad_time(client, seed_business):
    response = client.put("/businesses/me/reminders", json={"dailyReminders": {"enabled": True, "sendTime": "25:00"}})
    assert response.status_code == 422


# --- GET /businesses/{id}/public ---
def test_public_business_lists_active_services_and_staff(anonymous_client, seed_business, seed_service, seed_staff, db_session):
    seed_staff.status = "inactive"
    db_session.commit()

    response = anonymous_client.get(f"/businesses/{seed_business.id}/public")
    assert response.status_code == 200

    data = response.json()
    assert data["businessName"] == "Glow Studio"
    assert data["depositRequired"] is True
    assert data["depositPercentage"] == 20
    assert data["acceptsCardPayments"] is False
    assert [s["name"] for s in data["services"]] == ["Cut & Colour"]
    assert data["staff"] == []


def test_public_business_not_found(anonymous_client):
    response = anonymous_client.get("/businesses/999/public")
    assert response.status_code == 404


# --- Trial gate ---
def test_expired_trial_blocks_dashboard(client, seed_business, db_session):
    seed_business.trial_start = datetime.utcnow() - timedelta(days=30)
    seed_business.trial_end = datetime.utcnow() - timedelta(days=16)
    db_session.commit()

    response = client.get("/clients")
    assert response.status_code == 403
    assert response.headers["X-Trial-Expired"] == "true"

    # Profile stays reachable so the owner can pick a plan
    assert client.get("/businesses/me").status_code == 200
