import pytest
from pytest_mock import MockerFixture

from zentra.models import Appointment
from zentra.models_square import SquareIntegration
from zentra.services import square_service
from zentra.services.square_service import SquareAPIError


@pytest.fixture
def square_connected(db_session, seed_business):
    integration = SquareIntegration(
        business_id=seed_business.id,
        merchant_id="MERCHANT1",
        merchant_name="Glow Studio Ltd",
        location_id="LOC1",
        access_token=square_service.encrypt_token("sq-access"),
        is_active=True,
    )
    db_session.add(integration)
    db_session.commit()
    return integration


def test_token_encryption_round_trip():
    encrypted = square_service.encrypt_token("sq-access")
    assert encrypted != "sq-access"
    assert square_service.decrypt_token(encrypted) == "sq-access"


# --- GET /square/callback-handler ---
def test_oauth_callback_stores_encrypted_tokens(client, seed_business, db_session, mocker: MockerFixture):
    mocker.patch.object(square_service, "is_configured", return_value=True)
    mocker.patch.object(
        square_service,
        "exchange_code",
        new_callable=mocker.AsyncMock,
        return_value={
            "access_token": "sq-access",
            "refresh_token": "sq-refresh",
            "merchant_id": "MERCHANT1",
            "expires_at": "2026-12-01T10:00:00Z",
        },
    )
    mocker.patch.object(
        square_service, "get_merchant", new_callable=mocker.AsyncMock, return_value={"business_name": "Glow Ltd"}
    )
    mocker.patch.object(square_service, "get_location_id", new_callable=mocker.AsyncMock, return_value="LOC1")

    response = client.get("/square/callback-handler", params={"code": "auth-code"})
    assert response.json() == {"success": True, "merchantId": "MERCHANT1", "locationId": "LOC1"}

    integration = db_session.get(SquareIntegration, seed_business.id)
    assert integration.access_token != "sq-access"
    assert square_service.decrypt_token(integration.refresh_token) == "sq-refresh"
    assert integration.token_expires_at.year == 2026
    assert integration.is_active is True


def test_oauth_callback_square_error(client, seed_business, mocker: MockerFixture):
    mocker.patch.object(square_service, "is_configured", return_value=True)
    mocker.patch.object(
        square_service,
        "exchange_code",
        new_callable=mocker.AsyncMock,
        side_effect=SquareAPIError("Authorization code is expired"),
    )
    response = client.get("/square/callback-handler", params={"code": "old-code"})
    assert response.status_code == 400
    assert response.json()["detail"] == "Authorization code is expired"


def test_oauth_initiate_not_configured(client, seed_business, mocker: MockerFixture):
    mocker.patch.object(square_service, "is_configured", return_value=False)
    assert client.post("/square/oauth/initiate").status_code == 500


# --- GET /square/status, POST /square/disconnect ---
def test_status_and_disconnect(client, square_connected):
    assert client.get("/square/status").json() == {
        "connected": True,
        "merchantId": "MERCHANT1",
        "merchantName": "Glow Studio Ltd",
        "locationId": "LOC1",
    }

    assert client.post("/square/disconnect").json() == {"success": True}
    assert client.get("/square/status").json()["connected"] is False
    assert client.post("/square/disconnect").status_code == 404


# --- POST /square/create-payment ---
def test_create_payment_applies_to_appointment(
    anonymous_client, square_connected, seed_appointment, db_session, mocker: MockerFixture
):
    create = mocker.patch.object(
        square_service,
        "create_payment",
        new_callable=mocker.AsyncMock,
        return_value={"id": "sqpay_1", "status": "COMPLETED", "amount_money": {"amount": 1700, "currency": "GBP"}},
    )

    response = anonymous_client.post(
        "/square/create-payment",
        json={
            "businessId": square_connected.business_id,
            "sourceId": "cnon:card-nonce-ok",
            "amount": 17,
            "currency": "GBP",
            "appointmentId": seed_appointment.id,
        },
    )
    assert response.status_code == 200
    assert response.json()["paymentId"] == "sqpay_1"

    access_token, payload = create.await_args.args
    assert access_token == "sq-access"
    assert payload["amount_money"] == {"amount": 1700, "currency": "GBP"}
    assert payload["location_id"] == "LOC1"
    assert payload["reference_id"] == str(seed_appointment.id)

    db_session.expire_all()
    appointment = db_session.get(Appointment, seed_appointment.id)
    assert appointment.amount_paid == 17.0
    assert appointment.payment_status == "partial"
    assert appointment.deposit_paid is True
    assert appointment.transaction_id == "sqpay_1"


def test_create_payment_not_connected(anonymous_client, seed_business):
    response = anonymous_client.post(
        "/square/create-payment", json={"businessId": seed_business.id, "sourceId": "cnon:ok", "amount": 10}
    )
    assert response.status_code == 400


def test_create_payment_declined(anonymous_client, square_connected, mocker: MockerFixture):
    mocker.patch.object(
        square_service,
        "create_payment",
        new_callable=mocker.AsyncMock,
        side_effect=SquareAPIError("Card declined"),
    )
    response = anonymous_client.post(
        "/square/create-payment",
        json={"businessId": square_connected.business_id, "sourceId": "cnon:declined", "amount": 10},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Card declined"


# --- POST /square/create-refund ---
def test_create_refund(client, square_connected, mocker: MockerFixture):
    refund = mocker.patch.object(
        square_service,
        "create_refund",
        new_callable=mocker.AsyncMock,
        return_value={"id": "sqref_1", "status": "PENDING"},
    )
    response = client.post(
        "/square/create-refund", json={"paymentId": "sqpay_1", "amount": 5, "currency": "GBP", "reason": "Overcharge"}
    )
    assert response.json() == {"success": True, "refundId": "sqref_1", "status": "PENDING"}
    assert refund.await_args.args[1]["amount_money"] == {"amount": 500, "currency": "GBP"}
