from datetime import datetime, timedelta

import pytest
import stripe
from pytest_mock import MockerFixture

from zentra.models import Voucher
from zentra.services.stripe_service import stripe_service

PURCHASE = {
    "amount": 50,
    "currency": "GBP",
    "recipientName": "Alex Green",
    "recipientEmail": "alex@example.com",
    "purchaserName": "Jamie Green",
    "purchaserEmail": "jamie@example.com",
    "message": "Happy birthday!",
}


@pytest.fixture
def seed_voucher(db_session, seed_business):
    voucher = Voucher(
        business_id=seed_business.id,
        code="GIFT123456",
        value=50.0,
        original_value=50.0,
        balance=50.0,
        currency="gbp",
        recipient_name="Alex Green",
        recipient_email="alex@example.com",
        expiry_date=datetime.utcnow() + timedelta(days=365),
        status="active",
        redeemed=False,
        redeemed_amount=0.0,
        source="online_purchase",
    )
    db_session.add(voucher)
    db_session.commit()
    db_session.refresh(voucher)
    return voucher


@pytest.fixture
def connected_business(db_session, seed_business):
    seed_business.stripe_account_id = "acct_123"
    db_session.commit()
    return seed_business


# --- POST /vouchers/create-payment-intent ---
def test_voucher_payment_intent_requires_connected_stripe(anonymous_client, seed_business):
    response = anonymous_client.post(
        "/vouchers/create-payment-intent", json={**PURCHASE, "businessId": seed_business.id}
    )
    assert response.status_code == 400


def test_voucher_payment_intent(anonymous_client, connected_business, mocker: MockerFixture):
    create = mocker.patch.object(
        stripe_service,
        "create_destination_payment_intent",
        return_value={"id": "pi_123", "client_secret": "pi_123_secret"},
    )

    response = anonymous_client.post(
        "/vouchers/create-payment-intent", json={**PURCHASE, "businessId": connected_business.id}
    )
    assert response.status_code == 200
    assert response.json() == {"clientSecret": "pi_123_secret", "paymentIntentId": "pi_123"}

    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 5000
    assert kwargs["currency"] == "gbp"
    assert kwargs["destination"] == "acct_123"
    assert kwargs["metadata"]["type"] == "voucher_purchase"
    assert kwargs["metadata"]["recipientEmail"] == "alex@example.com"


def test_voucher_payment_intent_stripe_error(anonymous_client, connected_business, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service,
        "create_destination_payment_intent",
        side_effect=stripe.InvalidRequestError("Amount too small", param="amount"),
    )
    response = anonymous_client.post(
        "/vouchers/create-payment-intent", json={**PURCHASE, "businessId": connected_business.id}
    )
    assert response.status_code == 400


# --- POST /vouchers/create-checkout ---
def test_voucher_checkout_session(anonymous_client, connected_business, mocker: MockerFixture):
    checkout = mocker.patch.object(
        stripe_service,
        "create_checkout_session",
        return_value={"id": "cs_123", "url": "https://checkout.stripe.com/c/cs_123"},
    )

    response = anonymous_client.post("/vouchers/create-checkout", json={**PURCHASE, "businessId": connected_business.id})
    assert response.json() == {"sessionId": "cs_123", "url": "https://checkout.stripe.com/c/cs_123"}

    kwargs = checkout.call_args.kwargs
    assert kwargs["mode"] == "payment"
    assert kwargs["line_items"][0]["price_data"]["unit_amount"] == 5000
    assert kwargs["payment_intent_data"]["transfer_data"] == {"destination": "acct_123"}
    assert kwargs["success_url"].endswith("/voucher-success?session_id={CHECKOUT_SESSION_ID}")
    assert kwargs["cancel_url"].endswith(f"/vouchers/{connected_business.id}")


# --- POST /vouchers/create-voucher ---
def test_create_voucher_after_payment_is_idempotent(
    anonymous_client, connected_business, db_session, mocker: MockerFixture, mock_send_email
):
    retrieve = mocker.patch.object(
        stripe_service,
        "retrieve_payment_intent",
        return_value={
            "id": "pi_123",
            "status": "succeeded",
            "amount": 5000,
            "currency": "gbp",
            "metadata": {"type": "voucher_purchase", "businessId": str(connected_business.id)},
        },
    )
    body = {**PURCHASE, "businessId": connected_business.id, "paymentIntentId": "pi_123"}

    first = anonymous_client.post("/vouchers/create-voucher", json=body)
    second = anonymous_client.post("/vouchers/create-voucher", json=body)

    assert first.status_code == 200
    assert first.json()["created"] is True
    assert len(first.json()["voucherCode"]) == 10
    assert second.json()["created"] is False
    assert second.json()["voucherCode"] == first.json()["voucherCode"]
    assert retrieve.call_count == 1
    assert db_session.query(Voucher).count() == 1

    # Recipient voucher and purchaser receipt
    assert mock_send_email.await_count == 2


def test_create_voucher_unpaid(anonymous_client, connected_business, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service,
        "retrieve_payment_intent",
        return_value={"id": "pi_123", "status": "requires_payment_method", "amount": 5000, "currency": "gbp"},
    )
    response = anonymous_client.post(
        "/vouchers/create-voucher",
        json={**PURCHASE, "businessId": connected_business.id, "paymentIntentId": "pi_123"},
    )
    assert response.status_code == 400


def test_create_voucher_rejects_appointment_payment(
    anonymous_client, connected_business, db_session, mocker: MockerFixture, mock_send_email
):
    mocker.patch.object(
        stripe_service,
        "retrieve_payment_intent",
        return_value={
            "id": "pi_appt",
            "status": "succeeded",
            "amount": 8500,
            "currency": "gbp",
            "metadata": {"businessId": str(connected_business.id), "appointmentId": "1"},
        },
    )
    response = anonymous_client.post(
        "/vouchers/create-voucher",
        json={**PURCHASE, "businessId": connected_business.id, "paymentIntentId": "pi_appt"},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Payment is not a voucher purchase for this business"
    assert db_session.query(Voucher).count() == 0
    mock_send_email.assert_not_awaited()


def test_create_voucher_rejects_purchase_for_other_business(
    anonymous_client, connected_business, db_session, mocker: MockerFixture
):
    mocker.patch.object(
        stripe_service,
        "retrieve_checkout_session",
        return_value={
            "id": "cs_other",
            "payment_status": "paid",
            "amount_total": 5000,
            "currency": "gbp",
            "payment_intent": "pi_other",
            "metadata": {"type": "voucher_purchase", "businessId": "999"},
        },
    )
    response = anonymous_client.post(
        "/vouchers/create-voucher",
        json={**PURCHASE, "businessId": connected_business.id, "sessionId": "cs_other"},
    )
    assert response.status_code == 400
    assert db_session.query(Voucher).count() == 0


def test_create_voucher_requires_payment_reference(anonymous_client, connected_business):
    response = anonymous_client.post("/vouchers/create-voucher", json={**PURCHASE, "businessId": connected_business.id})
    assert response.status_code == 400


# --- POST /vouchers/validate ---
def test_validate_voucher(anonymous_client, seed_voucher, seed_business):
    response = anonymous_client.post(
        "/vouchers/validate", json={"code": "GIFT123456", "businessId": seed_business.id, "amount": 20}
    )
    assert response.status_code == 200
    assert response.json()["valid"] is True
    assert response.json()["voucher"]["balance"] == 50.0


def test_validate_unknown_code(anonymous_client, seed_business):
    response = anonymous_client.post("/vouchers/validate", json={"code": "NOPE", "businessId": seed_business.id})
    assert response.status_code == 404


def test_validate_code_of_other_business(anonymous_client, seed_voucher):
    response = anonymous_client.post("/vouchers/validate", json={"code": "GIFT123456", "businessId": 999})
    assert response.status_code == 404


def test_validate_insufficient_balance(anonymous_client, seed_voucher, seed_business):
    response = anonymous_client.post(
        "/vouchers/validate", json={"code": "GIFT123456", "businessId": seed_business.id, "amount": 75}
    )
    assert response.status_code == 400
    assert response.json()["detail"] == {"message": "Insufficient voucher balance", "availableBalance": 50.0}


def test_validate_expired(anonymous_client, seed_voucher, seed_business, db_session):
    seed_voucher.expiry_date = datetime.utcnow() - timedelta(days=1)
    db_session.commit()

    response = anonymous_client.post("/vouchers/validate", json={"code": "GIFT123456", "businessId": seed_business.id})
    assert response.status_code == 400
    assert response.json()["detail"] == "This voucher has expired"


# --- POST /vouchers/redeem ---
def test_partial_then_full_redemption(client, seed_voucher):
    partial = client.post("/vouchers/redeem", json={"code": "GIFT123456", "amount": 20})
    assert partial.status_code == 200
    assert partial.json()["balance"] == 30.0
    assert partial.json()["redeemedAmount"] == 20.0
    assert partial.json()["status"] == "active"

    full = client.post("/vouchers/redeem", json={"code": "GIFT123456", "amount": 30})
    assert full.json()["balance"] == 0.0
    assert full.json()["redeemed"] is True
    assert full.json()["status"] == "redeemed"

    used = client.post("/vouchers/redeem", json={"code": "GIFT123456", "amount": 1})
    assert used.status_code == 400
    assert used.json()["detail"] == "This voucher has already been used"


# --- POST /vouchers/manual ---
def test_manual_voucher_without_email(client, seed_business, mock_send_email):
    response = client.post(
        "/vouchers/manual",
        json={"amount": 25, "recipientName": "Sam", "recipientEmail": "sam@example.com", "sendEmail": False},
    )
    assert response.status_code == 201
    data = response.json()
    assert data["source"] == "manual"
    assert data["currency"] == "gbp"
    assert data["balance"] == 25.0
    mock_send_email.assert_not_awaited()


# --- PATCH /vouchers/{id}/cancel ---
def test_cancel_voucher(client, seed_voucher, seed_business):
    response = client.patch(f"/vouchers/{seed_voucher.id}/cancel")
    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"

    validate = client.post("/vouchers/validate", json={"code": "GIFT123456", "businessId": seed_business.id})
    assert validate.status_code == 400


# --- GET /vouchers ---
def test_list_vouchers(client, seed_voucher):
    response = client.get("/vouchers")
    assert [v["code"] for v in response.json()] == ["GIFT123456"]
