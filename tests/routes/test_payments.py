import pytest
import stripe
from pytest_mock import MockerFixture

from zentra.models import Appointment, Business, Client, Voucher
from zentra.services.stripe_service import StripeNotConfiguredError, stripe_service


@pytest.fixture
def connected_business(db_session, seed_business):
    seed_business.stripe_account_id = "acct_123"
    db_session.commit()
    return seed_business


@pytest.fixture
def webhook_event(mocker: MockerFixture):
    """Patch signature verification so the posted event is returned as-is"""

    def _use(event: dict):
        return mocker.patch.object(stripe_service, "parse_webhook", return_value=event)

    return _use


def post_webhook(test_client):
    return test_client.post("/stripe/webhook", content=b"{}", headers={"Stripe-Signature": "t=1,v1=abc"})


# --- POST /stripe/create-connect-account ---
def test_create_connect_account(client, seed_business, db_session, mocker: MockerFixture):
    create = mocker.patch.object(stripe_service, "create_connect_account", return_value={"id": "acct_new"})

    response = client.post("/stripe/create-connect-account")
    assert response.json() == {"accountId": "acct_new", "created": True}
    assert create.call_args.kwargs["metadata"] == {"businessId": str(seed_business.id)}

    db_session.expire_all()
    assert db_session.get(Business, seed_business.id).stripe_account_id == "acct_new"


def test_create_connect_account_existing(client, connected_business, mocker: MockerFixture):
    create = mocker.patch.object(stripe_service, "create_connect_account")
    response = client.post("/stripe/create-connect-account")
    assert response.json() == {"accountId": "acct_123", "created": False}
    create.assert_not_called()


def test_create_connect_account_not_configured(client, seed_business, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service, "create_connect_account", side_effect=StripeNotConfiguredError("Stripe is not configured")
    )
    response = client.post("/stripe/create-connect-account")
    assert response.status_code == 503


# --- GET /stripe/account-status ---
def test_account_status(client, connected_business, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service,
        "retrieve_account",
        return_value={
            "id": "acct_123",
            "charges_enabled": True,
            "payouts_enabled": False,
            "details_submitted": True,
            "requirements": {"currently_due": ["external_account"]},
        },
    )
    data = client.get("/stripe/account-status").json()
    assert data["connected"] is False
    assert data["chargesEnabled"] is True
    assert data["currentlyDue"] == ["external_account"]


def test_account_status_without_account(client, seed_business):
    data = client.get("/stripe/account-status").json()
    assert data["connected"] is False
    assert data["accountId"] is None


# --- POST /stripe/account-link ---
def test_account_link_requires_account(client, seed_business):
    assert client.post("/stripe/account-link").status_code == 400


# --- POST /stripe/create-payment-intent ---
def test_payment_intent_for_deposit(anonymous_client, connected_business, seed_appointment, mocker: MockerFixture):
    create = mocker.patch.object(
        stripe_service,
        "create_destination_payment_intent",
        return_value={"id": "pi_123", "client_secret": "pi_123_secret"},
    )

    response = anonymous_client.post(
        "/stripe/create-payment-intent",
        json={
            "businessId": connected_business.id,
            "amount": 17,
            "appointmentId": seed_appointment.id,
            "isDeposit": True,
        },
    )
    assert response.status_code == 200
    assert response.json()["clientSecret"] == "pi_123_secret"

    kwargs = create.call_args.kwargs
    assert kwargs["amount"] == 1700
    assert kwargs["destination"] == "acct_123"
    assert kwargs["metadata"] == {
        "businessId": str(connected_business.id),
        "appointmentId": str(seed_appointment.id),
        "stripeAccountId": "acct_123",
        "isDeposit": "true",
    }


@pytest.mark.parametrize(
    "body, status",
    [
        ({"amount": 10}, 400),
        ({"businessId": 1, "amount": 0}, 400),
        ({"businessId": 999, "amount": 10}, 404),
    ],
)
def test_payment_intent_validation(anonymous_client, seed_business, body, status):
    response = anonymous_client.post("/stripe/create-payment-intent", json=body)
    assert response.status_code == status


def test_payment_intent_business_not_connected(anonymous_client, seed_business):
    response = anonymous_client.post("/stripe/create-payment-intent", json={"businessId": seed_business.id, "amount": 10})
    assert response.status_code == 400
    assert response.json()["detail"] == "This business has not connected Stripe yet"


# --- POST /stripe/create-refund ---
def test_refund_marks_appointment(client, connected_business, seed_appointment, db_session, mocker: MockerFixture):
    seed_appointment.stripe_payment_intent_id = "pi_123"
    seed_appointment.payment_status = "paid"
    db_session.commit()

    mocker.patch.object(
        stripe_service,
        "retrieve_payment_intent",
        return_value={"id": "pi_123", "currency": "gbp", "metadata": {"businessId": str(connected_business.id)}},
    )
    refund = mocker.patch.object(
        stripe_service, "create_refund", return_value={"id": "re_1", "amount": 2000, "status": "succeeded"}
    )

    response = client.post("/stripe/create-refund", json={"paymentIntentId": "pi_123", "amount": 20})
    assert response.status_code == 200
    assert response.json() == {"success": True, "refundId": "re_1", "amount": 20.0, "status": "succeeded"}
    assert refund.call_args.kwargs["amount"] == 2000

    db_session.expire_all()
    assert db_session.get(Appointment, seed_appointment.id).payment_status == "refunded"


def test_refund_of_another_business_payment(client, connected_business, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service,
        "retrieve_payment_intent",
        return_value={"id": "pi_999", "currency": "gbp", "metadata": {"businessId": "999"}},
    )
    refund = mocker.patch.object(stripe_service, "create_refund")

    response = client.post("/stripe/create-refund", json={"paymentIntentId": "pi_999"})
    assert response.status_code == 404
    refund.assert_not_called()


# --- POST /stripe/webhook ---
def test_webhook_requires_signature(anonymous_client):
    response = anonymous_client.post("/stripe/webhook", content=b"{}")
    assert response.status_code == 400


def test_webhook_invalid_signature(anonymous_client, mocker: MockerFixture):
    mocker.patch.object(
        stripe_service, "parse_webhook", side_effect=stripe.SignatureVerificationError("bad", "t=1,v1=abc")
    )
    response = post_webhook(anonymous_client)
    assert response.status_code == 400
    assert response.json()["detail"] == "Invalid signature"


def test_webhook_secret_missing(anonymous_client, mocker: MockerFixture):
    mocker.patch.object(stripe_service, "parse_webhook", side_effect=StripeNotConfiguredError("missing"))
    assert post_webhook(anonymous_client).status_code == 500


def test_webhook_appointment_payment(anonymous_client, loyalty_business, seed_appointment, seed_client, db_session, webhook_event):
    event = {
        "id": "evt_1",
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": "pi_123",
                "amount": 8500,
                "currency": "gbp",
                "metadata": {"businessId": str(loyalty_business.id), "appointmentId": str(seed_appointment.id)},
            }
        },
    }
    webhook_event(event)

    assert post_webhook(anonymous_client).json() == {"received": True}
    # Stripe retries deliveries; the second one must not double count
    assert post_webhook(anonymous_client).status_code == 200

    db_session.expire_all()
    appointment = db_session.get(Appointment, seed_appointment.id)
    assert appointment.payment_status == "paid"
    assert appointment.amount_paid == 85.0
    assert appointment.paid_via_link is True
    assert appointment.payment_method == "online"
    assert appointment.stripe_payment_intent_id == "pi_123"

    client_record = db_session.get(Client, seed_client.id)
    assert client_record.total_spent == 85.0
    assert client_record.loyalty_points == 85


def test_webhook_redelivered_deposit_after_later_payment(
    anonymous_client, loyalty_business, seed_appointment, seed_client, db_session, webhook_event
):
    def succeeded(intent_id, amount):
        return {
            "id": f"evt_{intent_id}",
            "type": "payment_intent.succeeded",
            "data": {
                "object": {
                    "id": intent_id,
                    "amount": amount,
                    "currency": "gbp",
                    "metadata": {"businessId": str(loyalty_business.id), "appointmentId": str(seed_appointment.id)},
                }
            },
        }

    for intent_id, amount in (("pi_deposit", 1700), ("pi_part", 3000), ("pi_deposit", 1700)):
        webhook_event(succeeded(intent_id, amount))
        assert post_webhook(anonymous_client).status_code == 200

    db_session.expire_all()
    appointment = db_session.get(Appointment, seed_appointment.id)
    assert appointment.amount_paid == 47.0
    assert appointment.remaining_balance == 38.0
    assert appointment.payment_status == "partial"
    assert appointment.processed_payment_intents == ["pi_deposit", "pi_part"]

    client_record = db_session.get(Client, seed_client.id)
    assert client_record.total_spent == 47.0
    assert client_record.loyalty_points == 47


def test_webhook_voucher_purchase(anonymous_client, seed_business, db_session, webhook_event, mock_send_email):
    metadata = {
        "type": "voucher_purchase",
        "businessId": str(seed_business.id),
        "recipientName": "Alex Green",
        "recipientEmail": "alex@example.com",
        "purchaserName": "Jamie Green",
        "purchaserEmail": "jamie@example.com",
        "purchaserPhone": "",
        "message": "",
    }
    webhook_event(
        {
            "id": "evt_2",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_123",
                    "amount_total": 4000,
                    "currency": "gbp",
                    "payment_intent": "pi_456",
                    "metadata": metadata,
                }
            },
        }
    )
    assert post_webhook(anonymous_client).status_code == 200

    # The matching payment_intent.succeeded event arrives as well
    webhook_event(
        {
            "id": "evt_3",
            "type": "payment_intent.succeeded",
            "data": {"object": {"id": "pi_456", "amount": 4000, "currency": "gbp", "metadata": metadata}},
        }
    )
    assert post_webhook(anonymous_client).status_code == 200

    voucher = db_session.query(Voucher).one()
    assert voucher.value == 40.0
    assert voucher.balance == 40.0
    assert voucher.purchaser_phone is None
    assert voucher.stripe_session_id == "cs_123"


def test_webhook_subscription_checkout(anonymous_client, seed_business, db_session, webhook_event):
    webhook_event(
        {
            "id": "evt_4",
            "type": "checkout.session.completed",
            "data": {
                "object": {
                    "id": "cs_sub",
                    "customer": "cus_123",
                    "subscription": "sub_123",
                    "metadata": {"type": "subscription", "businessId": str(seed_business.id), "planName": "Professional"},
                }
            },
        }
    )
    assert post_webhook(anonymous_client).status_code == 200

    db_session.expire_all()
    business = db_session.get(Business, seed_business.id)
    assert business.subscription_plan == "professional"
    assert business.subscription_status == "active"
    assert business.stripe_subscription_id == "sub_123"
    assert business.trial_ended_at is not None


def test_webhook_subscription_deleted(anonymous_client, seed_business, db_session, webhook_event):
    seed_business.stripe_customer_id = "cus_123"
    seed_business.subscription_plan = "starter"
    seed_business.subscription_status = "active"
    db_session.commit()

    webhook_event(
        {
            "id": "evt_5",
            "type": "customer.subscription.deleted",
            "data": {"object": {"id": "sub_123", "customer": "cus_123", "status": "canceled"}},
        }
    )
    assert post_webhook(anonymous_client).status_code == 200

    db_session.expire_all()
    assert db_session.get(Business, seed_business.id).subscription_status == "canceled"


def test_webhook_unhandled_event(anonymous_client, webhook_event):
    webhook_event({"id": "evt_6", "type": "invoice.created", "data": {"object": {}}})
    assert post_webhook(anonymous_client).json() == {"received": True}
