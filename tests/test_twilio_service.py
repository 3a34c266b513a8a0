import asyncio

import httpx
import pytest
from pytest_mock import MockerFixture

from zentra.models_twilio import SMSLog
from zentra.services import twilio_service
from zentra.services.twilio_service import INVALID_NUMBER_ERROR, SMSError


@pytest.fixture
def twilio_configured(mocker: MockerFixture):
    mocker.patch.object(twilio_service, "TWILIO_ACCOUNT_SID", "AC123")
    mocker.patch.object(twilio_service, "TWILIO_AUTH_TOKEN", "token")
    mocker.patch.object(twilio_service, "TWILIO_PHONE_NUMBER", "+15005550006")


def send(db_session, to_phone="+447700900123"):
    return asyncio.run(
        twilio_service.send_sms(
            db_session,
            to_phone=to_phone,
            message_body="Your code is 1234",
            message_type="verification",
        )
    )


def test_normalize_phone():
    assert twilio_service.normalize_phone(" 44 7700 900123 ") == "+447700900123"
    assert twilio_service.normalize_phone("+15005550006") == "+15005550006"


def test_rejects_number_without_country_code(db_session, twilio_configured):
    with pytest.raises(SMSError) as exc_info:
        send(db_session, to_phone="07700900123")
    assert exc_info.value.code == INVALID_NUMBER_ERROR


def test_not_configured(db_session, mocker: MockerFixture):
    mocker.patch.object(twilio_service, "TWILIO_ACCOUNT_SID", None)
    with pytest.raises(SMSError, match="not configured"):
        send(db_session)
    assert db_session.query(SMSLog).count() == 0


def test_sent_message_is_logged(db_session, twilio_configured, mocker: MockerFixture):
    post = mocker.patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(201, json={"sid": "SM1", "status": "queued"}),
    )

    assert send(db_session) == "SM1"
    assert post.await_args.kwargs["data"] == {
        "To": "+447700900123",
        "From": "+15005550006",
        "Body": "Your code is 1234",
    }
    assert post.await_args.kwargs["auth"] == ("AC123", "token")

    log = db_session.query(SMSLog).one()
    assert log.status == "sent"
    assert log.twilio_message_sid == "SM1"
    assert log.message_type == "verification"


def test_twilio_error_is_logged_and_raised(db_session, twilio_configured, mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(400, json={"code": 21614, "message": "Not a mobile number"}),
    )

    with pytest.raises(SMSError) as exc_info:
        send(db_session)
    assert exc_info.value.code == 21614

    log = db_session.query(SMSLog).one()
    assert log.status == "failed"
    assert log.error_code == 21614
    assert log.error_message == "Not a mobile number"


def test_network_failure_is_logged(db_session, twilio_configured, mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient, "post", new_callable=mocker.AsyncMock, side_effect=httpx.ConnectError("refused")
    )

    with pytest.raises(SMSError, match="Failed to reach Twilio"):
        send(db_session)
    assert db_session.query(SMSLog).one().status == "failed"


def test_html_error_page_is_logged_and_raised(db_session, twilio_configured, mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(502, text="<html>Bad gateway</html>"),
    )

    with pytest.raises(SMSError, match="HTTP 502"):
        send(db_session)

    log = db_session.query(SMSLog).one()
    assert log.status == "failed"
    assert log.error_message == "HTTP 502"
