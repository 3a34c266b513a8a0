import asyncio

import httpx
import pytest
from pytest_mock import MockerFixture

from zentra.services import square_service
from zentra.services.square_service import SquareAPIError


def test_authorize_url_joins_scopes_with_plus(mocker: MockerFixture):
    mocker.patch.object(square_service, "SQUARE_APPLICATION_ID", "sq0idp-app")
    url = square_service.build_authorize_url("state-123")
    assert url.startswith(f"{square_service.SQUARE_OAUTH_URL}/oauth2/authorize?client_id=sq0idp-app")
    assert "scope=MERCHANT_PROFILE_READ+PAYMENTS_READ" in url
    assert "&state=state-123" in url


def test_payment_error_uses_first_error_detail(mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient,
        "post",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(
            400, json={"errors": [{"code": "CARD_DECLINED", "detail": "Authorization error: 'CARD_DECLINED'"}]}
        ),
    )

    with pytest.raises(SquareAPIError) as exc_info:
        asyncio.run(square_service.create_payment("token", {"source_id": "cnon:declined"}))
    assert exc_info.value.status_code == 400
    assert exc_info.value.detail == "Authorization error: 'CARD_DECLINED'"


def test_location_prefers_active(mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient,
        "get",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(
            200,
            json={"locations": [{"id": "L-OLD", "status": "INACTIVE"}, {"id": "L-MAIN", "status": "ACTIVE"}]},
        ),
    )
    assert asyncio.run(square_service.get_location_id("token")) == "L-MAIN"


def test_location_falls_back_to_first(mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient,
        "get",
        new_callable=mocker.AsyncMock,
        return_value=httpx.Response(200, json={"locations": [{"id": "L-OLD", "status": "INACTIVE"}]}),
    )
    assert asyncio.run(square_service.get_location_id("token")) == "L-OLD"


def test_no_locations(mocker: MockerFixture):
    mocker.patch.object(
        httpx.AsyncClient, "get", new_callable=mocker.AsyncMock, return_value=httpx.Response(200, json={})
    )
    assert asyncio.run(square_service.get_location_id("token")) is None
