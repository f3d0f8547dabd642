import pytest
import requests

from conftest import FakeResponse, FakeSession, token_response
from pesapal_checkout import (
    AccessTokenCache,
    InputError,
    PesapalAPIError,
    PesapalClient,
)
from pesapal_checkout.core.client import extract_error, parse_json

SANDBOX = "https://cybqa.pesapal.com/pesapalv3/api"


def test_request_access_token_posts_credentials(client, session):
    session.queue(token_response())

    payload = client.request_access_token()

    assert payload["token"] == "tok-1"
    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == f"{SANDBOX}/Auth/RequestToken"
    assert call["json"] == {"consumer_key": "key-123", "consumer_secret": "secret-456"}
    assert "Authorization" not in call["headers"]
    assert call["timeout"] == 30.0


def test_privileged_calls_fetch_a_fresh_token_each_time(client, session):
    session.queue(
        token_response("tok-a"),
        FakeResponse(payload=[{"ipn_id": "ipn-1"}]),
        token_response("tok-b"),
        FakeResponse(payload=[]),
    )

    assert client.list_ipns() == [{"ipn_id": "ipn-1"}]
    client.list_ipns()

    urls = [call["url"] for call in session.calls]
    assert urls.count(f"{SANDBOX}/Auth/RequestToken") == 2
    assert session.calls[1]["headers"]["Authorization"] == "Bearer tok-a"
    assert session.calls[3]["headers"]["Authorization"] == "Bearer tok-b"


def test_missing_token_fails_before_the_operation(client, session):
    session.queue(FakeResponse(payload={"token": None, "error": None}))

    with pytest.raises(PesapalAPIError, match="did not return an access token"):
        client.list_ipns()

    assert len(session.calls) == 1


def test_register_ipn_sends_snake_case_body(client, session):
    session.queue(token_response(), FakeResponse(payload={"ipn_id": "ipn-9"}))

    assert client.register_ipn("https://shop.example.com/ipn") == {"ipn_id": "ipn-9"}

    call = session.calls[1]
    assert call["url"] == f"{SANDBOX}/URLSetup/RegisterIPN"
    assert call["json"] == {
        "url": "https://shop.example.com/ipn",
        "ipn_notification_type": "POST",
    }


def test_submit_order_accepts_camel_case_mapping(client, session, order):
    session.queue(
        token_response(),
        FakeResponse(payload={"order_tracking_id": "trk-1", "redirect_url": "https://pay"}),
    )

    result = client.submit_order(order)

    assert result["order_tracking_id"] == "trk-1"
    call = session.calls[1]
    assert call["url"] == f"{SANDBOX}/Transactions/SubmitOrderRequest"
    assert call["json"]["id"] == "REF-1001"
    assert "subscription_details" not in call["json"]


def test_transaction_status_uses_query_parameter(client, session):
    session.queue(token_response(), FakeResponse(payload={"status_code": 1}))

    assert client.get_transaction_status("trk-1") == {"status_code": 1}

    call = session.calls[1]
    assert call["method"] == "GET"
    assert call["url"] == f"{SANDBOX}/Transactions/GetTransactionStatus"
    assert call["params"] == {"orderTrackingId": "trk-1"}


def test_cancel_order_posts_tracking_id(client, session):
    session.queue(token_response(), FakeResponse(payload={"status": "200"}))

    client.cancel_order("trk-1")

    assert session.calls[1]["url"] == f"{SANDBOX}/Transactions/CancelOrder"
    assert session.calls[1]["json"] == {"order_tracking_id": "trk-1"}


@pytest.mark.parametrize("operation", ["get_transaction_status", "cancel_order"])
def test_empty_tracking_id_fails_without_network(client, session, operation):
    with pytest.raises(InputError):
        getattr(client, operation)("")

    assert session.calls == []


def test_nested_error_message_is_surfaced(client, session):
    session.queue(
        token_response(),
        FakeResponse(
            status_code=401,
            payload={"error": {"message": "Invalid token", "code": "E01"}},
            reason="Unauthorized",
        ),
    )

    with pytest.raises(PesapalAPIError) as excinfo:
        client.list_ipns()

    assert "Invalid token" in str(excinfo.value)
    assert str(excinfo.value) == "Pesapal request failed (401): Invalid token"
    assert excinfo.value.upstream_status == 401
    assert excinfo.value.status_code == 502


def test_non_json_error_falls_back_to_raw_text(client, session):
    session.queue(FakeResponse(status_code=503, text="Service Unavailable", reason="x"))

    with pytest.raises(PesapalAPIError, match=r"\(503\): Service Unavailable"):
        client.request_access_token()


def test_empty_error_body_falls_back_to_reason(client, session):
    session.queue(FakeResponse(status_code=500, text="", reason="Internal Server Error"))

    with pytest.raises(PesapalAPIError, match="Internal Server Error"):
        client.request_access_token()


def test_malformed_success_body_degrades_to_none(client, session):
    session.queue(token_response(), FakeResponse(text="<html>ok</html>"))

    assert client.list_ipns() is None


def test_transport_errors_are_wrapped(client, session):
    session.queue(requests.ConnectionError("connection refused"))

    with pytest.raises(PesapalAPIError, match="connection refused"):
        client.request_access_token()


@pytest.mark.parametrize(
    "payload, expected",
    [
        ({"error": "bad key"}, "bad key"),
        ({"error": {"message": "Invalid token", "code": "E01"}}, "Invalid token"),
        ({"error": {"code": "E02"}}, "E02"),
        ({"error": None, "message": "top level"}, "top level"),
        ({"status": "500"}, None),
        ("plain", None),
        (None, None),
    ],
)
def test_extract_error_priority(payload, expected):
    assert extract_error(payload) == expected


def test_token_cache_reuses_token_and_refreshes_after_unauthorized(config):
    session = FakeSession(
        [
            token_response("tok-a"),
            FakeResponse(payload=[]),
            FakeResponse(payload=[]),
            FakeResponse(status_code=401, payload={"error": "expired"}),
            token_response("tok-b"),
            FakeResponse(payload=[]),
        ]
    )
    client = PesapalClient(config, session=session, token_cache=AccessTokenCache())

    client.list_ipns()
    client.list_ipns()
    with pytest.raises(PesapalAPIError):
        client.list_ipns()
    client.list_ipns()

    token_calls = [call for call in session.calls if call["url"].endswith("/Auth/RequestToken")]
    assert len(token_calls) == 2
    assert session.calls[-1]["headers"]["Authorization"] == "Bearer tok-b"


def test_parse_json_rejects_non_standard_constants():
    assert parse_json("NaN") is None
    assert parse_json('{"amount": Infinity}') is None
    assert parse_json('{"amount": 1.5}') == {"amount": 1.5}
