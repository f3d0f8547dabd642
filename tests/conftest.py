"""Shared fakes for exercising the Pesapal client without a network."""

import json

import pytest

from pesapal_checkout import PesapalClient, PesapalConfig


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, reason="OK"):
        self.status_code = status_code
        self.reason = reason
        if text is None:
            text = "" if payload is None else json.dumps(payload)
        self.text = text


class FakeSession:
    """Replays queued responses and records every request made."""

    def __init__(self, responses=()):
        self.responses = list(responses)
        self.calls = []

    def queue(self, *responses):
        self.responses.extend(responses)

    def request(self, method, url, headers=None, json=None, params=None, timeout=None):
        self.calls.append(
            {
                "method": method,
                "url": url,
                "headers": dict(headers or {}),
                "json": json,
                "params": params,
                "timeout": timeout,
            }
        )
        if not self.responses:
            raise AssertionError(f"Unexpected request: {method} {url}")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def token_response(token="tok-1", expiry="2099-01-01T00:00:00.1234567Z"):
    return FakeResponse(
        payload={
            "token": token,
            "expiryDate": expiry,
            "error": None,
            "status": "200",
            "message": "Request processed successfully",
        }
    )


@pytest.fixture
def config():
    return PesapalConfig(consumer_key="key-123", consumer_secret="secret-456")


@pytest.fixture
def session():
    return FakeSession()


@pytest.fixture
def client(config, session):
    return PesapalClient(config, session=session)


@pytest.fixture
def order():
    return {
        "merchantReference": "REF-1001",
        "currency": "KES",
        "amount": 250.5,
        "description": "Checkout test",
        "callbackUrl": "https://shop.example.com/pesapal/response",
        "notificationId": "ipn-42",
        "billingAddress": {
            "emailAddress": "jane@example.com",
            "phoneNumber": "0700000000",
            "countryCode": "KE",
            "firstName": "Jane",
            "lastName": "Doe",
            "city": "Nairobi",
        },
    }
