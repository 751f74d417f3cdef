"""Tests for the cross-origin callback forwarder."""

import json
from urllib.parse import parse_qs, quote, urlsplit

import pytest

from expo_auth.config import PROXY_RETURN_SCHEMES
from expo_auth.errors import InvalidRequestError, InvalidStateError, ProviderError
from expo_auth.proxy import build_proxy_redirect


def test_forwards_code_and_state():
    state = json.dumps({"returnTo": "https://preview.example.com/expo-callback", "state": "s"})
    target = build_proxy_redirect("the-code", state, PROXY_RETURN_SCHEMES)

    parsed = urlsplit(target)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://preview.example.com/expo-callback"
    query = parse_qs(parsed.query)
    assert query["code"] == ["the-code"]
    assert query["state"] == [state]


def test_accepts_url_encoded_state():
    state = quote(json.dumps({"returnTo": "http://localhost:3000/cb"}))
    target = build_proxy_redirect("c", state, PROXY_RETURN_SCHEMES)
    assert target.startswith("http://localhost:3000/cb?code=c&state=")


def test_rejects_non_http_return_to():
    state = json.dumps({"returnTo": "exp://evil/--/auth"})
    with pytest.raises(InvalidRequestError) as exc_info:
        build_proxy_redirect("c", state, PROXY_RETURN_SCHEMES)
    assert exc_info.value.message == "Invalid return_to"
    assert exc_info.value.status_code == 400


def test_missing_return_to():
    with pytest.raises(InvalidRequestError) as exc_info:
        build_proxy_redirect("c", json.dumps({"state": "s"}), PROXY_RETURN_SCHEMES)
    assert exc_info.value.message == "Missing return_to"


@pytest.mark.parametrize("code,state", [(None, "{}"), ("c", None), ("", "")])
def test_missing_code_or_state(code, state):
    with pytest.raises(InvalidRequestError):
        build_proxy_redirect(code, state, PROXY_RETURN_SCHEMES)


def test_unparseable_state():
    with pytest.raises(InvalidStateError):
        build_proxy_redirect("c", "{broken", PROXY_RETURN_SCHEMES)


def test_provider_error():
    with pytest.raises(ProviderError) as exc_info:
        build_proxy_redirect(None, None, PROXY_RETURN_SCHEMES, error="access_denied", error_description="nope")
    assert exc_info.value.to_dict() == {"error": "access_denied", "details": "nope", "status": 400}


def test_keeps_existing_query_on_return_to():
    state = json.dumps({"returnTo": "https://preview.example.com/cb?env=staging"})
    target = build_proxy_redirect("c", state, PROXY_RETURN_SCHEMES)
    assert target.startswith("https://preview.example.com/cb?env=staging&code=c&state=")
