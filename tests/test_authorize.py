"""Tests for authorization URL construction."""

import json
from urllib.parse import parse_qs, urlsplit

import pytest

from expo_auth.authorize import build_authorization_url
from expo_auth.config import RelayConfig
from expo_auth.errors import ConfigurationError, InvalidAudienceError, InvalidRequestError
from expo_auth.pkce import generate_code_challenge
from expo_auth.tenants import Tenant

REDIRECT_URI = "https://relay.example.com/expo-callback"


def _query(url):
    return {k: v[0] for k, v in parse_qs(urlsplit(url).query).items()}


@pytest.mark.parametrize(
    "return_url,caller_state",
    [
        ("exp://127.0.0.1:8081/--/auth", "abc123"),
        ("exp://u.expo.dev/--/auth?x=1&y=2", '{"nested": "json & stuff"}'),
        ("https://app.example.com/done", "ünïcode state"),
    ],
)
def test_state_round_trip(config, return_url, caller_state):
    url = build_authorization_url(
        config, return_url, caller_state, REDIRECT_URI, audience="https://api.peako.example"
    )
    bundle = json.loads(_query(url)["state"])
    assert bundle["returnUrl"] == return_url
    assert bundle["state"] == caller_state
    assert bundle["audience"] == "https://api.peako.example"


def test_pkce_parameters(config):
    url = build_authorization_url(
        config, "exp://localhost/--/auth", "s", REDIRECT_URI, audience="https://api.peako.example"
    )
    assert url.startswith("https://peako.example-idp.com/authorize?")
    query = _query(url)
    assert query["response_type"] == "code"
    assert query["client_id"] == "peako-client"
    assert query["redirect_uri"] == REDIRECT_URI
    assert query["scope"] == "openid profile email offline_access"
    assert query["audience"] == "https://api.peako.example"
    assert query["code_challenge_method"] == "S256"

    verifier = json.loads(query["state"])["codeVerifier"]
    assert len(verifier) == 128
    assert query["code_challenge"] == generate_code_challenge(verifier)


def test_secret_tenant_skips_pkce(config):
    url = build_authorization_url(
        config, "exp://localhost/--/auth", "s", REDIRECT_URI, audience="https://api.vita.example"
    )
    query = _query(url)
    assert "code_challenge" not in query
    assert "codeVerifier" not in json.loads(query["state"])
    assert "vita-secret" not in url


def test_single_tenant_without_audience(single_tenant_config):
    url = build_authorization_url(single_tenant_config, "exp://localhost/--/auth", "s", REDIRECT_URI)
    query = _query(url)
    assert query["client_id"] == "solo-client"
    assert "audience" not in query


@pytest.mark.parametrize("return_url,caller_state", [(None, "s"), ("exp://x", None), ("", "")])
def test_missing_parameters(config, return_url, caller_state):
    with pytest.raises(InvalidRequestError):
        build_authorization_url(config, return_url, caller_state, REDIRECT_URI, audience="https://api.peako.example")


@pytest.mark.parametrize("return_url", ["javascript:alert(1)", "ftp://files.example.com", "/relative/path"])
def test_rejects_unaccepted_scheme(config, return_url):
    with pytest.raises(InvalidRequestError) as exc_info:
        build_authorization_url(config, return_url, "s", REDIRECT_URI, audience="https://api.peako.example")
    assert exc_info.value.message == "Invalid returnUrl"


def test_unknown_audience(config):
    with pytest.raises(InvalidAudienceError):
        build_authorization_url(config, "exp://x/--/auth", "s", REDIRECT_URI, audience="https://nope.example")


def test_missing_audience_with_several_tenants(config):
    with pytest.raises(InvalidAudienceError):
        build_authorization_url(config, "exp://x/--/auth", "s", REDIRECT_URI)


def test_unconfigured_tenant():
    config = RelayConfig(tenants=(Tenant(name="broken", domain="", client_id="c", audience="aud"),))
    with pytest.raises(ConfigurationError) as exc_info:
        build_authorization_url(config, "exp://x/--/auth", "s", REDIRECT_URI, audience="aud")
    assert exc_info.value.message == "Server configuration error"
    assert exc_info.value.status_code == 500


def test_single_tenant_sends_configured_audience():
    tenant = Tenant(name="default", domain="solo.example-idp.com", client_id="solo-client", audience="https://api.solo.example")
    config = RelayConfig(tenants=(tenant,))
    query = _query(build_authorization_url(config, "exp://localhost/--/auth", "s", REDIRECT_URI))
    assert query["audience"] == "https://api.solo.example"
    assert "audience" not in json.loads(query["state"])
