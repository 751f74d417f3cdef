"""Test configuration and fixtures."""

import json

import httpx
import pytest

from expo_auth.config import RelayConfig
from expo_auth.tenants import Tenant


PEAKO = Tenant(
    name="peako",
    domain="peako.example-idp.com",
    client_id="peako-client",
    audience="https://api.peako.example",
)
VITA = Tenant(
    name="vita",
    domain="vita.example-idp.com",
    client_id="vita-client",
    client_secret="vita-secret",
    audience="https://api.vita.example",
)


class FakeProvider:
    """Records token requests and answers with a canned response."""

    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self.payload = payload if payload is not None else {
            "access_token": "AT1",
            "expires_in": 3600,
            "token_type": "Bearer",
        }
        self.requests = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json=self.payload)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def last_body(self) -> dict:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def config():
    """Two tenants: one PKCE-only, one with a client secret."""
    return RelayConfig(
        tenants=(PEAKO, VITA),
        public_base_url="https://relay.example.com",
        redirect_delay=0,
    )


@pytest.fixture
def single_tenant_config():
    return RelayConfig(
        tenants=(Tenant(name="default", domain="solo.example-idp.com", client_id="solo-client"),),
        public_base_url="https://relay.example.com",
        redirect_delay=0,
    )


@pytest.fixture
def provider():
    return FakeProvider()
