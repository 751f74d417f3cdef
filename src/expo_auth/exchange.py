"""
Server-side authorization code exchange.

The exchange runs on the relay rather than in the browser so a tenant's
client secret never reaches the client. PKCE tenants go through here too,
which keeps a single code path for both modes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .config import RelayConfig
from .errors import (
    ConfigurationError,
    InvalidAudienceError,
    InvalidRequestError,
    ProviderError,
    TokenExchangeError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSet:
    access_token: Optional[str]
    id_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_in: Optional[int] = None
    token_type: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "TokenSet":
        """Keep the five standard fields and drop anything provider-specific."""
        return cls(
            access_token=data.get("access_token"),
            id_token=data.get("id_token"),
            refresh_token=data.get("refresh_token"),
            expires_in=data.get("expires_in"),
            token_type=data.get("token_type"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "access_token": self.access_token,
            "id_token": self.id_token,
            "refresh_token": self.refresh_token,
            "expires_in": self.expires_in,
            "token_type": self.token_type,
        }


class TokenExchanger:
    """
    Exchanges authorization codes at the provider's token endpoint.

    Args:
        config: Relay configuration
        transport: Optional httpx transport, used to stub the provider
    """

    def __init__(self, config: RelayConfig, transport: Optional[httpx.BaseTransport] = None):
        self.config = config
        self.transport = transport

    def exchange(
        self,
        code: Optional[str],
        redirect_uri: str,
        code_verifier: Optional[str] = None,
        audience: Optional[str] = None,
    ) -> TokenSet:
        """
        Exchange an authorization code for tokens.

        Args:
            code: The authorization code from the callback
            redirect_uri: Must equal the redirect_uri of the authorization request
            code_verifier: PKCE verifier; takes precedence over a client secret
            audience: Selects the tenant

        Returns:
            The token set returned by the provider

        Raises:
            InvalidRequestError: If code is missing
            InvalidAudienceError: If the audience matches no tenant
            ConfigurationError: If the tenant cannot authenticate the exchange
            ProviderError: If the provider answers with a non-2xx status
            TokenExchangeError: If the provider cannot be reached
        """
        if not code:
            raise InvalidRequestError("Code is required")

        audience = audience or None
        tenant = self.config.resolve_tenant(audience)
        if tenant is None:
            raise InvalidAudienceError(audience)

        if not tenant.is_configured:
            logger.error(
                "Missing provider configuration for tenant %s (domain=%s, client_id=%s)",
                tenant.name,
                bool(tenant.domain),
                bool(tenant.client_id),
            )
            raise ConfigurationError(f"tenant {tenant.name} missing domain or client id")

        body = {
            "grant_type": "authorization_code",
            "client_id": tenant.client_id,
            "code": code,
            "redirect_uri": redirect_uri,
        }
        if code_verifier:
            body["code_verifier"] = code_verifier
        elif tenant.client_secret:
            body["client_secret"] = tenant.client_secret
        else:
            logger.error("Tenant %s has no client secret and no code verifier was supplied", tenant.name)
            raise ConfigurationError(f"tenant {tenant.name} has neither code verifier nor client secret")

        request_audience = audience or tenant.audience
        if request_audience:
            body["audience"] = request_audience

        logger.info(
            "Exchanging code for tokens (tenant=%s, pkce=%s, redirect_uri=%s)",
            tenant.name,
            bool(code_verifier),
            redirect_uri,
        )

        try:
            with httpx.Client(timeout=self.config.exchange_timeout, transport=self.transport) as client:
                response = client.post(
                    tenant.token_url,
                    json=body,
                    headers={"Accept": "application/json"},
                )
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            logger.error("Token endpoint unreachable for tenant %s: %s", tenant.name, exc)
            raise TokenExchangeError("Token exchange failed", details=str(exc)) from exc

        if not response.is_success:
            error_data = _json_or_empty(response)
            logger.warning(
                "Token exchange failed: %s %s",
                response.status_code,
                error_data.get("error", response.reason_phrase),
            )
            raise ProviderError(
                error=error_data.get("error") or "token_exchange_failed",
                description=error_data.get("error_description") or error_data.get("error") or "Unknown error",
                status_code=response.status_code,
                message="Token exchange failed",
            )

        tokens = TokenSet.from_response(_json_or_empty(response))
        logger.info(
            "Token exchange succeeded (access_token=%s, id_token=%s, refresh_token=%s)",
            bool(tokens.access_token),
            bool(tokens.id_token),
            bool(tokens.refresh_token),
        )
        return tokens


def _json_or_empty(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
