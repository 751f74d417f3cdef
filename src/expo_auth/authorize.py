"""
Authorization request construction.

Turns the mobile client's ``returnUrl``/``state``/``audience`` into the
provider's ``/authorize`` URL, packing everything the callback will need
into the state bundle.
"""

import logging
from typing import Optional
from urllib.parse import urlencode

from .config import RelayConfig
from .errors import ConfigurationError, InvalidAudienceError, InvalidRequestError
from .pkce import generate_pkce_pair
from .state import StateBundle, has_accepted_scheme

logger = logging.getLogger(__name__)


def build_authorization_url(
    config: RelayConfig,
    return_url: Optional[str],
    caller_state: Optional[str],
    redirect_uri: str,
    audience: Optional[str] = None,
) -> str:
    """
    Build the provider authorization URL for one login attempt.

    Args:
        config: Relay configuration
        return_url: Where the tokens are delivered once the flow completes
        caller_state: Opaque value echoed back to the mobile client
        redirect_uri: This relay's callback address
        audience: Selects the tenant; optional with a single tenant

    Returns:
        Complete authorization URL

    Raises:
        InvalidRequestError: If return_url or caller_state is missing or bad
        InvalidAudienceError: If the audience matches no tenant
        ConfigurationError: If the tenant lacks a domain or client id
    """
    if not return_url or not caller_state:
        raise InvalidRequestError(
            "Missing required parameters (returnUrl or state)",
            details="Expected URL format: /expo-auth?returnUrl=exp://...&state=xxx",
        )

    if not has_accepted_scheme(return_url, config.return_schemes):
        raise InvalidRequestError(
            "Invalid returnUrl",
            details="returnUrl must use one of: " + ", ".join(sorted(config.return_schemes)),
        )

    audience = audience or None
    tenant = config.resolve_tenant(audience)
    if tenant is None:
        logger.warning("Rejected authorization request for unknown audience %r", audience)
        raise InvalidAudienceError(audience)

    if not tenant.is_configured:
        logger.error("Tenant %s is missing its domain or client id", tenant.name)
        raise ConfigurationError(f"tenant {tenant.name} missing domain or client id")

    params = {
        "response_type": "code",
        "client_id": tenant.client_id,
        "redirect_uri": redirect_uri,
        "scope": config.scopes,
    }
    request_audience = audience or tenant.audience
    if request_audience:
        params["audience"] = request_audience

    code_verifier = None
    if tenant.uses_pkce:
        code_verifier, code_challenge = generate_pkce_pair()
        params["code_challenge"] = code_challenge
        params["code_challenge_method"] = "S256"

    params["state"] = StateBundle(
        state=caller_state,
        return_url=return_url,
        code_verifier=code_verifier,
        audience=audience,
    ).encode()

    logger.info(
        "Redirecting to %s for tenant %s (pkce=%s)",
        tenant.domain,
        tenant.name,
        tenant.uses_pkce,
    )
    return f"{tenant.authorize_url}?{urlencode(params)}"
