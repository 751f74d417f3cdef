"""
Relay configuration.

Everything is read from the environment once at start-up and frozen into a
RelayConfig that is handed to the web app and the CLI. A ``.env`` file is
honoured through python-dotenv by the entry points.

Single tenant:
    AUTH0_DOMAIN, AUTH0_CLIENT_ID, AUTH0_CLIENT_SECRET, AUTH0_AUDIENCE

Several tenants:
    AUTH0_TENANTS=peako,vita
    AUTH0_PEAKO_DOMAIN, AUTH0_PEAKO_CLIENT_ID, AUTH0_PEAKO_AUDIENCE, ...
"""

import os
from dataclasses import dataclass, field
from typing import FrozenSet, Mapping, Optional, Tuple

from .tenants import Tenant, resolve_tenant

DEFAULT_SCOPES = "openid profile email offline_access"
DEFAULT_RETURN_SCHEMES = "exp,exps,http,https"
DEFAULT_REDIRECT_DELAY_MS = 500
DEFAULT_EXCHANGE_TIMEOUT = 10.0

CALLBACK_PATH = "/expo-callback"

# The cross-proxy only ever forwards to web origins
PROXY_RETURN_SCHEMES = frozenset({"http", "https"})


@dataclass(frozen=True)
class RelayConfig:
    """Immutable settings shared by every request."""

    tenants: Tuple[Tenant, ...] = ()
    public_base_url: Optional[str] = None
    scopes: str = DEFAULT_SCOPES
    return_schemes: FrozenSet[str] = field(
        default_factory=lambda: parse_schemes(DEFAULT_RETURN_SCHEMES)
    )
    proxy_schemes: FrozenSet[str] = PROXY_RETURN_SCHEMES
    redirect_delay: float = DEFAULT_REDIRECT_DELAY_MS / 1000
    exchange_timeout: float = DEFAULT_EXCHANGE_TIMEOUT

    def resolve_tenant(self, audience: Optional[str] = None) -> Optional[Tenant]:
        return resolve_tenant(self.tenants, audience)

    def callback_url(self, request_base_url: str = "") -> str:
        """The redirect_uri registered with the provider.

        Both the authorization request and the token exchange must send the
        exact same value.
        """
        base = (self.public_base_url or request_base_url).rstrip("/")
        return f"{base}{CALLBACK_PATH}"


def parse_schemes(raw: str) -> FrozenSet[str]:
    return frozenset(s.strip().lower().rstrip(":/") for s in raw.split(",") if s.strip())


def _tenant_from_env(env: Mapping[str, str], name: str, prefix: str) -> Tenant:
    return Tenant(
        name=name,
        domain=env.get(f"{prefix}DOMAIN", "").strip(),
        client_id=env.get(f"{prefix}CLIENT_ID", "").strip(),
        client_secret=env.get(f"{prefix}CLIENT_SECRET", "").strip() or None,
        audience=env.get(f"{prefix}AUDIENCE", "").strip() or None,
    )


def load_tenants(env: Mapping[str, str]) -> Tuple[Tenant, ...]:
    """Build the tenant table from environment variables."""
    names = [n.strip() for n in env.get("AUTH0_TENANTS", "").split(",") if n.strip()]
    if names:
        return tuple(
            _tenant_from_env(env, name.lower(), f"AUTH0_{name.upper()}_") for name in names
        )

    tenant = _tenant_from_env(env, "default", "AUTH0_")
    if tenant.domain or tenant.client_id:
        return (tenant,)
    return ()


def load_config(env: Optional[Mapping[str, str]] = None) -> RelayConfig:
    """
    Read the relay configuration.

    Args:
        env: Mapping to read from, defaults to ``os.environ``

    Returns:
        A frozen RelayConfig

    Raises:
        ValueError: If a numeric setting cannot be parsed
    """
    if env is None:
        env = os.environ

    delay_ms = int(env.get("REDIRECT_DELAY_MS", DEFAULT_REDIRECT_DELAY_MS))
    return RelayConfig(
        tenants=load_tenants(env),
        public_base_url=env.get("PUBLIC_BASE_URL", "").strip() or None,
        scopes=env.get("AUTH0_SCOPES", DEFAULT_SCOPES),
        return_schemes=parse_schemes(env.get("RETURN_URL_SCHEMES", DEFAULT_RETURN_SCHEMES)),
        redirect_delay=max(delay_ms, 0) / 1000,
        exchange_timeout=float(env.get("TOKEN_EXCHANGE_TIMEOUT", DEFAULT_EXCHANGE_TIMEOUT)),
    )
