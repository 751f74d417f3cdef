"""Identity-provider tenants and audience resolution."""

from dataclasses import dataclass
from typing import Optional, Sequence


@dataclass(frozen=True)
class Tenant:
    """One configured identity-provider environment."""

    name: str
    domain: str = ""
    client_id: str = ""
    client_secret: Optional[str] = None
    audience: Optional[str] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.domain and self.client_id)

    @property
    def uses_pkce(self) -> bool:
        """Tenants without a shared secret authenticate with PKCE."""
        return not self.client_secret

    @property
    def base_url(self) -> str:
        domain = self.domain.strip().rstrip("/")
        return domain if domain.startswith("http") else f"https://{domain}"

    @property
    def authorize_url(self) -> str:
        return f"{self.base_url}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/oauth/token"


def resolve_tenant(tenants: Sequence[Tenant], audience: Optional[str] = None) -> Optional[Tenant]:
    """
    Find the tenant an audience belongs to.

    An exact match on ``audience`` wins. Without an audience, the only
    configured tenant is used as the default; with several tenants there is
    no default. Returns None when nothing matches.
    """
    if audience:
        for tenant in tenants:
            if tenant.audience == audience:
                return tenant
        return None

    if len(tenants) == 1:
        return tenants[0]
    return None
