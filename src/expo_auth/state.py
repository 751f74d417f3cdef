"""
State bundle carried through the provider's ``state`` parameter.

The bundle is plain JSON. It is neither signed nor encrypted, so anything
in it is visible to, and changeable by, whoever holds the browser.
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

from .errors import InvalidStateError


@dataclass(frozen=True)
class StateBundle:
    state: str
    return_url: str
    code_verifier: Optional[str] = None
    audience: Optional[str] = None

    def encode(self) -> str:
        payload: Dict[str, Any] = {"state": self.state, "returnUrl": self.return_url}
        if self.code_verifier:
            payload["codeVerifier"] = self.code_verifier
        if self.audience:
            payload["audience"] = self.audience
        return json.dumps(payload, separators=(",", ":"))

    @classmethod
    def decode(cls, raw: str) -> "StateBundle":
        """Parse a bundle; ``return_url`` may come back empty for the caller to reject."""
        payload = decode_state_object(raw)
        return cls(
            state=_as_str(payload.get("state")),
            return_url=_as_str(payload.get("returnUrl") or payload.get("returnTo")),
            code_verifier=_as_str(payload.get("codeVerifier")) or None,
            audience=_as_str(payload.get("audience")) or None,
        )


def decode_state_object(raw: str) -> Dict[str, Any]:
    try:
        payload = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise InvalidStateError() from exc
    if not isinstance(payload, dict):
        raise InvalidStateError()
    return payload


def has_accepted_scheme(url: str, schemes) -> bool:
    """True when ``url`` is absolute and its scheme is one of ``schemes``."""
    if not url or ":" not in url:
        return False
    return urlsplit(url).scheme.lower() in schemes


def _as_str(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)
