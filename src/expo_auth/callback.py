"""
Callback handling.

Receives the provider's redirect, recovers the state bundle, exchanges the
code and works out where to send the mobile client. The outcome of one
callback is one of:

    awaiting-params  code/state not present yet, nothing to do
    error            terminal; show the message, no redirect
    redirecting      tokens in hand, navigate to the app's returnUrl
"""

import enum
import logging
from dataclasses import dataclass
from typing import Callable, FrozenSet, Optional
from urllib.parse import parse_qsl, urlencode, urlsplit

from .config import DEFAULT_RETURN_SCHEMES, parse_schemes
from .errors import InvalidStateError, RelayError
from .exchange import TokenSet
from .state import StateBundle, has_accepted_scheme

logger = logging.getLogger(__name__)

# (code, code_verifier, audience) -> TokenSet
ExchangeFunc = Callable[[str, Optional[str], Optional[str]], TokenSet]


class CallbackStatus(str, enum.Enum):
    AWAITING_PARAMS = "awaiting-params"
    ERROR = "error"
    REDIRECTING = "redirecting"


@dataclass(frozen=True)
class CallbackResult:
    status: CallbackStatus
    message: str
    redirect_url: Optional[str] = None
    status_code: int = 200

    @classmethod
    def failed(cls, message: str, status_code: int = 400) -> "CallbackResult":
        return cls(CallbackStatus.ERROR, message, status_code=status_code)


def append_query_params(url: str, params) -> str:
    """Set query params on an absolute URL, keeping any it already has.

    Everything before the query is kept verbatim, so ``exp://`` and
    ``myapp:///path`` keep their slashes.
    """
    base, hash_sign, fragment = url.partition("#")
    base, _, query = base.partition("?")
    existing = dict(parse_qsl(query, keep_blank_values=True))
    for key, value in params.items():
        existing[str(key)] = str(value)
    return f"{base}?{urlencode(existing)}{hash_sign}{fragment}"


def build_return_url(return_url: str, tokens: TokenSet, caller_state: str) -> str:
    """The final app URL with tokens attached; absent tokens are left out."""
    params = {"access_token": tokens.access_token}
    if tokens.id_token:
        params["id_token"] = tokens.id_token
    if tokens.refresh_token:
        params["refresh_token"] = tokens.refresh_token
    params["state"] = caller_state
    return append_query_params(return_url, params)


class CallbackReceiver:
    """
    Drives one provider callback to its outcome.

    Args:
        exchange: Called as ``exchange(code, code_verifier, audience)``
        schemes: Schemes a returnUrl may use
    """

    def __init__(self, exchange: ExchangeFunc, schemes: Optional[FrozenSet[str]] = None):
        self.exchange = exchange
        self.schemes = schemes if schemes is not None else parse_schemes(DEFAULT_RETURN_SCHEMES)

    def handle(
        self,
        code: Optional[str],
        state: Optional[str],
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> CallbackResult:
        if error:
            message = f"Auth0 error: {error}"
            if error_description:
                message += f" - {error_description}"
            logger.warning("Provider returned an error: %s", error)
            return CallbackResult.failed(message)

        if not code or not state:
            logger.debug("Waiting for query parameters (code=%s, state=%s)", bool(code), bool(state))
            return CallbackResult(CallbackStatus.AWAITING_PARAMS, "Processing authentication...")

        try:
            bundle = StateBundle.decode(state)
        except InvalidStateError as exc:
            return CallbackResult.failed(exc.message, exc.status_code)

        if not bundle.return_url:
            return CallbackResult.failed("Missing returnUrl in state")

        if not has_accepted_scheme(bundle.return_url, self.schemes):
            logger.warning("Rejected callback returnUrl with scheme %r", urlsplit(bundle.return_url).scheme)
            return CallbackResult.failed("Invalid returnUrl in state")

        logger.info("Received callback with code %s...", code[:6])
        try:
            tokens = self.exchange(code, bundle.code_verifier, bundle.audience)
        except RelayError as exc:
            detail = exc.details or exc.message
            logger.warning("Callback exchange failed: %s", detail)
            return CallbackResult.failed(f"{exc.message}: {detail}" if exc.details else exc.message, exc.status_code)

        if not tokens.access_token:
            return CallbackResult.failed("No access_token received from token exchange", 502)

        target = build_return_url(bundle.return_url, tokens, bundle.state)
        logger.info("Redirecting back to app at %s", urlsplit(bundle.return_url).scheme + "://...")
        return CallbackResult(CallbackStatus.REDIRECTING, "Redirecting back to app...", redirect_url=target)
