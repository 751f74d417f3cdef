"""Forward a provider callback from one origin to another.

Used when the callback registered with the provider lives on a different
host than the one that should finish the flow. The target comes from the
``returnTo`` field of the state; only its scheme is checked.
"""

import logging
from typing import Iterable, Optional
from urllib.parse import unquote

from .callback import append_query_params
from .errors import InvalidRequestError, ProviderError
from .state import decode_state_object, has_accepted_scheme

logger = logging.getLogger(__name__)


def build_proxy_redirect(
    code: Optional[str],
    state: Optional[str],
    schemes: Iterable[str],
    error: Optional[str] = None,
    error_description: Optional[str] = None,
) -> str:
    """Return the URL to forward ``code`` and ``state`` to."""
    schemes = frozenset(schemes)
    if error:
        logger.error("Provider error received by auth proxy: %s", error)
        raise ProviderError(error, error_description)

    if not code or not state:
        logger.error("Auth proxy called without code or state")
        raise InvalidRequestError("Missing code or state")

    payload = decode_state_object(unquote(state))
    return_to = payload.get("returnTo")
    if not return_to or not isinstance(return_to, str):
        raise InvalidRequestError("Missing return_to")

    if not has_accepted_scheme(return_to, schemes):
        logger.error("Auth proxy refused return_to with scheme outside %s", sorted(schemes))
        raise InvalidRequestError("Invalid return_to")

    target = append_query_params(return_to, {"code": code, "state": state})
    logger.info("Auth proxy forwarding callback to %s", return_to.split("?", 1)[0])
    return target
