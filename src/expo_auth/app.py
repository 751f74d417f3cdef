"""FastAPI application exposing the login relay."""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse
from pydantic import BaseModel

from .authorize import build_authorization_url
from .callback import CallbackReceiver, CallbackStatus
from .config import RelayConfig
from .errors import ConfigurationError, InvalidAudienceError, RelayError
from .exchange import TokenExchanger
from .pages import render_error, render_redirect, render_status
from .proxy import build_proxy_redirect

logger = logging.getLogger(__name__)


class TokenExchangeRequest(BaseModel):
    code: Optional[str] = None
    code_verifier: Optional[str] = None
    audience: Optional[str] = None


def _redirect_uri(request: Request) -> str:
    config: RelayConfig = request.app.state.config
    return config.callback_url(str(request.base_url))


def _error_page(exc: RelayError) -> HTMLResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc.reason)
        hint = "Please check your environment variables"
    elif isinstance(exc, InvalidAudienceError):
        hint = None
    else:
        hint = "Please close this window and try again"
    return HTMLResponse(
        render_error(exc.message, exc.details or exc.message, hint),
        status_code=exc.status_code,
    )


async def relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    if isinstance(exc, ConfigurationError):
        logger.error("Configuration error: %s", exc.reason)
    return JSONResponse(exc.to_dict(), status_code=exc.status_code)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse({"error": "Invalid request body"}, status_code=400)


def create_app(config: RelayConfig, transport: Optional[httpx.BaseTransport] = None) -> FastAPI:
    """
    Build the relay application.

    Args:
        config: Relay configuration, shared read-only by every request
        transport: Optional httpx transport for the provider calls
    """
    app = FastAPI(
        title="Expo Auth Relay",
        description="OAuth2/PKCE login relay for mobile clients",
        version="0.1.0",
    )
    app.state.config = config
    app.state.exchanger = TokenExchanger(config, transport=transport)
    app.add_exception_handler(RelayError, relay_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    @app.get("/healthz")
    def healthz():
        return {"status": "ok"}

    @app.get("/expo-auth")
    def expo_auth(
        request: Request,
        return_url: Optional[str] = Query(None, alias="returnUrl"),
        state: Optional[str] = None,
        audience: Optional[str] = None,
    ):
        """Start a login: send the browser to the provider."""
        try:
            url = build_authorization_url(
                config,
                return_url=return_url,
                caller_state=state,
                redirect_uri=_redirect_uri(request),
                audience=audience,
            )
        except RelayError as exc:
            return _error_page(exc)
        return RedirectResponse(url, status_code=302)

    @app.get("/expo-callback")
    def expo_callback(
        request: Request,
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        """Finish a login: exchange the code and hand the tokens to the app."""
        redirect_uri = _redirect_uri(request)
        exchanger: TokenExchanger = request.app.state.exchanger
        receiver = CallbackReceiver(
            lambda c, verifier, aud: exchanger.exchange(c, redirect_uri, verifier, aud),
            config.return_schemes,
        )
        result = receiver.handle(code, state, error, error_description)

        if result.status is CallbackStatus.ERROR:
            return HTMLResponse(
                render_error("Authentication Error", result.message, "Please close this window and try again"),
                status_code=result.status_code,
            )
        if result.status is CallbackStatus.AWAITING_PARAMS:
            return HTMLResponse(render_status(result.message))

        if config.redirect_delay > 0:
            return HTMLResponse(render_redirect(result.redirect_url, result.message, config.redirect_delay))
        return RedirectResponse(result.redirect_url, status_code=302)

    @app.post("/token-exchange")
    def token_exchange(request: Request, body: TokenExchangeRequest):
        """Exchange a code server-side so client secrets stay on the server."""
        exchanger: TokenExchanger = request.app.state.exchanger
        tokens = exchanger.exchange(
            body.code,
            _redirect_uri(request),
            code_verifier=body.code_verifier,
            audience=body.audience,
        )
        return tokens.to_dict()

    @app.get("/auth-proxy")
    def auth_proxy(
        code: Optional[str] = None,
        state: Optional[str] = None,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ):
        """Forward a provider callback to the origin named in the state."""
        target = build_proxy_redirect(
            code,
            state,
            config.proxy_schemes,
            error=error,
            error_description=error_description,
        )
        return RedirectResponse(target, status_code=302)

    return app
