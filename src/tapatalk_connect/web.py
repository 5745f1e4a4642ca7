"""Demo web application for the Tapatalk login flow.

Exposes the two steps of the flow as HTTP endpoints so the redirect
round-trip can be exercised in a browser.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from starlette.applications import Starlette
from starlette.concurrency import run_in_threadpool
from starlette.responses import JSONResponse, RedirectResponse, Response
from starlette.routing import Route

from tapatalk_connect.exceptions import (
    CsrfValidationError,
    TapatalkSDKError,
    TokenExchangeError,
)
from tapatalk_connect.logging_config import get_logger
from tapatalk_connect.oauth.login import TapatalkConnectLogin, create_login_service
from tapatalk_connect.oauth.session import (
    DEFAULT_MAX_PENDING,
    DEFAULT_PENDING_TIMEOUT,
    PendingLogins,
    SessionStore,
    create_session_store,
)
from tapatalk_connect.oauth.urls import CallbackRequest
from tapatalk_connect.security import generate_secure_token

if TYPE_CHECKING:
    import httpx
    from starlette.requests import Request

    from tapatalk_connect.config import Config

logger = get_logger(__name__)

SESSION_COOKIE = "tapatalk_session"
SESSION_MAX_AGE = int(DEFAULT_PENDING_TIMEOUT.total_seconds())


def create_web_app(
    config: Config,
    http_client: httpx.Client | None = None,
    max_pending_logins: int = DEFAULT_MAX_PENDING,
) -> Starlette:
    """Create a Starlette application serving the login flow.

    Args:
        config: Application configuration
        http_client: Optional HTTP client shared by all code exchanges
        max_pending_logins: Maximum number of logins awaiting a callback

    Returns:
        Configured Starlette application

    Raises:
        ConfigError: If the application credentials are missing
    """
    # Fail at startup rather than on the first login
    create_login_service(config, http_client=http_client)

    def new_session_store(session_id: str) -> SessionStore:
        return create_session_store(
            encryption_key=(
                config.session_encryption_key.get_secret_value()
                if config.session_encryption_key
                else None
            ),
            file_path=config.session_store_path,
            namespace=session_id,
        )

    pending = PendingLogins(new_session_store, max_size=max_pending_logins)

    def callback_url(request: Request) -> str:
        return config.redirect_url or str(request.url_for("callback"))

    def start_login(session_id: str, redirect_url: str) -> str:
        flow = create_login_service(config, pending.start(session_id), http_client)
        with flow:
            return flow.get_login_url(redirect_url, config.scopes)

    def complete_login(
        session_id: str,
        callback_request: CallbackRequest,
        redirect_url: str,
    ) -> str | None:
        flow = create_login_service(config, pending.get(session_id), http_client)
        try:
            with flow:
                return flow.get_access_token(callback_request, redirect_url)
        finally:
            pending.finish(session_id)

    async def health_check(request: Request) -> JSONResponse:
        """Health check endpoint."""
        return JSONResponse({
            "status": "ok",
            "app_name": config.app_name,
            "environment": config.environment.value,
        })

    async def login(request: Request) -> Response:
        """Send the user to the Tapatalk login page."""
        session_id = request.cookies.get(SESSION_COOKIE) or generate_secure_token(32)
        try:
            login_url = await run_in_threadpool(start_login, session_id, callback_url(request))
        except TapatalkSDKError as e:
            logger.error("Could not start login for session %s: %s", session_id[:8], e)
            return JSONResponse({"error": "Login unavailable"}, status_code=500)

        response = RedirectResponse(url=login_url, status_code=302)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=session_id,
            httponly=True,
            secure=config.environment.value != "local",
            samesite="lax",
            max_age=SESSION_MAX_AGE,
        )
        logger.debug("Initiating login for session %s", session_id[:8])
        return response

    async def callback(request: Request) -> Response:
        """Handle the redirect back from Tapatalk."""
        error = request.query_params.get("error")
        if error:
            error_description = request.query_params.get("error_description", "Unknown error")
            logger.error("Login error: %s - %s", error, error_description)
            return JSONResponse(
                {"error": error, "description": error_description},
                status_code=400,
            )

        if not request.query_params.get("code"):
            return JSONResponse({"error": "Missing code parameter"}, status_code=400)

        session_id = request.cookies.get(SESSION_COOKIE)
        if not session_id:
            return JSONResponse({"error": "No login in progress"}, status_code=400)

        callback_request = CallbackRequest(
            query_params=dict(request.query_params),
            url=str(request.url),
        )

        try:
            body = await run_in_threadpool(
                complete_login, session_id, callback_request, callback_url(request)
            )
        except CsrfValidationError as e:
            response = JSONResponse({"error": str(e)}, status_code=400)
        except TokenExchangeError as e:
            logger.error("Login failed for session %s: %s", session_id[:8], e)
            response = JSONResponse({"error": "Token exchange failed"}, status_code=502)
        except TapatalkSDKError as e:
            logger.error("Login failed for session %s: %s", session_id[:8], e)
            response = JSONResponse({"error": "Login unavailable"}, status_code=500)
        else:
            logger.info("Login completed for session %s", session_id[:8])
            response = JSONResponse({"status": "authenticated", "response": body})

        response.delete_cookie(SESSION_COOKIE)
        return response

    routes = [
        Route("/health", health_check, methods=["GET"]),
        Route("/login", login, methods=["GET"], name="login"),
        Route("/callback", callback, methods=["GET"], name="callback"),
    ]

    app = Starlette(routes=routes)
    app.state.pending_logins = pending
    return app


async def run_web(app: Starlette, host: str, port: int) -> None:
    """Run the web application using uvicorn.

    Args:
        app: Starlette ASGI application
        host: Host to bind to
        port: Port to bind to
    """
    import uvicorn

    logger.info("Starting login server on %s:%d", host, port)

    config = uvicorn.Config(
        app=app,
        host=host,
        port=port,
        log_level="info",
    )
    server = uvicorn.Server(config)
    await server.serve()
