"""Login with Tapatalk.

Builds the authorization redirect, guards the round-trip with a CSRF
state kept in the user's session, and exchanges the returned
authorization code at the token endpoint.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx

from tapatalk_connect.app import TapatalkApp
from tapatalk_connect.config import ConfigError
from tapatalk_connect.exceptions import (
    CsrfMismatchError,
    CsrfMissingInRequestError,
    CsrfMissingInSessionError,
    TapatalkSDKError,
    TokenExchangeError,
)
from tapatalk_connect.logging_config import get_logger
from tapatalk_connect.oauth.session import STATE_KEY, InMemorySessionStore, SessionStore
from tapatalk_connect.oauth.state import RandomStringGenerator, SecretsRandomStringGenerator
from tapatalk_connect.oauth.urls import CallbackRequest, build_query, remove_params_from_url
from tapatalk_connect.security import constant_time_equals, redact

if TYPE_CHECKING:
    from types import TracebackType

    from tapatalk_connect.config import Config

logger = get_logger(__name__)

# Default HTTP timeout for the code exchange
DEFAULT_TIMEOUT = 30.0


class TapatalkConnectLogin:
    """Coordinates the "login with Tapatalk" redirect flow.

    A session goes through two steps: ``get_login_url`` persists a CSRF
    state and returns the provider URL, then ``get_access_token``
    consumes that state when the provider redirects back with a code.
    """

    CSRF_LENGTH = 32
    BASE_AUTHORIZATION_URL = "https://www.tapatalk.com"

    def __init__(
        self,
        app: TapatalkApp,
        session_store: SessionStore | None = None,
        token_url: str | None = None,
        random_generator: RandomStringGenerator | None = None,
        http_client: httpx.Client | None = None,
        csrf_length: int = CSRF_LENGTH,
        base_authorization_url: str = BASE_AUTHORIZATION_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the login flow.

        Args:
            app: Application identity
            session_store: Storage for the current user's session
            token_url: Endpoint that exchanges a code for an access token
            random_generator: Source of the CSRF state
            http_client: Optional custom HTTP client
            csrf_length: Random bytes in the CSRF state
            base_authorization_url: Scheme and host of the login page
            timeout: Request timeout when the client is created here
        """
        self.app = app
        self.session_store = session_store or InMemorySessionStore()
        self.token_url = token_url
        self.random_generator = random_generator or SecretsRandomStringGenerator()
        self.csrf_length = csrf_length
        self.base_authorization_url = base_authorization_url.rstrip("/")
        self._timeout = timeout
        self._http_client = http_client
        self._owns_client = http_client is None

    def _get_client(self) -> httpx.Client:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.Client(timeout=self._timeout)
        return self._http_client

    def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client and self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def __enter__(self) -> TapatalkConnectLogin:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def get_login_url(
        self,
        redirect_url: str,
        scope: list[str] | None = None,
        separator: str = "&",
    ) -> str:
        """Store CSRF state and return the URL to send the user to.

        A state already pending in the session is reused, so issuing the
        URL twice before the callback yields the same state.

        Args:
            redirect_url: URL Tapatalk redirects the user to after login
            scope: Permissions to request
            separator: Separator between query parameters

        Returns:
            Authorization URL
        """
        state = self.session_store.get(STATE_KEY)
        if not state:
            state = self.random_generator.get_random_string(self.csrf_length)
            logger.debug("Generated new CSRF state %s", state[:8])

        self.session_store.set(STATE_KEY, state)

        return self.get_authorization_url(redirect_url, state, scope, separator=separator)

    def get_authorization_url(
        self,
        redirect_url: str,
        state: str,
        scope: list[str] | None = None,
        params: dict[str, Any] | None = None,
        separator: str = "&",
    ) -> str:
        """Generate an authorization URL to begin authenticating a user.

        Args:
            redirect_url: The callback URL to redirect to
            state: The CSRF value
            scope: Permissions to request
            params: Extra query parameters; these win over the defaults
            separator: Separator between query parameters

        Returns:
            Authorization URL
        """
        query: dict[str, Any] = dict(params or {})
        defaults = {
            "client_id": self.app.get_id(),
            "state": state,
            "response_type": "code",
            "redirect_uri": redirect_url,
            "scope": ",".join(scope or []),
        }
        for key, value in defaults.items():
            query.setdefault(key, value)

        return f"{self.base_authorization_url}/oauth?{build_query(query, separator)}"

    def get_access_token(
        self,
        request: CallbackRequest,
        redirect_url: str | None = None,
    ) -> str | None:
        """Take the code from a login redirect and exchange it.

        Args:
            request: The callback request
            redirect_url: Redirect URL sent with the exchange; defaults to
                the request URL

        Returns:
            Raw token endpoint response body, or None when the request
            carries no authorization code

        Raises:
            CsrfValidationError: If the state check fails
            TokenExchangeError: If the exchange fails
            TapatalkSDKError: If no redirect URL can be determined
        """
        code = request.get("code")
        if not code:
            logger.debug("No authorization code in request; login not completed yet")
            return None

        self.validate_csrf(request)
        self._reset_csrf()

        redirect_url = redirect_url or request.url
        if not redirect_url:
            msg = "Unable to determine the redirect URL for the code exchange"
            raise TapatalkSDKError(msg)
        redirect_url = remove_params_from_url(redirect_url, [STATE_KEY])

        return self.get_access_token_from_code(code, redirect_url)

    def validate_csrf(self, request: CallbackRequest) -> None:
        """Validate the request against a cross-site request forgery.

        Raises:
            CsrfMissingInRequestError: The request has no state
            CsrfMissingInSessionError: The session has no state
            CsrfMismatchError: The two states differ
        """
        state = request.get(STATE_KEY)
        if not state:
            logger.warning("CSRF validation failed: no state in request")
            raise CsrfMissingInRequestError

        saved_state = self.session_store.get(STATE_KEY)
        if not saved_state:
            logger.warning("CSRF validation failed: no state in session")
            raise CsrfMissingInSessionError

        if constant_time_equals(saved_state, state):
            return

        logger.warning("CSRF validation failed: state %s does not match", state[:8])
        raise CsrfMismatchError

    def _reset_csrf(self) -> None:
        """Clear the CSRF state so it is never reused."""
        self.session_store.clear(STATE_KEY)

    def get_access_token_from_code(self, code: str, redirect_url: str) -> str:
        """Exchange an authorization code at the token endpoint.

        Args:
            code: Authorization code from the callback
            redirect_url: Redirect URL the code was issued for

        Returns:
            Raw response body

        Raises:
            TokenExchangeError: If the endpoint is not configured or the
                request fails
        """
        if not self.token_url:
            raise TokenExchangeError("Token endpoint is not configured")

        client = self._get_client()

        logger.debug("Exchanging authorization code %s for an access token", redact(code))

        try:
            response = client.post(
                self.token_url,
                json={"code": code, "redirectUrl": redirect_url},
                headers={"Accept": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.error(
                "Token exchange failed: %s %s - %s",
                e.response.status_code,
                e.response.reason_phrase,
                e.response.text,
            )
            raise TokenExchangeError(
                "Token exchange failed",
                status_code=e.response.status_code,
                response_body=e.response.text,
            ) from e
        except httpx.HTTPError as e:
            logger.error("Token exchange error: %s", e)
            raise TokenExchangeError(f"Token exchange error: {e}") from e

        logger.info("Exchanged authorization code for client %s", self.app.get_id())
        return response.text


def create_login_service(
    config: Config,
    session_store: SessionStore | None = None,
    http_client: httpx.Client | None = None,
) -> TapatalkConnectLogin:
    """Build a login flow from configuration.

    Args:
        config: Application configuration
        session_store: Storage for the current user's session
        http_client: Optional shared HTTP client

    Returns:
        Configured TapatalkConnectLogin

    Raises:
        ConfigError: If the application credentials are missing
    """
    required_fields = [
        ("client_id", config.client_id),
        ("client_secret", config.client_secret),
    ]
    missing = [name for name, value in required_fields if not value]
    if missing:
        msg = f"Tapatalk application is missing required fields: {', '.join(missing)}"
        raise ConfigError(msg)

    app = TapatalkApp(
        config.client_id or "",
        config.client_secret.get_secret_value() if config.client_secret else "",
    )

    return TapatalkConnectLogin(
        app,
        session_store=session_store,
        token_url=config.token_url,
        http_client=http_client,
        csrf_length=config.csrf_length,
        base_authorization_url=config.authorization_base_url,
        timeout=config.http_timeout,
    )
