"""The two legs of the login bridge, independent of any HTTP framework.

``begin`` turns an upstream ``/authorize`` request into a redirect to the
identity provider. ``complete`` turns the identity provider's callback into a
redirect back to the upstream client carrying an authorization code.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, Literal
from urllib.parse import urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field, ValidationError

from vaultgate.errors import CapacityExceededError, SessionNotFoundError
from vaultgate.oauth.session_bridge import SessionBridge, key_prefix
from vaultgate.sanitize import sanitize_error

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Mapping
    from typing import TypeAlias

    from vaultgate.config import OAuthConfig
    from vaultgate.oauth.session_bridge import OAuthSession

    IssueCode: TypeAlias = Callable[[OAuthSession, str], Awaitable[str]]
    RedirectValidator: TypeAlias = Callable[[str, str], bool]

logger = logging.getLogger(__name__)


class OAuthFlowError(Exception):
    """An OAuth error response (RFC 6749 section 5.2 body plus HTTP status)."""

    def __init__(self, error: str, description: str, status_code: int = 400) -> None:
        self.error = error
        self.description = description
        self.status_code = status_code
        super().__init__(f"{error}: {description}")

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "error_description": self.description}


class AuthorizeParams(BaseModel):
    """Query parameters of the upstream authorize request."""

    response_type: Literal["code"]
    client_id: str = Field(min_length=1)
    redirect_uri: str = Field(min_length=1)
    state: str = Field(min_length=1)
    code_challenge: str = Field(min_length=1)
    code_challenge_method: Literal["S256"]


def with_query(url: str, **params: str) -> str:
    """Append query parameters to *url*, keeping any it already has."""
    parts = urlsplit(url)
    query = urlencode(params)
    if parts.query:
        query = f"{parts.query}&{query}"
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


class AuthorizationBridge:
    """Links the upstream authorize request to the identity provider callback."""

    def __init__(
        self,
        sessions: SessionBridge,
        config: OAuthConfig,
        redirect_validator: RedirectValidator | None = None,
    ) -> None:
        self.sessions = sessions
        self.config = config
        self._redirect_validator = redirect_validator

    @property
    def callback_url(self) -> str:
        return f"{self.config.server_url}{self.config.callback_path}"

    def begin(self, query: Mapping[str, Any]) -> str:
        """Store the upstream request and return the identity provider URL."""
        if query.get("response_type") != "code":
            raise OAuthFlowError("invalid_request", "Invalid response_type. Expected 'code'.")
        try:
            params = AuthorizeParams.model_validate(dict(query))
        except ValidationError:
            raise OAuthFlowError(
                "invalid_request",
                "Missing required parameters (client_id, redirect_uri, state,"
                " code_challenge, code_challenge_method=S256).",
            ) from None

        if self._redirect_validator is not None and not self._redirect_validator(
            params.client_id, params.redirect_uri
        ):
            raise OAuthFlowError(
                "invalid_request", "redirect_uri not registered for this client."
            )

        try:
            key = self.sessions.create(
                client_id=params.client_id,
                redirect_uri=params.redirect_uri,
                state=params.state,
                code_challenge=params.code_challenge,
                code_challenge_method=params.code_challenge_method,
            )
        except CapacityExceededError as exc:
            raise OAuthFlowError("server_error", exc.public_message, status_code=503) from exc

        logger.info("OAuth session created, redirecting client %s to provider", params.client_id)
        return with_query(
            self.config.idp_authorize_url,
            client_id=self.config.idp_client_id,
            redirect_uri=self.callback_url,
            scope=self.config.scope,
            state=key,
        )

    async def complete(self, query: Mapping[str, Any], issue_code: IssueCode) -> str:
        """Consume the session named by ``state`` and return the client redirect.

        *issue_code* exchanges the provider's code and mints the upstream
        authorization code; its failures are logged and reported generically.
        """
        if query.get("error"):
            logger.warning("Identity provider returned error %r", query["error"])
            raise OAuthFlowError("access_denied", "Authorization was denied by the provider.")

        code = query.get("code")
        key = query.get("state")
        if not code or not key:
            raise OAuthFlowError("invalid_request", "Missing code or state from the provider.")

        try:
            session = self.sessions.consume(key)
        except SessionNotFoundError:
            logger.warning("Invalid or expired OAuth session %s", key_prefix(key))
            raise OAuthFlowError(
                "invalid_request", "Invalid or expired session. Please try again."
            ) from None

        try:
            auth_code = await issue_code(session, code)
        except Exception as exc:
            logger.error("OAuth callback failed: %s", sanitize_error(str(exc)))
            raise OAuthFlowError(
                "server_error", "Failed to authenticate with the provider.", status_code=502
            ) from exc

        logger.info("Authorization code issued for client %s", session.client_id)
        return with_query(session.redirect_uri, code=auth_code, state=session.state)


def create_authorization_bridge(
    config: OAuthConfig,
    redirect_validator: RedirectValidator | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> AuthorizationBridge:
    """Build the session store and flow from the ``[oauth]`` settings."""
    sessions = SessionBridge(
        ttl_seconds=config.session_ttl_seconds,
        max_sessions=config.max_sessions,
        clock=clock,
    )
    logger.debug(
        "OAuth session store: ttl=%ss, capacity=%d",
        config.session_ttl_seconds,
        config.max_sessions,
    )
    return AuthorizationBridge(sessions, config, redirect_validator)
