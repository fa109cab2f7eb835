"""OAuth login bridge: one-time sessions linking the authorize and callback legs."""

from vaultgate.oauth.flow import (
    AuthorizationBridge,
    AuthorizeParams,
    OAuthFlowError,
    create_authorization_bridge,
)
from vaultgate.oauth.session_bridge import OAuthSession, SessionBridge

__all__ = [
    "AuthorizationBridge",
    "AuthorizeParams",
    "OAuthFlowError",
    "OAuthSession",
    "SessionBridge",
    "create_authorization_bridge",
]
