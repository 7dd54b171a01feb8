"""Authentication dependencies.

Public interface:
    ``optional_auth``: always returns an AuthContext, never raises. Anonymous
                        callers get a context with no role, so permission
                        checks deny them with 401.

When ``settings.auth_enabled`` is False the dependency returns the
development admin context so local work needs no tokens.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .token_factory import decode_token

logger = logging.getLogger(__name__)

_bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class AuthContext:
    """Identity of the caller, resolved once per request.

    Permission checks hand this to permission_service.check_permission().
    """

    user_id: str
    role: str

    @property
    def is_authenticated(self) -> bool:
        return bool(self.role)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


DEV_ADMIN = AuthContext(user_id="1", role="admin")

ANONYMOUS = AuthContext(user_id="", role="")


def _resolve(credentials: Optional[HTTPAuthorizationCredentials]) -> Optional[AuthContext]:
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials, settings.jwt_secret_key, settings.jwt_algorithm)
    if payload is None:
        logger.debug("Rejected bearer token")
        return None
    return AuthContext(user_id=payload.sub, role=payload.role)


def optional_auth(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(_bearer_scheme),
) -> AuthContext:
    """Validate a token if present; fall back to the anonymous context."""
    if not settings.auth_enabled:
        return DEV_ADMIN
    return _resolve(credentials) or ANONYMOUS

