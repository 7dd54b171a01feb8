"""Pure functions for creating and decoding HS256 bearer tokens.

Used by the auth dependency and by tests or scripts that mint tokens for
story authors and editors.
"""

import hashlib
import hmac
import base64
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

_ISSUER = "story-autosaves"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token claims. Immutable."""
    sub: str
    role: str
    exp: datetime


def create_token(
    subject: str,
    role: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed JWT.

    Args:
        subject: User id the token speaks for.
        role: Role claim (``"admin"``, ``"editor"``, ``"author"``, ...).
        secret: HMAC signing key.
        algorithm: Only HS256 supported.
        expires_hours: Hours until expiry; negative values mint expired tokens.
    """
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = time.time()
    claims = {
        "sub": subject,
        "role": role,
        "iat": int(now),
        "exp": int(now + expires_hours * 3600),
        "iss": _ISSUER,
    }
    header = {"alg": "HS256", "typ": "JWT"}

    signing_input = _b64encode(json.dumps(header).encode()) + b"." + _b64encode(json.dumps(claims).encode())
    signature = hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()
    return (signing_input + b"." + _b64encode(signature)).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Decode and verify a JWT.

    Returns ``None`` for a bad signature, an expired token, a foreign issuer
    or malformed input; callers decide what absence means.
    """
    if algorithm != "HS256":
        return None

    try:
        header_b64, claims_b64, sig_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        expected = hmac.new(secret.encode(), header_b64 + b"." + claims_b64, hashlib.sha256).digest()
        if not hmac.compare_digest(expected, _b64decode(sig_b64)):
            return None

        claims = json.loads(_b64decode(claims_b64))
        if claims.get("iss") != _ISSUER:
            return None

        exp = claims.get("exp", 0)
        if time.time() > exp:
            return None

        return TokenPayload(
            sub=str(claims.get("sub", "")),
            role=claims.get("role", ""),
            exp=datetime.fromtimestamp(exp, tz=timezone.utc),
        )
    except (json.JSONDecodeError, ValueError, TypeError, AttributeError):
        return None


def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
