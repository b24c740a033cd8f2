"""Signed bearer tokens (compact JWS, HS256).

Two pure functions: ``create_token`` for management scripts and tests,
``decode_token`` for the auth dependency. Decoding never raises; any
problem with a token yields ``None``.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

ISSUER = "canoncore"
_HEADER = {"alg": "HS256", "typ": "JWT"}


@dataclass(frozen=True)
class TokenPayload:
    """Claims we care about from a verified token."""
    sub: str
    exp: datetime


def create_token(subject: str, secret: str, algorithm: str = "HS256", expires_hours: int = 24) -> str:
    """Sign a token whose subject is the acting user id."""
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    issued = int(time.time())
    claims = {"sub": subject, "iat": issued, "exp": issued + expires_hours * 3600, "iss": ISSUER}

    signing_input = _encode_json(_HEADER) + b"." + _encode_json(claims)
    return (signing_input + b"." + _b64url(_sign(secret, signing_input))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Verify signature, issuer and expiry. Returns ``None`` for any invalid token."""
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, signature_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        expected = _sign(secret, header_b64 + b"." + claims_b64)
        if not hmac.compare_digest(expected, _unb64url(signature_b64)):
            return None
        claims = json.loads(_unb64url(claims_b64))
    except (ValueError, json.JSONDecodeError):
        return None

    if not isinstance(claims, dict) or claims.get("iss") != ISSUER:
        return None
    expires_at = claims.get("exp", 0)
    subject = claims.get("sub")
    if not subject or time.time() > expires_at:
        return None

    return TokenPayload(sub=str(subject), exp=datetime.fromtimestamp(expires_at, tz=timezone.utc))


def _sign(secret: str, data: bytes) -> bytes:
    return hmac.new(secret.encode(), data, hashlib.sha256).digest()


def _encode_json(obj: dict) -> bytes:
    return _b64url(json.dumps(obj, separators=(",", ":")).encode())


def _b64url(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _unb64url(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
