"""
security helpers:
- Argon2 password hashing via argon2-cffi
- JWT access/refresh token issuing and verification via PyJWT
- JTI generation for token identifiers

Neither class reads Flask config directly; the app factory builds them from
config so services and tests can inject their own instances.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, NamedTuple, Optional

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from utils.errors import Unauthorized

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


class PasswordManager:
    """Thin wrapper around argon2's PasswordHasher."""

    def __init__(self, hasher: Optional[PasswordHasher] = None):
        self.hasher = hasher or PasswordHasher()

    def hash(self, password: str) -> str:
        """Hash a plaintext password using Argon2
        """
        return self.hasher.hash(password)

    def verify(self, password: str, password_hash: str) -> bool:
        """Verify a plaintext password against a stored argon2 hash
        """
        if not password or not password_hash:
            return False
        try:
            return self.hasher.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """
    Issues and verifies signed access/refresh JWTs.

    Access and refresh tokens are signed with different secrets so a refresh
    token can never pass as an access token (and the other way round). The
    `type` claim is checked as well.
    """

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_expires: timedelta,
        refresh_expires: timedelta,
        algorithm: str = "HS256",
        issuer: str = "videotube-api",
    ):
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_expires = access_expires
        self.refresh_expires = refresh_expires
        self.algorithm = algorithm
        self.issuer = issuer

    @classmethod
    def from_config(cls, config) -> "TokenService":
        return cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
        )

    def _encode(self, subject: str, token_type: str, secret: str, expires: timedelta, claims: Dict[str, Any]) -> str:
        now = _now()
        payload = dict(claims)
        payload.update(
            {
                "iss": self.issuer,
                "sub": str(subject),
                "iat": int(now.timestamp()),
                "exp": int((now + expires).timestamp()),
                "type": token_type,
                "jti": generate_jti(),
            }
        )
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def create_access_token(self, subject: str, **claims) -> str:
        return self._encode(subject, ACCESS, self.access_secret, self.access_expires, claims)

    def create_refresh_token(self, subject: str) -> str:
        return self._encode(subject, REFRESH, self.refresh_secret, self.refresh_expires, {})

    def issue(self, identity_id: str, **claims) -> TokenPair:
        """Create a new access/refresh pair for an identity.

        Extra keyword claims (username, email, ...) go into the access token only.
        """
        return TokenPair(
            access_token=self.create_access_token(identity_id, **claims),
            refresh_token=self.create_refresh_token(identity_id),
        )

    def decode(self, token: str, expected_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises Unauthorized on invalid signature,
        expiry, missing claims or wrong token type.
        """
        secret = self.access_secret if expected_type == ACCESS else self.refresh_secret
        generic = "Invalid access token" if expected_type == ACCESS else "Invalid refresh token"
        if not token or not isinstance(token, str):
            raise Unauthorized(generic)
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub", "type"]},
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Rejected %s token: expired", expected_type)
            raise Unauthorized(generic)
        except jwt.InvalidTokenError as exc:
            logger.debug("Rejected %s token: %s", expected_type, exc)
            raise Unauthorized(generic)

        if decoded.get("type") != expected_type:
            logger.debug("Rejected %s token: wrong type %r", expected_type, decoded.get("type"))
            raise Unauthorized(generic)
        return decoded

    def verify_access(self, token: str) -> str:
        return self.decode(token, ACCESS)["sub"]

    def verify_refresh(self, token: str) -> str:
        """Cryptographic check only; revocation state is the caller's job."""
        return self.decode(token, REFRESH)["sub"]
