"""JWT token generation and validation service."""

import time

import jwt

from tablerest.auth.types import TokenClaims


class JWTError(Exception):
    """Base exception for JWT-related errors."""

    pass


class TokenExpiredError(JWTError):
    """Raised when a token has expired."""

    pass


class InvalidTokenError(JWTError):
    """Raised when a token is invalid or malformed."""

    pass


class JWTService:
    """Service for generating and validating access tokens.

    Uses HS256 algorithm with a shared secret key. Every token carries the
    user's email as ``sub``, its role names, and ``iss``/``aud`` claims that
    are checked on decode.
    """

    DEFAULT_TTL = 60 * 60  # 1 hour

    def __init__(
        self,
        secret_key: str,
        issuer: str = "tablerest",
        audience: str = "tablerest-clients",
        ttl: int = DEFAULT_TTL,
        algorithm: str = "HS256",
    ):
        """Initialize the JWT service.

        Args:
            secret_key: Secret key for signing tokens (should be at least 32 chars)
            issuer: Value of the ``iss`` claim
            audience: Value of the ``aud`` claim
            ttl: Token lifetime in seconds
            algorithm: JWT algorithm (default HS256)
        """
        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience
        self._ttl = ttl
        self._algorithm = algorithm

    def generate_token(self, email: str, roles: list[str]) -> str:
        """Issue an access token for ``email`` holding ``roles``."""
        now = int(time.time())
        claims = {
            "sub": email,
            "roles": list(roles),
            "iat": now,
            "exp": now + self._ttl,
            "iss": self._issuer,
            "aud": self._audience,
        }
        return jwt.encode(claims, self._secret_key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenClaims:
        """Decode and validate an access token.

        Raises:
            TokenExpiredError: If the token has expired
            InvalidTokenError: If the token is invalid, malformed, or was
                issued for another issuer/audience
        """
        try:
            payload = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except jwt.InvalidTokenError as e:
            raise InvalidTokenError(f"Invalid token: {e}")

        roles = payload.get("roles") or []
        return TokenClaims(
            subject=payload.get("sub", ""),
            roles=[str(r) for r in roles] if isinstance(roles, list) else [],
            exp=payload.get("exp", 0),
            iat=payload.get("iat", 0),
        )
