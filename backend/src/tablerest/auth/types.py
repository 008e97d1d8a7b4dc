"""Type definitions for authentication."""

from dataclasses import dataclass, field


@dataclass
class TokenClaims:
    """Claims embedded in an access token.

    Attributes:
        subject: The authenticated user's email
        roles: Role names granted at login
        exp: Token expiration timestamp
        iat: Token issued-at timestamp
    """

    subject: str
    roles: list[str] = field(default_factory=list)
    exp: int = 0
    iat: int = 0


@dataclass(frozen=True)
class Principal:
    """The caller behind a request: a stable role set and an expiry."""

    subject: str
    roles: frozenset[str] = frozenset()
    expires_at: int = 0

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "Principal":
        return cls(
            subject=claims.subject,
            roles=frozenset(claims.roles),
            expires_at=claims.exp,
        )

    def has_any_role(self, *roles: str) -> bool:
        return not self.roles.isdisjoint(roles)
