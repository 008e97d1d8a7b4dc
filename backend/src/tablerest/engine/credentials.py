"""Credential-looking fields: detection, bcrypt hashing and verification."""

from collections.abc import Iterable

from passlib.context import CryptContext

from tablerest.errors import InvalidStoredHashFormat

# Substrings (case-insensitive) that mark a field as holding a secret.
CREDENTIAL_MARKERS = ("password", "contrasena", "passw", "clave")

# Every bcrypt hash starts with this marker ($2a$, $2b$, $2y$).
BCRYPT_PREFIX = "$2"


class CredentialFieldPolicy:
    """Detects secret fields and hashes them before they are persisted.

    Uses passlib's CryptContext with bcrypt, so every hash carries its own
    random salt and work factor.
    """

    def __init__(self, rounds: int = 12):
        """Initialize the policy.

        Args:
            rounds: bcrypt work factor (default 12, higher = slower + more secure)
        """
        self._context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def is_credential_field(self, name: str) -> bool:
        lowered = name.lower()
        return any(marker in lowered for marker in CREDENTIAL_MARKERS)

    def find_credential_field(self, names: Iterable[str]) -> str | None:
        """Return the first credential-looking name, in the given order."""
        for name in names:
            if self.is_credential_field(name):
                return name
        return None

    def hash_for_storage(self, plaintext: str) -> str:
        """Hash a secret.

        Returns:
            Bcrypt hash string (includes algorithm, rounds, salt, and hash)
        """
        return self._context.hash(plaintext)

    def verify(self, plaintext: str, stored_hash: str) -> bool:
        """Verify a plaintext secret against a stored hash.

        Raises:
            InvalidStoredHashFormat: if the stored value is not a bcrypt hash
        """
        if not stored_hash or not stored_hash.startswith(BCRYPT_PREFIX):
            raise InvalidStoredHashFormat(
                "The stored password is not a valid bcrypt hash."
            )
        try:
            return self._context.verify(plaintext, stored_hash)
        except ValueError:
            # Prefix present but the hash body is malformed
            raise InvalidStoredHashFormat(
                "The stored password is not a valid bcrypt hash."
            )
