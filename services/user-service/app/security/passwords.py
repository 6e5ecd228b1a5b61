"""bcrypt password hashing."""

from __future__ import annotations

import bcrypt

BCRYPT_PREFIXES = ("$2a$", "$2b$", "$2y$")

# bcrypt only reads the first 72 bytes of its input; newer releases refuse longer ones
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Salted one-way hashing with a fixed bcrypt cost factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    @staticmethod
    def is_hashed(value: str) -> bool:
        """Return ``True`` when ``value`` already carries a bcrypt scheme prefix."""
        return value.startswith(BCRYPT_PREFIXES)

    def hash(self, plaintext: str) -> str:
        """Hash a user-supplied password.

        The input is always hashed, even when it happens to look like a bcrypt hash.

        Raises
        ------
        ValueError
            When the password is longer than ``MAX_PASSWORD_BYTES`` once UTF-8 encoded.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValueError(f"password must be at most {MAX_PASSWORD_BYTES} bytes")
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def ensure_hashed(self, value: str) -> str:
        """Hash ``value`` for a store write unless it is already in bcrypt form."""
        if self.is_hashed(value):
            return value
        return self.hash(value)

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Return ``True`` when ``plaintext`` matches ``hashed``.

        Malformed or foreign stored hashes, and over-long candidates, yield ``False``
        instead of raising.
        """
        if not hashed or not self.is_hashed(hashed):
            return False
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, hashed.encode("utf-8"))
        except ValueError:
            return False
