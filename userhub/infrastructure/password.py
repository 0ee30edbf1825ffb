"""Bcrypt password hashing.

The repository stores only the hash produced here, never the submitted
password.
"""

from typing import Final

import bcrypt

DEFAULT_ROUNDS: Final[int] = 12
MIN_ROUNDS: Final[int] = 4
MAX_ROUNDS: Final[int] = 20
# bcrypt only reads the first 72 bytes of its input
MAX_PASSWORD_BYTES: Final[int] = 72


def _encode(password: str) -> bytes:
    return password.encode("utf-8")[:MAX_PASSWORD_BYTES]


class BcryptPasswordHasher:
    """Hash and verify passwords with bcrypt.

    Args:
        rounds: Bcrypt cost factor. Each step doubles hashing time.

    Raises:
        ValueError: If ``rounds`` is outside the range bcrypt accepts.
    """

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        if not MIN_ROUNDS <= rounds <= MAX_ROUNDS:
            raise ValueError(
                f"Bcrypt rounds must be between {MIN_ROUNDS} and {MAX_ROUNDS}"
            )
        self._rounds = rounds

    def hash_password(self, password: str) -> str:
        """Return a salted bcrypt hash (``$2b$<rounds>$...``) of ``password``."""
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(_encode(password), salt).decode("utf-8")

    def verify_password(self, password: str, password_hash: str) -> bool:
        """Check ``password`` against a stored hash. Malformed hashes never match."""
        try:
            return bcrypt.checkpw(_encode(password), password_hash.encode("utf-8"))
        except ValueError:
            return False
