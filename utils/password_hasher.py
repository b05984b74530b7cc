"""
Password hashing with PBKDF2-HMAC-SHA256.

Stored format: ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
"""

import hmac
import os

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

ALGORITHM = "pbkdf2_sha256"
SALT_BYTES = 16
KEY_LENGTH = 32


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=salt,
        iterations=iterations,
    )
    return kdf.derive(password.encode('utf-8'))


def hash_password(password: str, iterations: int) -> str:
    salt = os.urandom(SALT_BYTES)
    derived = _derive(password, salt, iterations)
    return f"{ALGORITHM}${iterations}${salt.hex()}${derived.hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Constant-time check of ``password`` against a stored hash. Malformed hashes never match."""
    try:
        algorithm, iterations_str, salt_hex, hash_hex = stored_hash.split('$')
        if algorithm != ALGORITHM:
            return False
        iterations = int(iterations_str)
        salt = bytes.fromhex(salt_hex)
        expected = bytes.fromhex(hash_hex)
    except (ValueError, AttributeError):
        return False

    return hmac.compare_digest(_derive(password, salt, iterations), expected)
