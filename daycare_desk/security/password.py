"""
Password hashing for front-desk accounts.
Hashes are stored as ``pbkdf2_sha256$<iterations>$<salt>$<digest>`` so the
work factor can be raised without invalidating existing accounts.
"""
import hashlib
import hmac
import os

ALGORITHM = "pbkdf2_sha256"
ITERATIONS = 200_000


def _derive(password: str, salt: bytes, iterations: int) -> bytes:
    return hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, iterations)


def hash_password(password: str, iterations: int = ITERATIONS) -> str:
    salt = os.urandom(16)
    return f"{ALGORITHM}${iterations}${salt.hex()}${_derive(password, salt, iterations).hex()}"


def verify_password(password: str, stored_hash: str) -> bool:
    """Check ``password`` using the parameters recorded in ``stored_hash``; malformed hashes never match."""
    try:
        algorithm, iterations, salt_hex, digest_hex = stored_hash.split("$")
        salt, expected, rounds = bytes.fromhex(salt_hex), bytes.fromhex(digest_hex), int(iterations)
    except ValueError:
        return False
    if algorithm != ALGORITHM or rounds <= 0:
        return False
    return hmac.compare_digest(_derive(password, salt, rounds), expected)
