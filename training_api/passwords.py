"""
Password hashing.
"""

from passlib.context import CryptContext

# New hashes use pbkdf2_sha256; bcrypt hashes from imported accounts still verify.
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check *password* against a stored hash; malformed hashes never match."""
    if not password_hash:
        return False
    try:
        return pwd_context.verify(password, password_hash)
    except ValueError:
        return False
