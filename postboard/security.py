"""Password hashing backed by bcrypt."""
import bcrypt

from postboard.config import settings
from postboard.models import User


def hash_password(user: User, plain_password: str) -> str:
    """
    Hash *plain_password* for *user* and return the bcrypt string.

    *user* is the record being created or updated; bcrypt salts on its own,
    so it is only part of the signature for hashers that need it.
    """
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(user: User, plain_password: str) -> bool:
    """Return True when *plain_password* matches the hash stored on *user*."""
    if not user.password:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), user.password.encode("utf-8"))
    except ValueError:
        # Malformed stored hash or an over-long password
        return False
