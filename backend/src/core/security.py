"""Password hashing and password policy."""
import re

from passlib.context import CryptContext

# bcrypt with cost factor 10
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=10)

PASSWORD_MIN_LENGTH = 6
PASSWORD_SYMBOLS = '!@#$%^&*(),.?":{}|<>'

_UPPERCASE = re.compile(r"[A-Z]")
_LOWERCASE = re.compile(r"[a-z]")
_SYMBOL = re.compile("[" + re.escape(PASSWORD_SYMBOLS) + "]")


def hash_password(plain: str) -> str:
    """Hash a password with a per-password salt."""
    return pwd_context.hash(plain)


def verify_password(plain: str, hashed: str | None) -> bool:
    """
    Check a password against a stored hash.

    Returns False for an empty or unrecognised hash instead of raising, so a
    misconfigured hash behaves like a wrong password. With no hash at all a
    dummy bcrypt verify still runs, so a missing account costs the same time
    as a wrong password.
    """
    if not hashed:
        pwd_context.dummy_verify()
        return False
    try:
        return pwd_context.verify(plain, hashed)
    except ValueError:
        return False


def validate_password(password: str) -> bool:
    """
    Check a password against the password policy.

    Requires at least PASSWORD_MIN_LENGTH characters, one uppercase letter,
    one lowercase letter, and one character from PASSWORD_SYMBOLS.
    """
    return (
        len(password) >= PASSWORD_MIN_LENGTH
        and _UPPERCASE.search(password) is not None
        and _LOWERCASE.search(password) is not None
        and _SYMBOL.search(password) is not None
    )
