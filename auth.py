"""Password hashing utilities."""
from passlib.context import CryptContext

# pbkdf2 is pure Python, so no native bcrypt backend is needed
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def hash_password(password: str) -> str:
    """Return a salted hash of ``password``."""
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Check ``password`` against a stored hash."""
    return pwd_context.verify(password, password_hash)
