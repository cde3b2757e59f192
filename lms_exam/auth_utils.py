"""Password hashing for the login boundary."""

from passlib.context import CryptContext

from lms_exam.config import get_settings

# "2b" ident avoids compatibility issues with bcrypt 4.x
PWD_CONTEXT = CryptContext(
    schemes=["bcrypt"],
    deprecated="auto",
    bcrypt__ident="2b",
    bcrypt__rounds=get_settings().bcrypt_rounds,
)


def hash_password(plain_password: str) -> str:
    """Hash a plaintext password for storage."""
    return PWD_CONTEXT.hash(plain_password)


def verify_password(plain_password: str, password_hash: str) -> bool:
    """Verify a plaintext password against its hash."""
    return PWD_CONTEXT.verify(plain_password, password_hash)
