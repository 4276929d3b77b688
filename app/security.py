"""
Security utilities: password hashing, JWT tokens, and card number encryption.

This module centralizes all cryptographic operations so they're easy to
audit and update. Three concerns are handled here:

1. PASSWORD HASHING (Argon2)
   - Passwords are never stored in plaintext
   - passlib's CryptContext with the argon2 scheme (Argon2id variant)

2. JWT TOKENS (JSON Web Tokens)
   - After login/registration the user receives a signed JWT whose "sub"
     claim is their user id
   - Signed with SECRET_KEY using HS256, expiring after
     ACCESS_TOKEN_EXPIRE_MINUTES
   - Roles are NOT embedded in the token; they are read from the database
     on every request, so a role change takes effect immediately

3. CARD NUMBER ENCRYPTION (Fernet, key derived with PBKDF2)
   - CARD_ENCRYPTION_SECRET and CARD_ENCRYPTION_SALT are stretched with
     PBKDF2-HMAC-SHA256 into a 32-byte Fernet key, once, at import time
   - Fernet provides authenticated encryption (AES-128-CBC + HMAC-SHA256):
     tampered or foreign ciphertext fails to decrypt instead of yielding junk
   - Masking hides every digit except the last four for display
"""

import base64
from datetime import datetime, timedelta, timezone

from cryptography.fernet import Fernet, InvalidToken
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from jose import jwt
from passlib.context import CryptContext

from app.config import settings
from app.exceptions import CipherError


# ---------------------------------------------------------------------------
# 1. Password Hashing (Argon2)
# ---------------------------------------------------------------------------

# If we ever migrate from argon2 to a future scheme, passlib verifies old
# hashes with the original scheme and hashes new passwords with the new one
# ("deprecated='auto'").
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")


def hash_password(plain_password: str) -> str:
    """
    Hash a plaintext password using Argon2id.

    Returns:
        An Argon2 hash string (e.g., "$argon2id$v=19$m=65536,t=3,p=4$...").
    """
    return pwd_context.hash(plain_password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plaintext password against a stored Argon2 hash."""
    return pwd_context.verify(plain_password, hashed_password)


# ---------------------------------------------------------------------------
# 2. JWT Tokens
# ---------------------------------------------------------------------------


def create_access_token(data: dict, expires_delta: timedelta | None = None) -> str:
    """
    Create a signed JWT access token.

    Args:
        data: Dictionary of claims to encode (must include "sub").
        expires_delta: Optional custom expiration time. Defaults to
                       ACCESS_TOKEN_EXPIRE_MINUTES from settings.

    Returns:
        An encoded JWT string.
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(
            minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES
        )

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_access_token(token: str) -> dict:
    """
    Decode and verify a JWT access token.

    Raises:
        JWTError: If the token is expired, tampered with, or invalid.
    """
    return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])


# ---------------------------------------------------------------------------
# 3. Card Number Encryption
# ---------------------------------------------------------------------------

MASK_CHAR = "*"
VISIBLE_DIGITS = 4
PBKDF2_ITERATIONS = 390_000


class CardNumberCipher:
    """
    Reversible encryption of card numbers for storage, plus display masking.

    Empty or None input passes through encrypt() and decrypt() unchanged.
    Bootstrap code relies on that: it may encrypt a blank value, and that
    must not be an error.
    """

    def __init__(self, secret: str, salt: str):
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=32,
            salt=salt.encode("utf-8"),
            iterations=PBKDF2_ITERATIONS,
        )
        key = base64.urlsafe_b64encode(kdf.derive(secret.encode("utf-8")))
        self._fernet = Fernet(key)

    def encrypt(self, plain_digits: str | None) -> str | None:
        if not plain_digits:
            return plain_digits
        return self._fernet.encrypt(plain_digits.encode("utf-8")).decode("ascii")

    def decrypt(self, ciphertext: str | None) -> str | None:
        """
        Decrypt a stored card number.

        Raises:
            CipherError: If the ciphertext is not valid base64, was produced
                with a different key, or has been tampered with.
        """
        if not ciphertext:
            return ciphertext
        try:
            return self._fernet.decrypt(ciphertext).decode("utf-8")
        except (InvalidToken, ValueError) as exc:
            raise CipherError() from exc

    @staticmethod
    def mask(plain_digits: str | None) -> str | None:
        """Replace every character except the last four with '*', keeping the length."""
        if not plain_digits or len(plain_digits) <= VISIBLE_DIGITS:
            return plain_digits
        hidden = len(plain_digits) - VISIBLE_DIGITS
        return MASK_CHAR * hidden + plain_digits[hidden:]


# Process-wide cipher; the key is derived once and held for the process lifetime
card_cipher = CardNumberCipher(
    settings.CARD_ENCRYPTION_SECRET,
    settings.CARD_ENCRYPTION_SALT,
)
