"""
Authentication service — registration, login and principal resolution.

This module contains the core auth logic, separated from HTTP concerns.
The router calls these functions and translates the results into HTTP
responses.

Registration flow:
  1. Check if the username is already taken
  2. Hash the password with Argon2id
  3. Create the User with the USER role
  4. Return a JWT token so the user is immediately logged in

Login flow:
  1. Look up user by username
  2. Verify password against stored hash
  3. Return a JWT token

Security notes:
  - Login returns the same error for "wrong password" and "unknown username"
    to prevent user enumeration attacks
  - resolve_principal re-reads the user and its roles on every request, so
    a deleted user's still-valid token stops working immediately
"""

import logging
import uuid

from jose import JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.authorization import Principal
from app.exceptions import InvalidCredentialsError, UsernameAlreadyTakenError
from app.models.user import RoleName, User, UserRole
from app.security import create_access_token, decode_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)


async def register(
    db: AsyncSession,
    username: str,
    password: str,
) -> tuple[User, str]:
    """
    Register a new card holder.

    Returns:
        Tuple of (User instance, JWT token string).

    Raises:
        UsernameAlreadyTakenError: If the username is already registered.
    """
    result = await db.execute(select(User.id).where(User.username == username))
    if result.scalar_one_or_none() is not None:
        raise UsernameAlreadyTakenError(username)

    user = User(
        username=username,
        hashed_password=hash_password(password),
        roles=[UserRole(role=RoleName.USER)],
    )
    db.add(user)
    await db.flush()
    logger.info("Registered user %s", user.id)

    token = create_access_token(data={"sub": str(user.id)})
    return user, token


async def login(
    db: AsyncSession,
    username: str,
    password: str,
) -> tuple[User, str]:
    """
    Authenticate a user and return a JWT token.

    Raises:
        InvalidCredentialsError: If the username doesn't exist or the password is wrong.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    # Same error for both cases — prevents user enumeration
    if user is None or not verify_password(password, user.hashed_password):
        raise InvalidCredentialsError()

    token = create_access_token(data={"sub": str(user.id)})
    return user, token


async def resolve_principal(db: AsyncSession, token: str) -> Principal | None:
    """
    Turn a bearer token into a Principal.

    Returns None for expired, tampered or malformed tokens and for tokens
    naming a user that no longer exists.
    """
    try:
        payload = decode_access_token(token)
        subject = payload.get("sub")
        if subject is None:
            return None
        user_id = uuid.UUID(subject)
    except (JWTError, ValueError):
        return None

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        return None

    return Principal(user_id=user.id, username=user.username, roles=user.role_names)
