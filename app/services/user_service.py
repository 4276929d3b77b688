"""
User service — lookup, listing, username changes, deletion and balances.

Deleting a user:
  Cards reference users, so a user is deleted in three explicit steps in
  the caller's transaction — the user's cards, then its role rows, then
  the user itself. If any step fails the request rolls back and nothing
  is deleted.

Aggregate balance:
  The sum of all the user's card balances, computed in SQL over integer
  cents and returned as a Decimal. A user with no cards has 0.00.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import UserNotFoundError, UsernameAlreadyTakenError
from app.models.card import Card
from app.models.user import User, UserRole
from app.money import from_cents
from app.pagination import USER_DEFAULT_PAGE_SIZE, USER_MAX_PAGE_SIZE, build_page_request

logger = logging.getLogger(__name__)


async def user_exists(db: AsyncSession, user_id: uuid.UUID) -> bool:
    result = await db.execute(select(User.id).where(User.id == user_id))
    return result.scalar_one_or_none() is not None


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    """
    Raises:
        UserNotFoundError: If the user doesn't exist.
    """
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def get_user_by_username(db: AsyncSession, username: str) -> User:
    """
    Raises:
        UserNotFoundError: If no user has this username.
    """
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if user is None:
        raise UserNotFoundError(username=username)
    return user


async def list_users(
    db: AsyncSession,
    page: int | None = None,
    size: int | None = None,
    ascending: bool = True,
) -> list[User]:
    """List users by creation time (oldest first by default). Size defaults to 10, max 50."""
    page_request = build_page_request(page, size, USER_DEFAULT_PAGE_SIZE, USER_MAX_PAGE_SIZE)
    order = (
        (User.created_at.asc(), User.id.asc())
        if ascending
        else (User.created_at.desc(), User.id.desc())
    )
    result = await db.execute(
        select(User)
        .order_by(*order)
        .limit(page_request.limit)
        .offset(page_request.offset)
    )
    return list(result.scalars().all())


async def update_username(
    db: AsyncSession,
    user_id: uuid.UUID,
    new_username: str | None,
) -> User:
    """
    Rename a user. None or the current username leaves the user unchanged.

    Raises:
        UserNotFoundError: If the user doesn't exist.
        UsernameAlreadyTakenError: If another user already has new_username.
    """
    user = await get_user(db, user_id)

    if new_username is None or new_username == user.username:
        return user

    taken = await db.execute(select(User.id).where(User.username == new_username))
    if taken.scalar_one_or_none() is not None:
        raise UsernameAlreadyTakenError(new_username)

    user.username = new_username
    await db.flush()
    logger.info("User %s renamed", user_id)
    return user


async def delete_user(db: AsyncSession, user_id: uuid.UUID) -> None:
    """
    Delete a user and every card it owns.

    Raises:
        UserNotFoundError: If the user doesn't exist.
    """
    if not await user_exists(db, user_id):
        raise UserNotFoundError(user_id)

    cards_deleted = await db.execute(delete(Card).where(Card.owner_id == user_id))
    await db.execute(delete(UserRole).where(UserRole.user_id == user_id))
    await db.execute(delete(User).where(User.id == user_id))
    logger.info("Deleted user %s and %d card(s)", user_id, cards_deleted.rowcount)


async def get_total_balance(db: AsyncSession, user_id: uuid.UUID) -> Decimal:
    """
    Sum the balances of all cards owned by a user.

    Raises:
        UserNotFoundError: If the user doesn't exist.
    """
    if not await user_exists(db, user_id):
        raise UserNotFoundError(user_id)

    result = await db.execute(
        select(func.coalesce(func.sum(Card.balance_cents), 0))
        .where(Card.owner_id == user_id)
    )
    return from_cents(result.scalar())
