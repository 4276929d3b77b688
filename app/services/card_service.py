"""
Card service — card issuance, lookup, listing, status changes and deletion.

Cards are issued by an admin for an existing user. When a card is created:
  1. The owner must exist
  2. The card number is encrypted with the process-wide card cipher
  3. The status starts as ACTIVE
  4. The initial balance (>= 0, exactly 0 allowed) is stored in cents

Status rules:
  - set_status (admin): any status to any other status; setting the
    current status again is a conflict
  - self_block (owner): only to BLOCKED, and only for the caller's own
    card. A missing card and someone else's card produce the SAME error,
    so a user cannot tell which card ids exist.

This module never checks roles — the routers run the authorization guard
before calling in here.
"""

import logging
import uuid
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import (
    CardNotFoundError,
    CardNotOwnedByUserError,
    CardStatusAlreadySetError,
    InvalidCardOperationError,
    UserNotFoundError,
)
from app.models.card import Card, CardStatus
from app.money import to_cents
from app.pagination import CARD_DEFAULT_PAGE_SIZE, CARD_MAX_PAGE_SIZE, build_page_request
from app.security import card_cipher
from app.services import user_service

logger = logging.getLogger(__name__)


async def create_card(
    db: AsyncSession,
    owner_id: uuid.UUID,
    card_number: str,
    expiry_date: date,
    initial_balance: Decimal,
) -> Card:
    """
    Issue a new card for an existing user.

    Args:
        db: Database session.
        owner_id: The user who will own the card.
        card_number: The 16-digit card number in plaintext (encrypted here).
        expiry_date: Stored as metadata; not enforced.
        initial_balance: Opening balance, two decimal places, >= 0.

    Returns:
        The created Card instance.

    Raises:
        UserNotFoundError: If the owner doesn't exist.
        InvalidCardOperationError: If the initial balance is negative.
    """
    if not await user_service.user_exists(db, owner_id):
        raise UserNotFoundError(owner_id)

    balance_cents = to_cents(initial_balance)
    if balance_cents < 0:
        raise InvalidCardOperationError("Initial balance can't be negative.")

    card = Card(
        encrypted_number=card_cipher.encrypt(card_number),
        owner_id=owner_id,
        expiry_date=expiry_date,
        status=CardStatus.ACTIVE,
        balance_cents=balance_cents,
    )
    db.add(card)
    await db.flush()
    logger.info("Issued card %s for user %s", card.id, owner_id)
    return card


async def get_card(db: AsyncSession, card_id: uuid.UUID) -> Card:
    """
    Get a card by id.

    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    result = await db.execute(select(Card).where(Card.id == card_id))
    card = result.scalar_one_or_none()

    if card is None:
        raise CardNotFoundError(card_id)

    return card


async def find_owner_id(db: AsyncSession, card_id: uuid.UUID) -> uuid.UUID | None:
    """Return the owner's id, or None when the card doesn't exist."""
    result = await db.execute(select(Card.owner_id).where(Card.id == card_id))
    return result.scalar_one_or_none()


def _creation_order(ascending: bool):
    if ascending:
        return (Card.created_at.asc(), Card.id.asc())
    return (Card.created_at.desc(), Card.id.desc())


async def list_cards(
    db: AsyncSession,
    status_filter: CardStatus | None = None,
    expiry_date: date | None = None,
    page: int | None = None,
    size: int | None = None,
    ascending: bool = False,
) -> list[Card]:
    """
    List all cards, optionally filtered, one page at a time.

    Filters combine with AND; a filter left as None is ignored. Ordered by
    creation time (newest first unless ascending=True). Page size defaults
    to 5 and is clamped to 15.
    """
    page_request = build_page_request(page, size, CARD_DEFAULT_PAGE_SIZE, CARD_MAX_PAGE_SIZE)

    query = select(Card)
    if status_filter is not None:
        query = query.where(Card.status == status_filter)
    if expiry_date is not None:
        query = query.where(Card.expiry_date == expiry_date)

    query = (
        query.order_by(*_creation_order(ascending))
        .limit(page_request.limit)
        .offset(page_request.offset)
    )
    result = await db.execute(query)
    return list(result.scalars().all())


async def list_cards_for_owner(
    db: AsyncSession,
    owner_id: uuid.UUID,
    page: int | None = None,
    size: int | None = None,
    ascending: bool = False,
) -> list[Card]:
    """
    List one user's cards, one page at a time (same paging rules as list_cards).

    Raises:
        UserNotFoundError: If the owner doesn't exist.
    """
    if not await user_service.user_exists(db, owner_id):
        raise UserNotFoundError(owner_id)

    page_request = build_page_request(page, size, CARD_DEFAULT_PAGE_SIZE, CARD_MAX_PAGE_SIZE)
    result = await db.execute(
        select(Card)
        .where(Card.owner_id == owner_id)
        .order_by(*_creation_order(ascending))
        .limit(page_request.limit)
        .offset(page_request.offset)
    )
    return list(result.scalars().all())


async def set_status(
    db: AsyncSession,
    card_id: uuid.UUID,
    new_status: CardStatus,
) -> Card:
    """
    Change a card's status (admin path).

    Raises:
        CardNotFoundError: If the card doesn't exist.
        CardStatusAlreadySetError: If the card already has new_status.
    """
    card = await get_card(db, card_id)

    if card.status == new_status:
        raise CardStatusAlreadySetError(card_id)

    old_status = card.status
    card.status = new_status
    await db.flush()
    logger.info("Card %s status %s -> %s", card_id, old_status.value, new_status.value)
    return card


async def self_block(
    db: AsyncSession,
    card_id: uuid.UUID,
    caller_user_id: uuid.UUID,
) -> Card:
    """
    Block a card on behalf of its owner.

    Raises:
        CardNotOwnedByUserError: If the card doesn't exist or isn't the caller's.
        CardStatusAlreadySetError: If the card is already BLOCKED.
    """
    result = await db.execute(select(Card).where(Card.id == card_id))
    card = result.scalar_one_or_none()

    if card is None or card.owner_id != caller_user_id:
        raise CardNotOwnedByUserError(card_id, caller_user_id)

    if card.status == CardStatus.BLOCKED:
        raise CardStatusAlreadySetError(card_id)

    card.status = CardStatus.BLOCKED
    await db.flush()
    logger.info("Card %s blocked by its owner %s", card_id, caller_user_id)
    return card


async def delete_card(db: AsyncSession, card_id: uuid.UUID) -> None:
    """
    Hard-delete a card.

    Raises:
        CardNotFoundError: If the card doesn't exist.
    """
    card = await get_card(db, card_id)
    await db.delete(card)
    await db.flush()
    logger.info("Deleted card %s", card_id)
