"""
Transfer service — moving money between two cards of the same owner.

THIS IS THE MOST CRITICAL FILE IN THE PROJECT. A transfer debits one card
and credits another; both balance updates are flushed together in the
request's transaction, so either both are committed or neither is.

Checks run in a fixed order, and the first failure wins:
  1. the acting user exists                      -> UserNotFoundError
  2. the source card exists                      -> CardNotOwnedByUserError
  3. the destination card exists                 -> CardNotOwnedByUserError
  4. the user owns the source, then destination  -> CardNotOwnedByUserError
  5. the source card is ACTIVE                   -> InvalidCardOperationError
  6. the destination card is ACTIVE              -> InvalidCardOperationError
  7. the cards are different                     -> InvalidCardOperationError
  8. the source balance covers the amount        -> InvalidCardOperationError
  9. the amount is positive                      -> InvalidCardOperationError
A missing card and a card owned by someone else raise the same error, so
a transfer request cannot be used to discover other users' card ids.

Only same-owner transfers exist. There is no "admin transfers on behalf of
a user" and no transfer to another user's card.

Deadlock prevention:
  Both card rows are locked (SELECT ... FOR UPDATE) in ascending id order
  before any check runs. Two concurrent transfers A->B and B->A therefore
  lock in the same order and serialize instead of deadlocking, and the
  balance read for check 8 cannot change before the update.

SQLite note:
  SQLite ignores SELECT ... FOR UPDATE. File databases open every
  transaction with BEGIN IMMEDIATE instead (see app.database), so a second
  transfer waits for the first to commit before it reads any balance.

Balance updates:
  The debit and credit are relative UPDATE statements
  (balance_cents = balance_cents -/+ :amount), and the debit only matches
  while the stored balance still covers the amount. A debit that matches
  no row is reported as an insufficient balance, so a stale read can never
  overwrite a concurrent change or drive a balance below zero.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import CardNotOwnedByUserError, InvalidCardOperationError, UserNotFoundError
from app.models.card import Card, CardStatus
from app.money import to_cents
from app.services import user_service

logger = logging.getLogger(__name__)


async def _lock_cards(db: AsyncSession, *card_ids: uuid.UUID) -> dict[uuid.UUID, Card]:
    """Lock the given cards in ascending id order and return the ones that exist."""
    cards = {}
    for card_id in sorted(set(card_ids)):
        result = await db.execute(
            select(Card)
            .where(Card.id == card_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        card = result.scalar_one_or_none()
        if card is not None:
            cards[card_id] = card
    return cards


async def transfer(
    db: AsyncSession,
    acting_user_id: uuid.UUID,
    from_card_id: uuid.UUID,
    to_card_id: uuid.UUID,
    amount: Decimal,
) -> None:
    """
    Transfer `amount` from one of the user's cards to another of their cards.

    Args:
        db: Database session.
        acting_user_id: The user performing the transfer; must own both cards.
        from_card_id: Card to debit.
        to_card_id: Card to credit.
        amount: Positive Decimal with at most two decimal places.

    Raises:
        UserNotFoundError: If the acting user doesn't exist.
        CardNotOwnedByUserError: If either card is missing or not the user's.
        InvalidCardOperationError: If a card is inactive, both ids are the
            same card, the balance is insufficient, or the amount isn't positive.
    """
    if not await user_service.user_exists(db, acting_user_id):
        raise UserNotFoundError(acting_user_id)

    cards = await _lock_cards(db, from_card_id, to_card_id)

    from_card = cards.get(from_card_id)
    if from_card is None:
        raise CardNotOwnedByUserError(from_card_id, acting_user_id)
    to_card = cards.get(to_card_id)
    if to_card is None:
        raise CardNotOwnedByUserError(to_card_id, acting_user_id)

    for card in (from_card, to_card):
        if card.owner_id != acting_user_id:
            raise CardNotOwnedByUserError(card.id, acting_user_id)

    if from_card.status != CardStatus.ACTIVE:
        raise InvalidCardOperationError("Source card is not active.")
    if to_card.status != CardStatus.ACTIVE:
        raise InvalidCardOperationError("Destination card is not active.")
    if from_card_id == to_card_id:
        raise InvalidCardOperationError("Can't transfer money to the same card.")

    amount_cents = to_cents(amount)
    if from_card.balance_cents < amount_cents:
        raise InvalidCardOperationError("Insufficient balance on source card.")
    if amount_cents <= 0:
        raise InvalidCardOperationError("Transfer amount must be positive.")

    debited = await db.execute(
        update(Card)
        .where(Card.id == from_card_id, Card.balance_cents >= amount_cents)
        .values(balance_cents=Card.balance_cents - amount_cents)
        .execution_options(synchronize_session=False)
    )
    if debited.rowcount != 1:
        raise InvalidCardOperationError("Insufficient balance on source card.")
    await db.execute(
        update(Card)
        .where(Card.id == to_card_id)
        .values(balance_cents=Card.balance_cents + amount_cents)
        .execution_options(synchronize_session=False)
    )
    await db.refresh(from_card)
    await db.refresh(to_card)

    logger.info(
        "Transferred %s from card %s to card %s for user %s",
        amount, from_card_id, to_card_id, acting_user_id,
    )
