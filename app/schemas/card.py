"""
Pydantic schemas for Card endpoints.

Card numbers are NEVER returned in API responses — neither the plaintext
nor the ciphertext. Only the masked number ("************4242") is exposed.
The full number is accepted exactly once, when an admin creates the card.

Money fields are Decimal with two decimal places and serialize as strings
("60.00"), never as floats.
"""

import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from app.models.card import CardStatus


class CardCreateRequest(BaseModel):
    """Request body for POST /cards (admin only)."""
    card_number: str = Field(pattern=r"^\d{16}$", description="16-digit card number")
    owner_id: uuid.UUID
    expiry_date: date
    initial_balance: Decimal = Field(ge=0, decimal_places=2)


class CardStatusUpdateRequest(BaseModel):
    """Request body for PATCH /cards/{id}/status (admin only)."""
    new_status: CardStatus


class CardResponse(BaseModel):
    """Public representation of a card (masked number, owner id only)."""
    id: uuid.UUID
    masked_card_number: str
    owner_id: uuid.UUID
    expiry_date: date
    status: CardStatus
    balance: Decimal

    model_config = {"from_attributes": True}


class TransferRequest(BaseModel):
    """Request body for POST /transfers/user/{user_id}."""
    from_card_id: uuid.UUID
    to_card_id: uuid.UUID
    amount: Decimal = Field(gt=0, decimal_places=2, description="Amount to move, e.g. 40.00")
