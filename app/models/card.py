"""
Card model — a bank card owned by a User.

The card number is encrypted at rest (see app.security.CardNumberCipher);
the plaintext never touches the database. Outward-facing representations
use `masked_card_number`, which decrypts in memory and masks all but the
last four digits.

Balance management:
  `balance_cents` stores the balance as an integer (10.50 is 1050), so all
  arithmetic is exact. The API reads and writes Decimal via the `balance`
  property. A CHECK constraint keeps the balance non-negative at the
  database level, behind the transfer engine's own check.

Status:
  ACTIVE, BLOCKED or EXPIRED. Any status can be set to any other by an
  admin; owners can only move their own card to BLOCKED. The expiry date
  is informational and never flips a card to EXPIRED on its own.
"""

import enum
import uuid
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Integer, Date, DateTime, Enum, ForeignKey, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base
from app.money import from_cents


class CardStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    BLOCKED = "BLOCKED"
    EXPIRED = "EXPIRED"


class Card(Base):
    __tablename__ = "cards"

    # Database-level constraint: balance can never be negative
    __table_args__ = (
        CheckConstraint(
            "balance_cents >= 0",
            name="ck_cards_non_negative_balance",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Fernet token of the 16-digit card number (URL-safe base64 text)
    encrypted_number: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    # Set at creation, never reassigned
    owner_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    expiry_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )

    status: Mapped[CardStatus] = mapped_column(
        Enum(CardStatus),
        nullable=False,
        default=CardStatus.ACTIVE,
        index=True,
    )

    balance_cents: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    @property
    def balance(self) -> Decimal:
        return from_cents(self.balance_cents)

    @property
    def masked_card_number(self) -> str:
        # deferred: app.security builds the cipher from settings on import
        from app.security import card_cipher
        return card_cipher.mask(card_cipher.decrypt(self.encrypted_number))
