"""
User model — the authentication identity and card owner.

Each User is a login credential (username + hashed password) plus a set of
roles. Roles live in their own `user_roles` table, one row per (user, role),
so a user can hold several roles at once (the master admin holds both).

Roles:
  - ADMIN: Card issuance, status changes, deletion, user management
  - USER: Card holder — default role for registration

The password is stored as an Argon2id hash — never in plaintext.

Cards are NOT mapped as a relationship here. Ownership is always checked by
comparing `Card.owner_id` with a user id, and deleting a user deletes its
cards with explicit statements (see user_service.delete_user) instead of an
ORM cascade.
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base


class RoleName(str, enum.Enum):
    """
    Role names a user can hold.

    Inherits from str so the enum value serializes naturally to JSON
    and can be stored as a simple string in the database.
    """
    ADMIN = "ADMIN"
    USER = "USER"


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier — unique and indexed for fast lookups
    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
    )

    # Argon2id hash of the password (never store plaintext!)
    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )

    # selectin: roles are loaded with the user, so reading them never
    # triggers a lazy load inside async code
    roles: Mapped[list["UserRole"]] = relationship(
        lazy="selectin",
        cascade="all, delete-orphan",
    )

    @property
    def role_names(self) -> frozenset[str]:
        return frozenset(role.role.value for role in self.roles)


class UserRole(Base):
    __tablename__ = "user_roles"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    role: Mapped[RoleName] = mapped_column(
        Enum(RoleName),
        primary_key=True,
    )
