"""
Startup data: the master admin account and optional demo data.

Both run from the application lifespan, inside one session, after the
tables exist.

Master admin:
  When MASTER_ADMIN_PASSWORD is set, the user MASTER_ADMIN_USERNAME
  ("owner" by default) is created if missing, given both ADMIN and USER
  roles, and its password is reset to the configured value. Running it
  again is harmless.

Demo data (SEED_DEMO_DATA=true, NOT FOR PRODUCTION):
  Only seeds an empty database. Login credentials after seeding:
    ┌──────────┬──────────┬──────────────┐
    │ Username │ Password │ Roles        │
    ├──────────┼──────────┼──────────────┤
    │ user1    │ pass1    │ USER         │
    │ user2    │ pass2    │ USER         │
    │ user3    │ pass3    │ USER         │
    │ admin    │ password │ ADMIN, USER  │
    └──────────┴──────────┴──────────────┘
"""

import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.card import Card, CardStatus
from app.models.user import RoleName, User, UserRole
from app.money import to_cents
from app.security import card_cipher, hash_password

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("user1", "pass1", [RoleName.USER]),
    ("user2", "pass2", [RoleName.USER]),
    ("user3", "pass3", [RoleName.USER]),
    ("admin", "password", [RoleName.ADMIN, RoleName.USER]),
]

# (owner username, card number, expiry date, status)
DEMO_CARDS = [
    ("user1", "2380328656218459", date(2028, 6, 10), CardStatus.ACTIVE),
    ("user2", "7205674277714399", date(2028, 6, 10), CardStatus.ACTIVE),
    ("user3", "8706647592287922", date(2024, 6, 10), CardStatus.EXPIRED),
    ("user3", "0613192986491444", date(2028, 6, 10), CardStatus.BLOCKED),
    ("user3", "7163082819181661", date(2028, 6, 10), CardStatus.ACTIVE),
]
DEMO_BALANCE = Decimal("22.10")


async def ensure_master_admin(db: AsyncSession, username: str, password: str) -> User:
    """Create or refresh the master admin account."""
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(username=username, hashed_password=hash_password(password), roles=[])
        db.add(user)
        logger.info("Creating master admin %r", username)
    else:
        user.hashed_password = hash_password(password)

    held = {role.role for role in user.roles}
    for role in (RoleName.ADMIN, RoleName.USER):
        if role not in held:
            user.roles.append(UserRole(role=role))

    await db.flush()
    return user


async def seed_demo_data(db: AsyncSession) -> bool:
    """Seed demo users and cards into an empty database. Returns True if it seeded."""
    user_count = await db.execute(select(func.count()).select_from(User))
    if user_count.scalar() > 0:
        logger.info("Database already has users; skipping demo data")
        return False

    users = {}
    for username, password, roles in DEMO_USERS:
        user = User(
            username=username,
            hashed_password=hash_password(password),
            roles=[UserRole(role=role) for role in roles],
        )
        db.add(user)
        users[username] = user
    await db.flush()

    for owner, number, expiry, status in DEMO_CARDS:
        db.add(Card(
            encrypted_number=card_cipher.encrypt(number),
            owner_id=users[owner].id,
            expiry_date=expiry,
            status=status,
            balance_cents=to_cents(DEMO_BALANCE),
        ))
    await db.flush()

    logger.info("Seeded %d demo users and %d demo cards", len(DEMO_USERS), len(DEMO_CARDS))
    return True
