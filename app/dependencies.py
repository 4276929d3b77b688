"""
FastAPI dependencies for authentication and authorization.

Dependencies are reusable functions that FastAPI injects into route handlers.
They form a small chain:

  get_current_principal (JWT -> Principal | None)
      ├── require_principal   (any authenticated user)
      └── require_admin       (ADMIN role)

The principal is an explicit value handed to each route; nothing is kept
in global or thread-local state. A missing or invalid token does NOT fail
here: it yields None, and the guard predicates deny it with 403. Rules
that depend on the target resource (admin-or-self, admin-or-owner,
self-only) are evaluated inside the route with app.authorization.
"""

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app import authorization
from app.authorization import Principal
from app.database import get_db
from app.services import auth_service


# auto_error=False: an absent Authorization header gives token=None instead
# of an automatic 401, so the guard decides (and answers 403).
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)


async def get_current_principal(
    token: str | None = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Principal | None:
    """Resolve the bearer token to a Principal, or None when there isn't a valid one."""
    if not token:
        return None
    return await auth_service.resolve_principal(db, token)


async def require_principal(
    principal: Principal | None = Depends(get_current_principal),
) -> Principal:
    """Require any authenticated principal."""
    authorization.ensure(
        authorization.is_authenticated(principal),
        "Authentication required for this operation.",
    )
    return principal


async def require_admin(
    principal: Principal | None = Depends(get_current_principal),
) -> Principal:
    """
    Require the ADMIN role.

    Used on card creation, card listing, status changes, card deletion,
    user listing and user deletion.
    """
    authorization.ensure(authorization.is_admin(principal), "Admin access required.")
    return principal
