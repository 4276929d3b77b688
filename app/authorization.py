"""
Authorization guard — who may act on which card or user.

Every rule is a plain predicate over the current principal and the target
resource id. Routers (and the dependencies in app.dependencies) evaluate
them before calling a service, so services never look at roles and every
rule can be tested without a database or an HTTP request.

Rules:
  - is_admin:           principal holds ADMIN
  - is_admin_or_self:   ADMIN, or the target user is the principal
  - is_admin_or_owner:  ADMIN, or the principal owns the target card
  - is_self:            the target user is the principal (no admin override)

A missing principal (no token, bad token, deleted user) is None, and every
predicate returns False for None. It is never treated as "no match".
"""

import uuid
from dataclasses import dataclass, field

from app.exceptions import AccessDeniedError
from app.models.user import RoleName


@dataclass(frozen=True)
class Principal:
    """The authenticated actor of a request."""
    user_id: uuid.UUID
    username: str
    roles: frozenset[str] = field(default_factory=frozenset)

    def has_role(self, role: RoleName | str) -> bool:
        name = role.value if isinstance(role, RoleName) else role
        return name in self.roles


def is_authenticated(principal: Principal | None) -> bool:
    return principal is not None


def is_admin(principal: Principal | None) -> bool:
    return principal is not None and principal.has_role(RoleName.ADMIN)


def is_self(principal: Principal | None, user_id: uuid.UUID) -> bool:
    return principal is not None and principal.user_id == user_id


def is_admin_or_self(principal: Principal | None, user_id: uuid.UUID) -> bool:
    return is_admin(principal) or is_self(principal, user_id)


def is_admin_or_self_by_username(principal: Principal | None, username: str) -> bool:
    return is_admin(principal) or (
        principal is not None and principal.username == username
    )


def is_admin_or_owner(principal: Principal | None, owner_id: uuid.UUID | None) -> bool:
    """owner_id is None when the card does not exist; only admins pass then."""
    if is_admin(principal):
        return True
    return principal is not None and owner_id is not None and principal.user_id == owner_id


def ensure(allowed: bool, detail: str = "Access denied.") -> None:
    """Raise AccessDeniedError unless the predicate allowed the request."""
    if not allowed:
        raise AccessDeniedError(detail)
