"""
Users router — user lookup, listing, renaming, deletion and balances.

Endpoints:
  GET    /api/v1/users                       — List users            [admin]
  GET    /api/v1/users/username/{username}   — Get a user            [admin or self]
  GET    /api/v1/users/{user_id}/balance     — Total card balance    [admin or self]
  PATCH  /api/v1/users/{user_id}             — Change username       [admin]
  DELETE /api/v1/users/{user_id}             — Delete user and cards [admin]
"""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import authorization
from app.authorization import Principal
from app.database import get_db
from app.dependencies import get_current_principal, require_admin
from app.schemas.user import BalanceResponse, UserResponse, UserUpdateRequest
from app.services import user_service

router = APIRouter()


@router.get(
    "",
    response_model=list[UserResponse],
    summary="[Admin] List users",
)
async def list_users(
    page: int | None = Query(None, description="Page number (1-based)"),
    size: int | None = Query(None, description="Users per page (default 10, max 50)"),
    asc: bool = Query(True, description="Oldest first when true"),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List users ordered by registration time."""
    users = await user_service.list_users(db, page=page, size=size, ascending=asc)
    return [UserResponse.from_user(user) for user in users]


@router.get(
    "/username/{username}",
    response_model=UserResponse,
    summary="Get a user by username",
)
async def get_user_by_username(
    username: str,
    principal: Principal | None = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Admins can look up anyone; users can only look up themselves."""
    authorization.ensure(authorization.is_admin_or_self_by_username(principal, username))
    user = await user_service.get_user_by_username(db, username)
    return UserResponse.from_user(user)


@router.get(
    "/{user_id}/balance",
    response_model=BalanceResponse,
    summary="Get a user's total card balance",
)
async def get_balance(
    user_id: uuid.UUID,
    principal: Principal | None = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Sum of the balances of every card the user owns (0.00 without cards)."""
    authorization.ensure(authorization.is_admin_or_self(principal, user_id))
    total = await user_service.get_total_balance(db, user_id)
    return BalanceResponse(user_id=user_id, total_balance=total)


@router.patch(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Change a username",
)
async def update_user(
    user_id: uuid.UUID,
    updates: UserUpdateRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Rename a user. A taken username is a 409; omitting it changes nothing."""
    await user_service.update_username(db, user_id, updates.username)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a user and their cards",
)
async def delete_user(
    user_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a user together with every card they own."""
    await user_service.delete_user(db, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
