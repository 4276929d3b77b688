"""
Cards router — issuance, lookup, listing, status changes and deletion.

Endpoints:
  POST   /api/v1/cards                  — Issue a card            [admin]
  GET    /api/v1/cards                  — List/filter all cards   [admin]
  GET    /api/v1/cards/user/{user_id}   — List a user's cards     [admin or self]
  GET    /api/v1/cards/{card_id}        — Get one card            [admin]
  PATCH  /api/v1/cards/{card_id}/status — Set any status          [admin]
  PATCH  /api/v1/cards/{card_id}/block  — Block own card          [admin or owner]
  DELETE /api/v1/cards/{card_id}        — Delete a card           [admin]

Card numbers are masked in every response; only the last four digits
are shown.
"""

import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import authorization
from app.authorization import Principal
from app.database import get_db
from app.dependencies import get_current_principal, require_admin, require_principal
from app.exceptions import CardNotOwnedByUserError
from app.models.card import CardStatus
from app.schemas.card import CardCreateRequest, CardResponse, CardStatusUpdateRequest
from app.services import card_service

router = APIRouter()


@router.post(
    "",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Admin] Issue a card for a user",
)
async def create_card(
    request: CardCreateRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """
    Issue a new card for an existing user.

    - The card number is encrypted at rest and returned masked
    - The card starts ACTIVE with the given initial balance (0 allowed)
    """
    return await card_service.create_card(
        db=db,
        owner_id=request.owner_id,
        card_number=request.card_number,
        expiry_date=request.expiry_date,
        initial_balance=request.initial_balance,
    )


@router.get(
    "",
    response_model=list[CardResponse],
    summary="[Admin] List all cards",
)
async def list_cards(
    page: int | None = Query(None, description="Page number (1-based)"),
    size: int | None = Query(None, description="Cards per page (default 5, max 15)"),
    asc: bool = Query(False, description="Oldest first when true"),
    status_filter: CardStatus | None = Query(None, alias="status"),
    expiry_date: date | None = Query(None),
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """List every card, optionally filtered by status and/or expiry date."""
    return await card_service.list_cards(
        db=db,
        status_filter=status_filter,
        expiry_date=expiry_date,
        page=page,
        size=size,
        ascending=asc,
    )


@router.get(
    "/user/{user_id}",
    response_model=list[CardResponse],
    summary="List a user's cards",
)
async def list_cards_for_user(
    user_id: uuid.UUID,
    page: int | None = Query(None, description="Page number (1-based)"),
    size: int | None = Query(None, description="Cards per page (default 5, max 15)"),
    asc: bool = Query(False, description="Oldest first when true"),
    principal: Principal | None = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """List the cards of one user. Users may only list their own cards."""
    authorization.ensure(authorization.is_admin_or_self(principal, user_id))
    return await card_service.list_cards_for_owner(
        db=db,
        owner_id=user_id,
        page=page,
        size=size,
        ascending=asc,
    )


@router.get(
    "/{card_id}",
    response_model=CardResponse,
    summary="[Admin] Get a card",
)
async def get_card(
    card_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Get one card by id."""
    return await card_service.get_card(db, card_id)


@router.patch(
    "/{card_id}/status",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Change a card's status",
)
async def change_card_status(
    card_id: uuid.UUID,
    request: CardStatusUpdateRequest,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Set ACTIVE, BLOCKED or EXPIRED. Setting the current status again is a 409."""
    await card_service.set_status(db, card_id, request.new_status)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/{card_id}/block",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Block your own card",
)
async def block_own_card(
    card_id: uuid.UUID,
    principal: Principal = Depends(require_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Block a card you own.

    Returns 404 both for unknown cards and for cards owned by someone else,
    and 409 if the card is already blocked. Admins pass the guard, but the
    block itself still only applies to their own cards.
    """
    owner_id = await card_service.find_owner_id(db, card_id)
    if not authorization.is_admin_or_owner(principal, owner_id):
        raise CardNotOwnedByUserError(card_id, principal.user_id)
    await card_service.self_block(db, card_id, principal.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete(
    "/{card_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="[Admin] Delete a card",
)
async def delete_card(
    card_id: uuid.UUID,
    admin: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Permanently delete a card."""
    await card_service.delete_card(db, card_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
