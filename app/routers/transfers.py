"""
Transfers router — moving money between two cards of the same user.

Endpoints:
  POST /api/v1/transfers/user/{user_id} — Transfer between the user's own cards

Only the user named in the path may transfer, and only between cards they
own. There is no admin override: an administrator cannot move money on
behalf of another user through this endpoint.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app import authorization
from app.authorization import Principal
from app.database import get_db
from app.dependencies import get_current_principal
from app.schemas.card import TransferRequest
from app.services import transfer_service

router = APIRouter()


@router.post(
    "/user/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Transfer money between your own cards",
)
async def transfer_between_own_cards(
    user_id: uuid.UUID,
    request: TransferRequest,
    principal: Principal | None = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """
    Move money from one of your cards to another.

    Atomic: either the debit and the credit both happen, or neither does.

    - **from_card_id** / **to_card_id**: both must be yours (404 otherwise)
    - **amount**: positive, at most two decimal places
    - Both cards must be ACTIVE, must differ, and the source must cover the amount (400)
    """
    authorization.ensure(authorization.is_self(principal, user_id))
    await transfer_service.transfer(
        db=db,
        acting_user_id=user_id,
        from_card_id=request.from_card_id,
        to_card_id=request.to_card_id,
        amount=request.amount,
    )
    return Response(status_code=status.HTTP_204_NO_CONTENT)
