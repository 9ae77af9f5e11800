"""
The signed-in user's registrations.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_identity
from app.core.security import Identity
from app.db.session import get_db
from app.schemas.rsvp import RegistrationListResponse, RegistrationResponse
from app.services.rsvp_service import list_registrations

router = APIRouter(prefix="/user", tags=["Registrations"])


@router.get("/registrations", response_model=RegistrationListResponse)
async def list_user_registrations(
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """Events the user has registered for, newest registration first."""
    rsvps = await list_registrations(db, identity)
    return RegistrationListResponse(
        registrations=[RegistrationResponse.model_validate(r) for r in rsvps]
    )
