from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from gse_monitor.api.deps import get_current_user_id
from gse_monitor.api.schemas.common import ProfileResponse, ProfileUpdateRequest
from gse_monitor.database.config import get_db
from gse_monitor.services.profile_service import ProfileService

router = APIRouter(prefix="/profile", tags=["profile"])

profile_service = ProfileService()


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await profile_service.get_or_create(user_id, db)


@router.put("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdateRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    changes = body.model_dump(exclude_unset=True)
    return await profile_service.update(user_id, db, **changes)
