"""Personalized feed endpoint."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from eventrank.api.deps import CurrentUser, get_current_user, get_db
from eventrank.schema.feed import PersonalizedFeedRead
from eventrank.services import feed_service

router = APIRouter()


@router.get("/me/for-you", response_model=PersonalizedFeedRead)
async def read_personalized_feed(
    current_user: CurrentUser = Depends(get_current_user),
    session: AsyncSession = Depends(get_db),
) -> PersonalizedFeedRead:
    """Return upcoming events ranked for the current user."""
    return await feed_service.build_personalized_feed(session, current_user.id)
