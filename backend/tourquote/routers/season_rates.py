import uuid
from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.database import get_db
from tourquote.dependencies import get_current_user
from tourquote.models.user import User
from tourquote.services.season_rate_search import DEFAULT_LIMIT, MAX_LIMIT, SeasonRateFilters, season_rate_search

router = APIRouter()


@router.get("")
async def search_season_rates(
    arrival_date: date,
    departure_date: date,
    hotel_id: uuid.UUID | None = None,
    season_id: uuid.UUID | None = None,
    season_name_id: uuid.UUID | None = None,
    rate_for_id: uuid.UUID | None = None,
    rate_id: uuid.UUID | None = None,
    hotel_area: uuid.UUID | None = None,
    hotel_stars: int | None = None,
    hotel_chain: uuid.UUID | None = None,
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Season rates valid during the stay, grouped Hotel -> Season -> Room."""
    filters = SeasonRateFilters(
        arrival_date=arrival_date,
        departure_date=departure_date,
        hotel_id=hotel_id,
        season_id=season_id,
        season_name_id=season_name_id,
        rate_for_id=rate_for_id,
        rate_id=rate_id,
        hotel_area=hotel_area,
        hotel_stars=hotel_stars,
        hotel_chain=hotel_chain,
        limit=limit,
        offset=offset,
    )
    return await season_rate_search.search(db, user.company_id, filters)
