"""Search season rates overlapping a stay and group them Hotel -> Season -> Room."""

import logging
import uuid
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from tourquote.errors import InvalidStay
from tourquote.models.catalog import Hotel, ListItem
from tourquote.models.contracting import HotelSeason, HotelSeasonRate

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 50
MAX_LIMIT = 500


@dataclass
class SeasonRateFilters:
    arrival_date: date
    departure_date: date
    hotel_id: uuid.UUID | None = None
    season_id: uuid.UUID | None = None
    season_name_id: uuid.UUID | None = None
    rate_for_id: uuid.UUID | None = None
    rate_id: uuid.UUID | None = None
    hotel_area: uuid.UUID | None = None
    hotel_stars: int | None = None
    hotel_chain: uuid.UUID | None = None
    limit: int = DEFAULT_LIMIT
    offset: int = 0


def _money(value) -> float | None:
    return float(value) if value is not None else None


class SeasonRateSearch:
    async def search(self, db: AsyncSession, company_id: uuid.UUID, filters: SeasonRateFilters) -> dict:
        """Rates of every season overlapping the stay ``[arrival, departure)``.

        Hotels come by area, then name, then highest stars first.

        Pagination applies to the flat rate rows, so one hotel's seasons can be
        split across pages.
        """
        if filters.departure_date <= filters.arrival_date:
            raise InvalidStay(filters.arrival_date, filters.departure_date)

        season_name = aliased(ListItem)
        room_type = aliased(ListItem)
        area = aliased(ListItem)
        chain = aliased(ListItem)

        stmt = (
            select(
                Hotel.id,
                Hotel.name,
                Hotel.stars,
                area.name,
                chain.name,
                HotelSeason.id,
                season_name.name,
                HotelSeason.start_date,
                HotelSeason.end_date,
                HotelSeasonRate,
                room_type.name,
            )
            .select_from(HotelSeasonRate)
            .join(HotelSeason, HotelSeason.id == HotelSeasonRate.season_id)
            .join(Hotel, Hotel.id == HotelSeason.hotel_id)
            .outerjoin(season_name, season_name.id == HotelSeason.season_name_id)
            .outerjoin(room_type, room_type.id == HotelSeasonRate.room_type_id)
            .outerjoin(area, area.id == Hotel.area_id)
            .outerjoin(chain, chain.id == Hotel.chain_id)
            .where(
                HotelSeasonRate.company_id == company_id,
                HotelSeason.company_id == company_id,
                HotelSeason.start_date < filters.departure_date,
                HotelSeason.end_date >= filters.arrival_date,
            )
        )

        if filters.hotel_id:
            stmt = stmt.where(Hotel.id == filters.hotel_id)
        if filters.season_id:
            stmt = stmt.where(HotelSeason.id == filters.season_id)
        if filters.season_name_id:
            stmt = stmt.where(HotelSeason.season_name_id == filters.season_name_id)
        if filters.rate_for_id:
            stmt = stmt.where(HotelSeasonRate.room_type_id == filters.rate_for_id)
        if filters.rate_id:
            stmt = stmt.where(HotelSeasonRate.id == filters.rate_id)
        if filters.hotel_area:
            stmt = stmt.where(Hotel.area_id == filters.hotel_area)
        if filters.hotel_stars is not None:
            stmt = stmt.where(Hotel.stars == filters.hotel_stars)
        if filters.hotel_chain:
            stmt = stmt.where(Hotel.chain_id == filters.hotel_chain)

        limit = max(1, min(filters.limit, MAX_LIMIT))
        offset = max(0, filters.offset)
        stmt = (
            stmt.order_by(
                area.name.asc().nulls_last(),
                Hotel.name,
                Hotel.stars.desc(),
                Hotel.id,
                HotelSeason.start_date,
                HotelSeason.id,
                room_type.name,
                HotelSeasonRate.id,
            )
            .limit(limit)
            .offset(offset)
        )
        rows = (await db.execute(stmt)).all()

        hotels: dict[uuid.UUID, dict] = {}
        seasons: dict[uuid.UUID, dict] = {}
        for (
            hotel_id, hotel_name, stars, area_name, chain_name,
            season_id, season_label, season_start, season_end,
            rate, room_type_name,
        ) in rows:
            hotel = hotels.get(hotel_id)
            if hotel is None:
                hotel = hotels[hotel_id] = {
                    "hotel_id": str(hotel_id),
                    "hotel_name": hotel_name,
                    "hotel_stars": stars,
                    "hotel_area": area_name,
                    "hotel_chain": chain_name,
                    "seasons": [],
                }

            season = seasons.get(season_id)
            if season is None:
                season = seasons[season_id] = {
                    "season_id": str(season_id),
                    "season_name": season_label,
                    "start_date": season_start.isoformat(),
                    "end_date": season_end.isoformat(),
                    "rooms": [],
                }
                hotel["seasons"].append(season)

            season["rooms"].append({
                "rate_id": str(rate.id),
                "room_type_id": str(rate.room_type_id),
                "room_type_name": room_type_name,
                "start_date": (rate.start_date or season_start).isoformat(),
                "end_date": (rate.end_date or season_end).isoformat(),
                "amount": _money(rate.amount),
                "half_board_amount": _money(rate.half_board_amount),
                "full_board_amount": _money(rate.full_board_amount),
                "single_supplement_amount": _money(rate.single_supplement_amount),
            })

        logger.debug(f"Season rate search returned {len(rows)} rows across {len(hotels)} hotels")
        return {
            "data": list(hotels.values()),
            "row_count": len(rows),
            "limit": limit,
            "offset": offset,
        }


season_rate_search = SeasonRateSearch()
