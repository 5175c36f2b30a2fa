"""Interval store — immutable snapshots of a hotel's contracts, seasons and rates.

Resolution never reads ORM objects directly: a snapshot is taken once per
request and handed to the resolver, so pricing stays pure and repeatable.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourquote.errors import HotelNotFound, SeasonNotFound
from tourquote.models.catalog import Hotel
from tourquote.models.contracting import HotelContract, HotelSeason, HotelSeasonRate
from tourquote.services.validity import ValidityWindow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateSnapshot:
    id: uuid.UUID
    season_id: uuid.UUID
    room_type_id: uuid.UUID
    window: ValidityWindow
    amount: Decimal
    half_board_amount: Decimal | None = None
    full_board_amount: Decimal | None = None
    single_supplement_amount: Decimal | None = None
    follows_season: bool = False
    created_at: datetime | None = None


@dataclass(frozen=True)
class SeasonSnapshot:
    id: uuid.UUID
    hotel_id: uuid.UUID
    window: ValidityWindow
    season_name_id: uuid.UUID | None = None
    created_at: datetime | None = None
    rates: tuple[RateSnapshot, ...] = ()


@dataclass(frozen=True)
class ContractSnapshot:
    id: uuid.UUID
    hotel_id: uuid.UUID
    window: ValidityWindow
    attachment_id: uuid.UUID | None = None


@dataclass(frozen=True)
class HotelSnapshot:
    hotel_id: uuid.UUID
    seasons: tuple[SeasonSnapshot, ...] = ()
    contracts: tuple[ContractSnapshot, ...] = ()


def rate_snapshot(rate: HotelSeasonRate, season_window: ValidityWindow) -> RateSnapshot:
    follows_season = rate.start_date is None or rate.end_date is None
    return RateSnapshot(
        id=rate.id,
        season_id=rate.season_id,
        room_type_id=rate.room_type_id,
        window=season_window if follows_season else ValidityWindow(rate.start_date, rate.end_date),
        amount=rate.amount,
        half_board_amount=rate.half_board_amount,
        full_board_amount=rate.full_board_amount,
        single_supplement_amount=rate.single_supplement_amount,
        follows_season=follows_season,
        created_at=rate.created_at,
    )


def season_snapshot(season: HotelSeason, with_rates: bool = True) -> SeasonSnapshot:
    window = ValidityWindow(season.start_date, season.end_date)
    rates = tuple(rate_snapshot(r, window) for r in season.rates) if with_rates else ()
    return SeasonSnapshot(
        id=season.id,
        hotel_id=season.hotel_id,
        window=window,
        season_name_id=season.season_name_id,
        created_at=season.created_at,
        rates=rates,
    )


def contract_snapshot(contract: HotelContract) -> ContractSnapshot:
    return ContractSnapshot(
        id=contract.id,
        hotel_id=contract.hotel_id,
        window=ValidityWindow(contract.start_date, contract.end_date),
        attachment_id=contract.attachment_id,
    )


class IntervalStore:
    """Tenant-scoped reads of validity windows."""

    async def get_hotel(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, for_update: bool = False
    ) -> Hotel:
        """Load the hotel; ``for_update`` serialises contract writes on it."""
        stmt = select(Hotel).where(Hotel.id == hotel_id, Hotel.company_id == company_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        hotel = result.scalar_one_or_none()
        if not hotel:
            raise HotelNotFound(hotel_id)
        return hotel

    async def load_contracts(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID
    ) -> list[ContractSnapshot]:
        result = await db.execute(
            select(HotelContract)
            .where(HotelContract.company_id == company_id, HotelContract.hotel_id == hotel_id)
            .order_by(HotelContract.start_date.desc())
        )
        return [contract_snapshot(c) for c in result.scalars().all()]

    async def load_season(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
    ) -> SeasonSnapshot:
        result = await db.execute(
            select(HotelSeason)
            .where(
                HotelSeason.id == season_id,
                HotelSeason.hotel_id == hotel_id,
                HotelSeason.company_id == company_id,
            )
            .options(selectinload(HotelSeason.rates))
        )
        season = result.scalar_one_or_none()
        if not season:
            raise SeasonNotFound(season_id)
        return season_snapshot(season)

    async def load_hotel(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID
    ) -> HotelSnapshot:
        """Snapshot every season (with rates) and contract of one hotel."""
        await self.get_hotel(db, company_id, hotel_id)

        result = await db.execute(
            select(HotelSeason)
            .where(HotelSeason.company_id == company_id, HotelSeason.hotel_id == hotel_id)
            .options(selectinload(HotelSeason.rates))
            .order_by(HotelSeason.start_date)
        )
        seasons = tuple(season_snapshot(s) for s in result.scalars().all())
        contracts = tuple(await self.load_contracts(db, company_id, hotel_id))

        logger.debug(f"Loaded snapshot for hotel {hotel_id}: {len(seasons)} seasons, {len(contracts)} contracts")
        return HotelSnapshot(hotel_id=hotel_id, seasons=seasons, contracts=contracts)


interval_store = IntervalStore()
