"""Contracting service — CRUD for hotel contracts, seasons and season rates.

Every write passes through ``validity_validator`` first. Contract windows of a
hotel never overlap; seasons may; rates sit inside their season and are frozen
once the season has ended.
"""

import logging
import uuid
from datetime import date

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from tourquote.errors import ContractNotFound, InvalidPayload, RateNotFound, RateOutsideSeason, SeasonNotFound
from tourquote.models.catalog import ListItem
from tourquote.models.contracting import HotelContract, HotelSeason, HotelSeasonRate
from tourquote.services.interval_store import interval_store, season_snapshot
from tourquote.services.rate_resolver import nightly_rate_resolver
from tourquote.services.validity import ValidityWindow, validity_validator

logger = logging.getLogger(__name__)


def _rate_window(start: date | None, end: date | None) -> ValidityWindow | None:
    if start is None and end is None:
        return None
    if start is None or end is None:
        raise InvalidPayload(
            "Rate start_date and end_date must be given together",
            {"start_date": str(start), "end_date": str(end)},
        )
    return ValidityWindow(start, end)


class ContractingService:
    # --- Contracts ---

    async def list_contracts(self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID) -> list[HotelContract]:
        await interval_store.get_hotel(db, company_id, hotel_id)
        result = await db.execute(
            select(HotelContract)
            .where(HotelContract.company_id == company_id, HotelContract.hotel_id == hotel_id)
            .order_by(HotelContract.start_date.desc())
        )
        return list(result.scalars().all())

    async def get_contract(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, contract_id: uuid.UUID
    ) -> HotelContract:
        result = await db.execute(
            select(HotelContract).where(
                HotelContract.id == contract_id,
                HotelContract.hotel_id == hotel_id,
                HotelContract.company_id == company_id,
            )
        )
        contract = result.scalar_one_or_none()
        if not contract:
            raise ContractNotFound(contract_id)
        return contract

    async def create_contract(
        self, db: AsyncSession, company_id: uuid.UUID, user_id: uuid.UUID, hotel_id: uuid.UUID, data
    ) -> HotelContract:
        await interval_store.get_hotel(db, company_id, hotel_id, for_update=True)
        window = ValidityWindow(data.start_date, data.end_date)
        existing = await interval_store.load_contracts(db, company_id, hotel_id)
        validity_validator.validate_contract_non_overlap(hotel_id, window, existing)

        contract = HotelContract(
            company_id=company_id,
            hotel_id=hotel_id,
            start_date=data.start_date,
            end_date=data.end_date,
            attachment_id=data.attachment_id,
            created_by=user_id,
            updated_by=user_id,
        )
        db.add(contract)
        await db.commit()
        await db.refresh(contract)

        logger.info(f"Contract {contract.id} created for hotel {hotel_id}: {window.start}..{window.end}")
        return contract

    async def update_contract(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        hotel_id: uuid.UUID,
        contract_id: uuid.UUID,
        data,
    ) -> HotelContract:
        await interval_store.get_hotel(db, company_id, hotel_id, for_update=True)
        contract = await self.get_contract(db, company_id, hotel_id, contract_id)

        window = ValidityWindow(data.start_date, data.end_date)
        existing = await interval_store.load_contracts(db, company_id, hotel_id)
        validity_validator.validate_contract_non_overlap(hotel_id, window, existing, exclude_id=contract_id)

        contract.start_date = data.start_date
        contract.end_date = data.end_date
        contract.attachment_id = data.attachment_id
        contract.updated_by = user_id
        await db.commit()
        await db.refresh(contract)
        return contract

    async def delete_contract(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, contract_id: uuid.UUID
    ) -> None:
        contract = await self.get_contract(db, company_id, hotel_id, contract_id)
        await db.delete(contract)
        await db.commit()
        logger.info(f"Contract {contract_id} deleted for hotel {hotel_id}")

    # --- Seasons ---

    async def list_seasons(self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID) -> list[HotelSeason]:
        await interval_store.get_hotel(db, company_id, hotel_id)
        result = await db.execute(
            select(HotelSeason)
            .where(HotelSeason.company_id == company_id, HotelSeason.hotel_id == hotel_id)
            .order_by(HotelSeason.start_date)
        )
        return list(result.scalars().all())

    async def get_season(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, season_id: uuid.UUID
    ) -> HotelSeason:
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
        return season

    async def create_season(
        self, db: AsyncSession, company_id: uuid.UUID, user_id: uuid.UUID, hotel_id: uuid.UUID, data
    ) -> HotelSeason:
        await interval_store.get_hotel(db, company_id, hotel_id)
        validity_validator.validate_window(ValidityWindow(data.start_date, data.end_date))

        season = HotelSeason(
            company_id=company_id,
            hotel_id=hotel_id,
            season_name_id=data.season_name_id,
            start_date=data.start_date,
            end_date=data.end_date,
            created_by=user_id,
            updated_by=user_id,
        )
        db.add(season)
        await db.commit()
        await db.refresh(season)

        logger.info(f"Season {season.id} created for hotel {hotel_id}: {season.start_date}..{season.end_date}")
        return season

    async def update_season(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
        data,
    ) -> HotelSeason:
        season = await self.get_season(db, company_id, hotel_id, season_id)
        window = validity_validator.validate_window(ValidityWindow(data.start_date, data.end_date))

        # Explicitly dated rates must still fit after the season is resized
        for rate in season.rates:
            if rate.start_date and rate.end_date and not window.covers(ValidityWindow(rate.start_date, rate.end_date)):
                raise RateOutsideSeason(season.id, window.start, window.end)

        season.season_name_id = data.season_name_id
        season.start_date = data.start_date
        season.end_date = data.end_date
        season.updated_by = user_id
        await db.commit()
        await db.refresh(season)
        return season

    async def delete_season(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, season_id: uuid.UUID
    ) -> None:
        season = await self.get_season(db, company_id, hotel_id, season_id)
        rate_count = len(season.rates)
        await db.delete(season)
        await db.commit()
        logger.info(f"Season {season_id} deleted for hotel {hotel_id} with {rate_count} rates")

    # --- Rates ---

    async def list_rates(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, season_id: uuid.UUID
    ) -> list[HotelSeasonRate]:
        season = await self.get_season(db, company_id, hotel_id, season_id)
        return list(season.rates)

    async def _writable_season(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
        as_of: date | None,
    ) -> HotelSeason:
        season = await self.get_season(db, company_id, hotel_id, season_id)
        validity_validator.validate_season_not_expired(
            season_snapshot(season, with_rates=False), as_of or date.today()
        )
        return season

    async def create_rate(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
        data,
        as_of: date | None = None,
    ) -> HotelSeasonRate:
        season = await self._writable_season(db, company_id, hotel_id, season_id, as_of)
        validity_validator.validate_rate_within_season(
            season_snapshot(season, with_rates=False), _rate_window(data.start_date, data.end_date)
        )

        rate = HotelSeasonRate(
            company_id=company_id,
            season_id=season.id,
            room_type_id=data.room_type_id,
            start_date=data.start_date,
            end_date=data.end_date,
            amount=data.amount,
            half_board_amount=data.half_board_amount,
            full_board_amount=data.full_board_amount,
            single_supplement_amount=data.single_supplement_amount,
            created_by=user_id,
            updated_by=user_id,
        )
        db.add(rate)
        await db.commit()
        await db.refresh(rate)

        logger.info(f"Rate {rate.id} created in season {season_id} for room type {data.room_type_id}")
        return rate

    def _get_rate(self, season: HotelSeason, rate_id: uuid.UUID) -> HotelSeasonRate:
        for rate in season.rates:
            if rate.id == rate_id:
                return rate
        raise RateNotFound(rate_id)

    async def update_rate(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
        rate_id: uuid.UUID,
        data,
        as_of: date | None = None,
    ) -> HotelSeasonRate:
        season = await self._writable_season(db, company_id, hotel_id, season_id, as_of)
        rate = self._get_rate(season, rate_id)
        validity_validator.validate_rate_within_season(
            season_snapshot(season, with_rates=False), _rate_window(data.start_date, data.end_date)
        )

        rate.room_type_id = data.room_type_id
        rate.start_date = data.start_date
        rate.end_date = data.end_date
        rate.amount = data.amount
        rate.half_board_amount = data.half_board_amount
        rate.full_board_amount = data.full_board_amount
        rate.single_supplement_amount = data.single_supplement_amount
        rate.updated_by = user_id
        await db.commit()
        await db.refresh(rate)
        return rate

    async def delete_rate(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        hotel_id: uuid.UUID,
        season_id: uuid.UUID,
        rate_id: uuid.UUID,
        as_of: date | None = None,
    ) -> None:
        season = await self._writable_season(db, company_id, hotel_id, season_id, as_of)
        rate = self._get_rate(season, rate_id)
        await db.delete(rate)
        await db.commit()
        logger.info(f"Rate {rate_id} deleted from season {season_id}")

    # --- Read models ---

    async def seasons_with_rates(
        self, db: AsyncSession, company_id: uuid.UUID, hotel_id: uuid.UUID, as_of: date | None = None
    ) -> dict:
        """Seasons that have not ended yet, each with its rates, plus today's contract."""
        today = as_of or date.today()
        hotel = await interval_store.get_hotel(db, company_id, hotel_id)

        result = await db.execute(
            select(HotelSeason)
            .where(
                HotelSeason.company_id == company_id,
                HotelSeason.hotel_id == hotel_id,
                HotelSeason.end_date >= today,
            )
            .options(selectinload(HotelSeason.rates))
            .order_by(HotelSeason.start_date)
        )
        seasons = result.scalars().all()

        list_ids = {s.season_name_id for s in seasons} | {r.room_type_id for s in seasons for r in s.rates}
        list_ids.discard(None)
        names = {}
        if list_ids:
            result = await db.execute(
                select(ListItem.id, ListItem.name).where(ListItem.id.in_(list_ids), ListItem.company_id == company_id)
            )
            names = {row[0]: row[1] for row in result.all()}

        contracts = await interval_store.load_contracts(db, company_id, hotel_id)
        active = next((c for c in contracts if c.window.contains(today)), None)

        return {
            "hotel_id": str(hotel.id),
            "hotel_name": hotel.name,
            "active_contract": {
                "id": str(active.id),
                "start_date": active.window.start.isoformat(),
                "end_date": active.window.end.isoformat(),
                "attachment_id": str(active.attachment_id) if active.attachment_id else None,
            } if active else None,
            "seasons": [
                {
                    "id": str(s.id),
                    "season_name_id": str(s.season_name_id) if s.season_name_id else None,
                    "season_name": names.get(s.season_name_id),
                    "start_date": s.start_date.isoformat(),
                    "end_date": s.end_date.isoformat(),
                    "rates": [
                        {
                            "id": str(r.id),
                            "room_type_id": str(r.room_type_id),
                            "room_type_name": names.get(r.room_type_id),
                            "start_date": (r.start_date or s.start_date).isoformat(),
                            "end_date": (r.end_date or s.end_date).isoformat(),
                            "amount": float(r.amount),
                            "half_board_amount": float(r.half_board_amount) if r.half_board_amount is not None else None,
                            "full_board_amount": float(r.full_board_amount) if r.full_board_amount is not None else None,
                            "single_supplement_amount": (
                                float(r.single_supplement_amount) if r.single_supplement_amount is not None else None
                            ),
                        }
                        for r in s.rates
                    ],
                }
                for s in seasons
            ],
        }

    async def price_stay(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        hotel_id: uuid.UUID,
        arrival: date,
        departure: date,
        room_type_id: uuid.UUID,
    ) -> dict:
        nightly_rate_resolver.resolve_nights(arrival, departure)
        snapshot = await interval_store.load_hotel(db, company_id, hotel_id)
        result = nightly_rate_resolver.price_stay(snapshot, arrival, departure, room_type_id)
        return {
            "hotel_id": str(hotel_id),
            "room_type_id": str(room_type_id),
            "arrival_date": arrival.isoformat(),
            "departure_date": departure.isoformat(),
            **result.to_dict(),
        }


contracting_service = ContractingService()
