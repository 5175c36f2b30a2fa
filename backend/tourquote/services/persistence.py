"""Persistence coordinator — the two write strategies of a quotation.

Step 1 (route entries) is replaced wholesale on every save. Step 2
(accommodation options) is upserted by natural key, and rows the client
dropped are removed only through its explicit ``deleted`` rate and hotel ids.
Both run in a single transaction: a failure leaves the previous state intact.
"""

import logging
import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.errors import PersistenceError
from tourquote.models.quotation import (
    AccommodationOption,
    AccommodationRoom,
    QuotationExtraService,
    QuotationMeal,
    QuotationPlace,
    QuotationRoute,
)

logger = logging.getLogger(__name__)


# --- Accommodation batch commands ---


@dataclass(frozen=True)
class UpsertOption:
    option_id: str
    option_name: str
    sort_order: int | None = None


@dataclass(frozen=True)
class DeleteByRate:
    option_id: str
    rate_ids: tuple[uuid.UUID, ...]


@dataclass(frozen=True)
class DeleteByHotel:
    option_id: str
    hotel_ids: tuple[uuid.UUID, ...]


@dataclass(frozen=True)
class UpsertRoom:
    option_id: str
    hotel_id: uuid.UUID
    season_id: uuid.UUID
    rate_id: uuid.UUID
    room_type_id: uuid.UUID | None = None
    nights: int | None = None
    guests: int | None = None
    rate_amount: Decimal | None = None
    half_board_amount: Decimal | None = None
    full_board_amount: Decimal | None = None
    single_supplement_amount: Decimal | None = None


AccommodationCommand = UpsertOption | DeleteByRate | DeleteByHotel | UpsertRoom

_ROOM_FIELDS = (
    "hotel_id",
    "room_type_id",
    "nights",
    "guests",
    "rate_amount",
    "half_board_amount",
    "full_board_amount",
    "single_supplement_amount",
)


class PersistenceCoordinator:
    """Applies step-1 and accommodation writes atomically."""

    # --- Step 1: replace-all ---

    async def replace_step1(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        routes: Sequence[Any],
    ) -> int:
        """Delete every route entry of the quotation and insert ``routes`` in its place.

        ``routes`` items carry ``route_date`` (already a ``date`` or ``None``),
        ``route_id``, ``transportation_type_id``, ``transportation_amount`` and the
        ``places`` / ``meals`` / ``extra_services`` child lists.
        """
        try:
            await self._delete_step1(db, company_id, quotation_id)
            for position, route in enumerate(routes):
                db.add(self._build_route(company_id, user_id, quotation_id, position, route))
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Step 1 save failed for quotation {quotation_id}: {e}", exc_info=True)
            raise PersistenceError("save quotation step 1") from e

        logger.info(f"Quotation {quotation_id}: step 1 replaced with {len(routes)} route entries")
        return len(routes)

    async def _delete_step1(self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID) -> None:
        # Children first so the route rows have nothing left pointing at them.
        # Quotation-level extras (no route entry) are not part of step 1 and stay.
        for model in (QuotationPlace, QuotationMeal, QuotationExtraService, QuotationRoute):
            stmt = delete(model).where(model.quotation_id == quotation_id, model.company_id == company_id)
            if model is QuotationExtraService:
                stmt = stmt.where(QuotationExtraService.quotation_route_id.is_not(None))
            await db.execute(stmt)

    def _build_route(
        self,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        position: int,
        route: Any,
    ) -> QuotationRoute:
        scope = {"company_id": company_id, "quotation_id": quotation_id}
        entry = QuotationRoute(
            **scope,
            position=position,
            route_date=route.route_date,
            route_id=route.route_id,
            transportation_type_id=route.transportation_type_id,
            transportation_amount=route.transportation_amount,
            created_by=user_id,
            updated_by=user_id,
        )
        entry.places = [
            QuotationPlace(
                **scope,
                position=i,
                place_id=p.place_id,
                entrance_fee_pp=p.entrance_fee_pp or Decimal("0"),
                guide_type_id=p.guide_type_id,
                guide_cost=p.guide_cost or Decimal("0"),
            )
            for i, p in enumerate(route.places)
        ]
        entry.meals = [
            QuotationMeal(
                **scope,
                position=i,
                meal_id=m.meal_id,
                restaurant_id=m.restaurant_id,
                amount_pp=m.amount_pp,
            )
            for i, m in enumerate(route.meals)
        ]
        entry.extra_services = [
            QuotationExtraService(
                **scope,
                position=i,
                extra_service_id=s.extra_service_id,
                cost_pp=s.cost_pp,
                created_by=user_id,
                updated_by=user_id,
            )
            for i, s in enumerate(route.extra_services)
        ]
        return entry

    # --- Step 2: upsert with explicit deletes ---

    def plan_accommodation(self, options: Sequence[Any]) -> list[AccommodationCommand]:
        """Turn validated options into an ordered command list.

        Per option: header upsert, rate deletes, hotel deletes, then room upserts.
        Room lines without hotel, season and rate ids are dropped here.
        """
        commands: list[AccommodationCommand] = []
        for option in options:
            option_id = str(option.option_id)
            commands.append(UpsertOption(option_id, option.option_name, option.sort_order))
            if option.deleted.rate_ids:
                commands.append(DeleteByRate(option_id, tuple(option.deleted.rate_ids)))
            if option.deleted.hotel_ids:
                commands.append(DeleteByHotel(option_id, tuple(option.deleted.hotel_ids)))

            for room in option.rooms:
                if not (room.hotel_id and room.season_id and room.rate_id):
                    logger.info(f"Option {option_id}: skipping room line without hotel/season/rate id")
                    continue
                commands.append(
                    UpsertRoom(
                        option_id=option_id,
                        hotel_id=room.hotel_id,
                        season_id=room.season_id,
                        rate_id=room.rate_id,
                        room_type_id=room.room_type_id,
                        nights=room.nights,
                        guests=room.guests,
                        rate_amount=room.rate_amount,
                        half_board_amount=room.half_board_amount,
                        full_board_amount=room.full_board_amount,
                        single_supplement_amount=room.single_supplement_amount,
                    )
                )
        return commands

    async def apply_accommodation(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        commands: Sequence[AccommodationCommand],
    ) -> None:
        try:
            for command in commands:
                await self._apply(db, company_id, user_id, quotation_id, command)
            await db.flush()
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error(f"Accommodation save failed for quotation {quotation_id}: {e}", exc_info=True)
            raise PersistenceError("save accommodation options") from e

        logger.info(f"Quotation {quotation_id}: applied {len(commands)} accommodation commands")

    async def _apply(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        command: AccommodationCommand,
    ) -> None:
        scope = (
            AccommodationRoom.company_id == company_id,
            AccommodationRoom.quotation_id == quotation_id,
        )
        match command:
            case UpsertOption():
                await self._upsert_option(db, company_id, user_id, quotation_id, command)
            case DeleteByRate(option_id=option_id, rate_ids=rate_ids):
                await db.execute(
                    delete(AccommodationRoom).where(
                        *scope,
                        AccommodationRoom.option_id == option_id,
                        AccommodationRoom.rate_id.in_(rate_ids),
                    )
                )
            case DeleteByHotel(option_id=option_id, hotel_ids=hotel_ids):
                await db.execute(
                    delete(AccommodationRoom).where(
                        *scope,
                        AccommodationRoom.option_id == option_id,
                        AccommodationRoom.hotel_id.in_(hotel_ids),
                    )
                )
            case UpsertRoom():
                await self._upsert_room(db, company_id, user_id, quotation_id, command)

    async def _upsert_option(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        command: UpsertOption,
    ) -> None:
        result = await db.execute(
            select(AccommodationOption).where(
                AccommodationOption.company_id == company_id,
                AccommodationOption.quotation_id == quotation_id,
                AccommodationOption.option_id == command.option_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            existing.option_name = command.option_name
            existing.sort_order = command.sort_order
            existing.updated_by = user_id
        else:
            db.add(
                AccommodationOption(
                    company_id=company_id,
                    quotation_id=quotation_id,
                    option_id=command.option_id,
                    option_name=command.option_name,
                    sort_order=command.sort_order,
                    created_by=user_id,
                    updated_by=user_id,
                )
            )

    async def _upsert_room(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        command: UpsertRoom,
    ) -> None:
        result = await db.execute(
            select(AccommodationRoom).where(
                AccommodationRoom.company_id == company_id,
                AccommodationRoom.quotation_id == quotation_id,
                AccommodationRoom.option_id == command.option_id,
                AccommodationRoom.season_id == command.season_id,
                AccommodationRoom.rate_id == command.rate_id,
            )
        )
        existing = result.scalar_one_or_none()
        if existing:
            for name in _ROOM_FIELDS:
                setattr(existing, name, getattr(command, name))
            existing.updated_by = user_id
            return

        db.add(
            AccommodationRoom(
                company_id=company_id,
                quotation_id=quotation_id,
                option_id=command.option_id,
                season_id=command.season_id,
                rate_id=command.rate_id,
                created_by=user_id,
                updated_by=user_id,
                **{name: getattr(command, name) for name in _ROOM_FIELDS},
            )
        )


persistence_coordinator = PersistenceCoordinator()
