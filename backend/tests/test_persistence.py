import uuid
from decimal import Decimal

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from tourquote.errors import PersistenceError
from tourquote.models import AccommodationOption, AccommodationRoom, QuotationPlace, QuotationRoute
from tourquote.schemas.quotation import AccommodationOptionIn, DeletedRefs, RoomLineIn, RouteEntryIn
from tourquote.services.persistence import (
    DeleteByHotel,
    DeleteByRate,
    UpsertOption,
    UpsertRoom,
    persistence_coordinator,
)


class TestPlanAccommodation:
    def test_deletes_are_planned_before_room_upserts(self):
        hotel, season, rate = uuid.uuid4(), uuid.uuid4(), uuid.uuid4()
        stale_rate, stale_hotel = uuid.uuid4(), uuid.uuid4()
        option = AccommodationOptionIn(
            option_id="opt-1",
            option_name="Classic",
            sort_order=1,
            deleted=DeletedRefs(rate_ids=[stale_rate], hotel_ids=[stale_hotel]),
            rooms=[RoomLineIn(hotel_id=hotel, season_id=season, rate_id=rate, nights=2, guests=2)],
        )

        commands = persistence_coordinator.plan_accommodation([option])

        assert [type(c) for c in commands] == [UpsertOption, DeleteByRate, DeleteByHotel, UpsertRoom]
        assert commands[1] == DeleteByRate("opt-1", (stale_rate,))
        assert commands[2] == DeleteByHotel("opt-1", (stale_hotel,))
        assert commands[3].rate_id == rate

    def test_room_lines_without_keys_are_skipped(self):
        option = AccommodationOptionIn(
            option_id="opt-1",
            option_name="Classic",
            rooms=[
                RoomLineIn(hotel_id=uuid.uuid4(), season_id=uuid.uuid4()),
                RoomLineIn(season_id=uuid.uuid4(), rate_id=uuid.uuid4()),
            ],
        )

        commands = persistence_coordinator.plan_accommodation([option])

        assert commands == [UpsertOption("opt-1", "Classic", None)]


class TestReplaceStep1:
    def route(self, seed, fee="20"):
        return RouteEntryIn(
            route_id=seed.route_id,
            transportation_amount=Decimal("300"),
            places=[{"place_id": seed.place_ids[0], "entrance_fee_pp": fee}],
        )

    async def count(self, db, model, quotation_id):
        result = await db.execute(select(func.count()).select_from(model).where(model.quotation_id == quotation_id))
        return result.scalar()

    async def test_replace_drops_previous_rows(self, db, seed):
        await persistence_coordinator.replace_step1(
            db, seed.company_id, seed.user.id, seed.quotation_id, [self.route(seed), self.route(seed)]
        )
        assert await self.count(db, QuotationRoute, seed.quotation_id) == 2

        await persistence_coordinator.replace_step1(db, seed.company_id, seed.user.id, seed.quotation_id, [])

        assert await self.count(db, QuotationRoute, seed.quotation_id) == 0
        assert await self.count(db, QuotationPlace, seed.quotation_id) == 0

    async def test_failed_insert_keeps_previous_state(self, db, seed, monkeypatch):
        await persistence_coordinator.replace_step1(
            db, seed.company_id, seed.user.id, seed.quotation_id, [self.route(seed)]
        )

        def broken_build(*args, **kwargs):
            raise SQLAlchemyError("insert failed")

        monkeypatch.setattr(persistence_coordinator, "_build_route", broken_build)

        with pytest.raises(PersistenceError):
            await persistence_coordinator.replace_step1(
                db, seed.company_id, seed.user.id, seed.quotation_id, [self.route(seed, fee="99")]
            )

        assert await self.count(db, QuotationRoute, seed.quotation_id) == 1
        result = await db.execute(select(QuotationPlace.entrance_fee_pp))
        assert result.scalar_one() == Decimal("20")

    async def test_replace_is_scoped_to_one_quotation(self, db, seed):
        other_quotation = uuid.uuid4()
        await persistence_coordinator.replace_step1(
            db, seed.company_id, seed.user.id, other_quotation, [self.route(seed)]
        )
        await persistence_coordinator.replace_step1(
            db, seed.company_id, seed.user.id, seed.quotation_id, [self.route(seed)]
        )

        await persistence_coordinator.replace_step1(db, seed.company_id, seed.user.id, seed.quotation_id, [])

        assert await self.count(db, QuotationRoute, other_quotation) == 1


class TestApplyAccommodation:
    def option(self, seed, option_id):
        return AccommodationOptionIn(
            option_id=option_id,
            option_name=option_id.title(),
            rooms=[RoomLineIn(hotel_id=seed.hotel_id, season_id=uuid.uuid4(), rate_id=uuid.uuid4(), nights=3)],
        )

    async def count(self, db, model, quotation_id):
        result = await db.execute(select(func.count()).select_from(model).where(model.quotation_id == quotation_id))
        return result.scalar()

    async def test_failure_mid_batch_leaves_nothing_behind(self, db, seed, monkeypatch):
        commands = persistence_coordinator.plan_accommodation(
            [self.option(seed, "budget"), self.option(seed, "deluxe")]
        )
        original = persistence_coordinator._upsert_room
        calls = []

        async def failing_second_room(*args, **kwargs):
            calls.append(args)
            if len(calls) == 2:
                raise SQLAlchemyError("room insert failed")
            await original(*args, **kwargs)

        monkeypatch.setattr(persistence_coordinator, "_upsert_room", failing_second_room)

        with pytest.raises(PersistenceError):
            await persistence_coordinator.apply_accommodation(
                db, seed.company_id, seed.user.id, seed.quotation_id, commands
            )

        assert len(calls) == 2
        assert await self.count(db, AccommodationOption, seed.quotation_id) == 0
        assert await self.count(db, AccommodationRoom, seed.quotation_id) == 0
