import uuid
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from tourquote.services.aggregation import NO_FEE_CONFIGURED, aggregation_engine, stay_basic_info


@dataclass
class Visit:
    route_key: str
    place_id: uuid.UUID


@dataclass
class Room:
    nights: int | None = 1
    guests: int | None = 1
    rate_amount: Decimal | None = None
    half_board_amount: Decimal | None = None
    full_board_amount: Decimal | None = None
    single_supplement_amount: Decimal | None = None


@dataclass
class PlaceLine:
    entrance_fee_pp: Decimal | None = None
    guide_cost: Decimal | None = None


@dataclass
class MealLine:
    amount_pp: Decimal | None = None


@dataclass
class ExtraLine:
    cost_pp: Decimal | None = None


@dataclass
class RouteLine:
    transportation_amount: Decimal | None = None
    places: list = field(default_factory=list)
    meals: list = field(default_factory=list)
    extra_services: list = field(default_factory=list)


@dataclass
class Option:
    option_id: str
    option_name: str
    rooms: list = field(default_factory=list)


class TestEntranceFees:
    def test_missing_fee_is_zero_and_flagged(self):
        country = uuid.uuid4()
        priced, unpriced = uuid.uuid4(), uuid.uuid4()
        visits = [Visit("day1", priced), Visit("day1", unpriced), Visit("day2", priced)]

        report = aggregation_engine.compute_entrance_fees(visits, country, {(priced, country): Decimal("12.5")})

        assert [line.amount for line in report.lines] == [Decimal("12.5"), Decimal("0"), Decimal("12.5")]
        assert report.lines[1].flags == [NO_FEE_CONFIGURED]
        assert report.lines[0].flags == []
        assert report.per_route == {"day1": Decimal("12.5"), "day2": Decimal("12.5")}
        assert report.total == Decimal("25")
        assert report.missing_count == 1

    def test_fee_for_another_country_does_not_apply(self):
        place = uuid.uuid4()
        report = aggregation_engine.compute_entrance_fees(
            [Visit("r", place)], uuid.uuid4(), {(place, uuid.uuid4()): Decimal("30")}
        )
        assert report.total == 0
        assert report.lines[0].flags == [NO_FEE_CONFIGURED]


class TestTransportationOptions:
    def test_grouped_by_fee_type_then_vehicle(self):
        rows = [
            {"fee_id": "1", "fee_type_id": "ft1", "fee_type_name": "Full day",
             "vehicle_type_id": "bus", "vehicle_type_name": "Bus", "amount": 300},
            {"fee_id": "2", "fee_type_id": "ft2", "fee_type_name": "Transfer",
             "vehicle_type_id": "van", "vehicle_type_name": "Van", "amount": 60},
            {"fee_id": "3", "fee_type_id": "ft1", "fee_type_name": "Full day",
             "vehicle_type_id": "van", "vehicle_type_name": "Van", "amount": 120},
            {"fee_id": "4", "fee_type_id": "ft1", "fee_type_name": "Full day",
             "vehicle_type_id": "bus", "vehicle_type_name": "Bus", "amount": 320},
        ]

        groups = aggregation_engine.compute_transportation_options(rows)

        assert [g["fee_type_name"] for g in groups] == ["Full day", "Transfer"]
        full_day = groups[0]["options"]
        assert [o["vehicle_type_name"] for o in full_day] == ["Bus", "Bus", "Van"]
        assert [o["amount"] for o in full_day] == [300, 320, 120]
        assert groups[1]["options"] == [
            {"fee_id": "2", "vehicle_type_id": "van", "vehicle_type_name": "Van", "amount": 60}
        ]

    def test_no_rows(self):
        assert aggregation_engine.compute_transportation_options([]) == []


class TestRoomCosts:
    def test_board_addons_and_single_supplement(self):
        room = Room(
            nights=3,
            guests=2,
            rate_amount=Decimal("100"),
            half_board_amount=Decimal("20"),
            full_board_amount=Decimal("35"),
            single_supplement_amount=Decimal("40"),
        )

        costs = aggregation_engine.compute_room_costs(room)

        assert costs.bb_pp == Decimal("300")
        assert costs.bb_total == Decimal("600")
        assert costs.hb_addon_total == Decimal("120")
        assert costs.fb_addon_total == Decimal("210")
        assert costs.single_supplement_total == Decimal("240")
        assert costs.single_in_double_bb == Decimal("420")
        assert costs.single_in_double_hb == Decimal("480")
        assert costs.single_in_double_fb == Decimal("525")

    def test_nights_and_guests_are_clamped(self):
        costs = aggregation_engine.compute_room_costs(Room(nights=0, guests=50, rate_amount=Decimal("10")))
        assert (costs.nights, costs.guests) == (1, 10)

        costs = aggregation_engine.compute_room_costs(Room(nights=1000, guests=None, rate_amount=Decimal("10")))
        assert (costs.nights, costs.guests) == (365, 1)

    def test_missing_amounts_count_as_zero(self):
        costs = aggregation_engine.compute_room_costs(Room(nights=2, guests=2))
        assert costs.bb_total == 0
        assert costs.single_in_double_fb == 0

    def test_option_totals(self):
        rooms = [
            Room(nights=2, guests=2, rate_amount=Decimal("50"), half_board_amount=Decimal("10")),
            Room(nights=2, guests=1, rate_amount=Decimal("80"), full_board_amount=Decimal("25")),
        ]

        totals = aggregation_engine.compute_option_totals(rooms)

        assert totals.total_bb == Decimal("360")
        assert totals.total_hb == Decimal("400")
        assert totals.total_fb == Decimal("410")


class TestQuotationTotals:
    def routes(self):
        return [
            RouteLine(
                transportation_amount=Decimal("300"),
                places=[
                    PlaceLine(entrance_fee_pp=Decimal("20"), guide_cost=Decimal("50")),
                    PlaceLine(entrance_fee_pp=Decimal("0"), guide_cost=None),
                ],
                meals=[MealLine(amount_pp=Decimal("15"))],
                extra_services=[ExtraLine(cost_pp=Decimal("10"))],
            ),
            RouteLine(transportation_amount=None, places=[PlaceLine(entrance_fee_pp=Decimal("5"))]),
        ]

    def test_per_person_vs_per_group_amounts(self):
        totals = aggregation_engine.compute_quotation_totals(self.routes(), None, 10)

        assert totals.step1.entrance_fees == Decimal("250")
        assert totals.step1.guides == Decimal("50")
        assert totals.step1.meals == Decimal("150")
        assert totals.step1.extra_services == Decimal("100")
        assert totals.step1.transportation == Decimal("300")
        assert totals.step1.total == Decimal("850")
        assert totals.transportation_per_pax == Decimal("30")
        assert totals.accommodation.total_bb == 0

    def test_each_option_is_priced_on_its_own(self):
        budget = Option("opt-1", "Budget", [Room(nights=5, guests=10, rate_amount=Decimal("40"))])
        deluxe = Option("opt-2", "Deluxe", [Room(nights=5, guests=10, rate_amount=Decimal("90"))])

        a = aggregation_engine.compute_quotation_totals(self.routes(), budget, 10)
        b = aggregation_engine.compute_quotation_totals(self.routes(), deluxe, 10)

        assert a.grand_total_bb == Decimal("850") + Decimal("2000")
        assert b.grand_total_bb == Decimal("850") + Decimal("4500")
        assert a.to_dict()["option_name"] == "Budget"

    def test_quotation_level_extras_are_per_person(self):
        extras = [ExtraLine(cost_pp=Decimal("25")), ExtraLine(cost_pp=None)]
        totals = aggregation_engine.compute_quotation_totals(self.routes(), None, 10, extras)

        assert totals.step1.extra_services == Decimal("350")
        assert totals.step1.total == Decimal("1100")

    def test_zero_pax_has_no_per_pax_share(self):
        totals = aggregation_engine.compute_quotation_totals(self.routes(), None, 0)
        assert totals.transportation_per_pax == 0
        assert totals.step1.entrance_fees == 0
        assert totals.step1.guides == Decimal("50")


class TestStayBasicInfo:
    def test_days_are_nights_plus_one(self):
        assert stay_basic_info(date(2025, 5, 1), date(2025, 5, 6)) == {"number_of_days": 6, "number_of_nights": 5}

    def test_missing_or_inverted_dates(self):
        assert stay_basic_info(None, date(2025, 5, 6)) is None
        assert stay_basic_info(date(2025, 5, 6), date(2025, 5, 1)) is None
