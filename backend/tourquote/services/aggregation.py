"""Aggregation engine — composes a quotation's cost structure.

Everything here is pure: callers load rows, this module only adds them up.
Per-person amounts (entrance fees, meals, extra services) are multiplied by the
quotation's pax; guide costs and transportation amounts are already totals.
"""

import logging
import uuid
from collections.abc import Hashable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any

from tourquote.config import settings

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

NO_FEE_CONFIGURED = "NO_FEE_CONFIGURED"


def to_decimal(value: Any) -> Decimal:
    """Lenient numeric coercion: missing or non-numeric input counts as zero."""
    if value is None or value == "":
        return ZERO
    if isinstance(value, Decimal):
        return value if value.is_finite() else ZERO
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return ZERO
    return result if result.is_finite() else ZERO


def clamp_int(value: Any, low: int, high: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return low
    return max(low, min(high, number))


def stay_basic_info(arrival: date | None, departure: date | None) -> dict | None:
    """Days/nights for a quotation header; ``None`` when dates are missing or inverted."""
    if not arrival or not departure or departure < arrival:
        return None
    nights = (departure - arrival).days
    return {"number_of_days": nights + 1, "number_of_nights": nights}


# --- Entrance fees ---


@dataclass
class EntranceFeeLine:
    route_key: Hashable
    place_id: uuid.UUID
    amount: Decimal
    flags: list[str] = field(default_factory=list)


@dataclass
class EntranceFeeReport:
    lines: list[EntranceFeeLine] = field(default_factory=list)
    per_route: dict[Hashable, Decimal] = field(default_factory=dict)
    total: Decimal = ZERO

    @property
    def missing_count(self) -> int:
        return sum(1 for line in self.lines if NO_FEE_CONFIGURED in line.flags)


# --- Accommodation ---


@dataclass
class RoomCosts:
    nights: int
    guests: int
    bb_pp: Decimal
    hb_addon_pp: Decimal
    fb_addon_pp: Decimal
    single_supplement_pp: Decimal
    bb_total: Decimal
    hb_addon_total: Decimal
    fb_addon_total: Decimal
    single_supplement_total: Decimal
    single_in_double_bb: Decimal
    single_in_double_hb: Decimal
    single_in_double_fb: Decimal


@dataclass
class AccommodationTotals:
    bb: Decimal = ZERO
    hb: Decimal = ZERO
    fb: Decimal = ZERO
    single_supplement: Decimal = ZERO

    @property
    def total_bb(self) -> Decimal:
        return self.bb

    @property
    def total_hb(self) -> Decimal:
        return self.bb + self.hb

    @property
    def total_fb(self) -> Decimal:
        return self.bb + self.fb

    def to_dict(self) -> dict:
        return {
            "bb": float(self.bb),
            "hb": float(self.hb),
            "fb": float(self.fb),
            "single_supplement": float(self.single_supplement),
            "total_bb": float(self.total_bb),
            "total_hb": float(self.total_hb),
            "total_fb": float(self.total_fb),
        }


# --- Step 1 + option totals ---


@dataclass
class RouteCosts:
    entrance_fees: Decimal = ZERO
    guides: Decimal = ZERO
    meals: Decimal = ZERO
    extra_services: Decimal = ZERO
    transportation: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.entrance_fees + self.guides + self.meals + self.extra_services + self.transportation

    def add(self, other: "RouteCosts") -> None:
        self.entrance_fees += other.entrance_fees
        self.guides += other.guides
        self.meals += other.meals
        self.extra_services += other.extra_services
        self.transportation += other.transportation

    def to_dict(self) -> dict:
        return {
            "entrance_fees": float(self.entrance_fees),
            "guides": float(self.guides),
            "meals": float(self.meals),
            "extra_services": float(self.extra_services),
            "transportation": float(self.transportation),
            "total": float(self.total),
        }


@dataclass
class QuotationTotals:
    option_id: str | None
    option_name: str | None
    pax: int
    step1: RouteCosts
    accommodation: AccommodationTotals

    @property
    def transportation_per_pax(self) -> Decimal:
        if self.pax <= 0:
            return ZERO
        return self.step1.transportation / self.pax

    @property
    def grand_total_bb(self) -> Decimal:
        return self.step1.total + self.accommodation.total_bb

    @property
    def grand_total_hb(self) -> Decimal:
        return self.step1.total + self.accommodation.total_hb

    @property
    def grand_total_fb(self) -> Decimal:
        return self.step1.total + self.accommodation.total_fb

    def to_dict(self) -> dict:
        places = settings.money_places
        return {
            "option_id": self.option_id,
            "option_name": self.option_name,
            "pax": self.pax,
            "step1": self.step1.to_dict(),
            "transportation_per_pax": round(float(self.transportation_per_pax), places),
            "accommodation": self.accommodation.to_dict(),
            "grand_total_bb": round(float(self.grand_total_bb), places),
            "grand_total_hb": round(float(self.grand_total_hb), places),
            "grand_total_fb": round(float(self.grand_total_fb), places),
        }


class AggregationEngine:
    """Sums resolved prices and per-stop extras into quotation totals."""

    def compute_entrance_fees(
        self,
        place_visits: Iterable[Any],
        traveller_country_id: uuid.UUID | None,
        fee_lookup: Mapping[tuple[uuid.UUID, uuid.UUID], Any],
    ) -> EntranceFeeReport:
        """Look up each visited place's fee for the traveller's country.

        ``place_visits`` items expose ``route_key`` and ``place_id``. A place with
        no fee for that country is priced at zero and flagged, not rejected.
        """
        report = EntranceFeeReport()
        for visit in place_visits:
            key = (visit.place_id, traveller_country_id)
            flags = []
            if traveller_country_id is not None and key in fee_lookup:
                amount = to_decimal(fee_lookup[key])
            else:
                amount = ZERO
                flags.append(NO_FEE_CONFIGURED)

            report.lines.append(
                EntranceFeeLine(route_key=visit.route_key, place_id=visit.place_id, amount=amount, flags=flags)
            )
            report.per_route[visit.route_key] = report.per_route.get(visit.route_key, ZERO) + amount
            report.total += amount

        if report.missing_count:
            logger.info(f"{report.missing_count} place(s) have no entrance fee for country {traveller_country_id}")
        return report

    def compute_transportation_options(self, fee_rows: Iterable[Mapping[str, Any]]) -> list[dict]:
        """Shape flat fee rows into fee type -> vehicle type buckets.

        No option is picked here; the buckets only drive what the UI offers.
        """
        fee_types: dict[str, dict] = {}
        vehicles: dict[str, dict[str, list[dict]]] = {}

        for row in fee_rows:
            type_key = f"{row.get('fee_type_id')}|{row.get('fee_type_name') or ''}"
            if type_key not in fee_types:
                fee_types[type_key] = {
                    "fee_type_id": row.get("fee_type_id"),
                    "fee_type_name": row.get("fee_type_name"),
                    "options": [],
                }
                vehicles[type_key] = {}

            vehicle_key = str(row.get("vehicle_type_id"))
            vehicles[type_key].setdefault(vehicle_key, []).append({
                "fee_id": row.get("fee_id"),
                "vehicle_type_id": row.get("vehicle_type_id"),
                "vehicle_type_name": row.get("vehicle_type_name"),
                "amount": row.get("amount"),
            })

        for type_key, group in fee_types.items():
            for options in vehicles[type_key].values():
                group["options"].extend(options)

        return list(fee_types.values())

    def compute_room_costs(self, room: Any) -> RoomCosts:
        """BB base plus separate HB/FB add-ons and single supplement for one room line."""
        nights = clamp_int(
            room.nights if room.nights is not None else settings.room_min_nights,
            settings.room_min_nights,
            settings.room_max_nights,
        )
        guests = clamp_int(
            room.guests if room.guests is not None else settings.room_min_guests,
            settings.room_min_guests,
            settings.room_max_guests,
        )

        bb = to_decimal(room.rate_amount)
        hb = to_decimal(room.half_board_amount)
        fb = to_decimal(room.full_board_amount)
        single = to_decimal(room.single_supplement_amount)

        bb_pp = nights * bb
        hb_pp = nights * hb
        fb_pp = nights * fb
        single_pp = nights * single

        return RoomCosts(
            nights=nights,
            guests=guests,
            bb_pp=bb_pp,
            hb_addon_pp=hb_pp,
            fb_addon_pp=fb_pp,
            single_supplement_pp=single_pp,
            bb_total=bb_pp * guests,
            hb_addon_total=hb_pp * guests,
            fb_addon_total=fb_pp * guests,
            single_supplement_total=single_pp * guests,
            single_in_double_bb=nights * (bb + single),
            single_in_double_hb=nights * (bb + hb + single),
            single_in_double_fb=nights * (bb + fb + single),
        )

    def compute_option_totals(self, rooms: Iterable[Any]) -> AccommodationTotals:
        totals = AccommodationTotals()
        for room in rooms:
            costs = self.compute_room_costs(room)
            totals.bb += costs.bb_total
            totals.hb += costs.hb_addon_total
            totals.fb += costs.fb_addon_total
            totals.single_supplement += costs.single_supplement_total
        return totals

    def compute_route_costs(self, route: Any, pax: int) -> RouteCosts:
        costs = RouteCosts(transportation=to_decimal(route.transportation_amount))
        for place in route.places:
            costs.entrance_fees += to_decimal(place.entrance_fee_pp) * pax
            costs.guides += to_decimal(place.guide_cost)
        for meal in route.meals:
            costs.meals += to_decimal(meal.amount_pp) * pax
        for extra in route.extra_services:
            costs.extra_services += to_decimal(extra.cost_pp) * pax
        return costs

    def compute_quotation_totals(
        self,
        route_entries: Sequence[Any],
        accommodation_option: Any | None,
        total_pax: int,
        quotation_extras: Sequence[Any] = (),
    ) -> QuotationTotals:
        """Totals for the route entries plus exactly one accommodation option.

        Options are alternatives, so callers evaluate each one separately.
        ``quotation_extras`` are extra services not tied to a route entry; they
        are priced per person like route extras.
        """
        pax = max(0, int(total_pax or 0))
        step1 = RouteCosts()
        for route in route_entries:
            step1.add(self.compute_route_costs(route, pax))
        for extra in quotation_extras:
            step1.extra_services += to_decimal(extra.cost_pp) * pax

        if accommodation_option is None:
            return QuotationTotals(None, None, pax, step1, AccommodationTotals())

        return QuotationTotals(
            option_id=accommodation_option.option_id,
            option_name=accommodation_option.option_name,
            pax=pax,
            step1=step1,
            accommodation=self.compute_option_totals(accommodation_option.rooms),
        )


aggregation_engine = AggregationEngine()
