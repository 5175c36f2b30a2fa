"""Quotation builder — reads and saves the two steps of a quotation.

Step 1 is the itinerary (route entries with their place visits, meals, extra
services and transportation). Step 2 is a set of alternative accommodation
options. Writes go through ``persistence_coordinator``; everything returned
to the API is re-read from the database and enriched with display names.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from tourquote.errors import InvalidPayload, QuotationNotFound
from tourquote.models.catalog import (
    Client,
    EntranceFee,
    ExtraService,
    Hotel,
    ListItem,
    Place,
    Restaurant,
    RestaurantMeal,
    Route,
    RoutePlace,
    TransportationFee,
)
from tourquote.models.contracting import HotelSeason
from tourquote.models.quotation import (
    AccommodationOption,
    AccommodationRoom,
    Quotation,
    QuotationExtraService,
    QuotationRoute,
)
from tourquote.services.aggregation import aggregation_engine, stay_basic_info
from tourquote.services.persistence import persistence_coordinator

logger = logging.getLogger(__name__)

ROUTE_DATE_FORMATS = ("%Y-%m-%d", "%d-%m-%Y")

# Options without sort_order go after every ordered option
UNSORTED_LAST = 999999

STATE_DRAFT = "Draft"
STATE_STEP1_SAVED = "Step1Saved"
STATE_ACCOMMODATION_SAVED = "AccommodationSaved"
STATE_PRICED = "Priced"


def normalize_route_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    for fmt in ROUTE_DATE_FORMATS:
        try:
            return datetime.strptime(str(value).strip(), fmt).date()
        except ValueError:
            continue
    raise InvalidPayload(f"Unrecognised route date '{value}'", {"route_date": str(value)})


def _money(value) -> float | None:
    return float(value) if value is not None else None


def _str(value) -> str | None:
    return str(value) if value is not None else None


@dataclass
class OptionRooms:
    """An accommodation option paired with its room lines, for totals."""

    option_id: str
    option_name: str
    rooms: list[AccommodationRoom] = field(default_factory=list)


@dataclass
class PlaceVisitRef:
    route_key: uuid.UUID
    place_id: uuid.UUID


class QuotationBuilder:
    """Read/save orchestration for quotation step 1 and step 2."""

    async def get_quotation(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID
    ) -> Quotation:
        result = await db.execute(
            select(Quotation).where(
                Quotation.id == quotation_id,
                Quotation.company_id == company_id,
                Quotation.is_active.is_(True),
            )
        )
        quotation = result.scalar_one_or_none()
        if not quotation:
            raise QuotationNotFound(quotation_id)
        return quotation

    async def _names(
        self, db: AsyncSession, company_id: uuid.UUID, model, ids, attr: str = "name"
    ) -> dict[uuid.UUID, Any]:
        ids = {i for i in ids if i is not None}
        if not ids:
            return {}
        column = getattr(model, attr)
        result = await db.execute(
            select(model.id, column).where(model.id.in_(ids), model.company_id == company_id)
        )
        return {row[0]: row[1] for row in result.all()}

    async def ensure_tenant_refs(
        self, db: AsyncSession, company_id: uuid.UUID, model, ids, field_name: str
    ) -> None:
        """Reject ids that do not exist for this company."""
        ids = {i for i in ids if i is not None}
        if not ids:
            return
        result = await db.execute(select(model.id).where(model.id.in_(ids), model.company_id == company_id))
        unknown = ids - set(result.scalars().all())
        if unknown:
            raise InvalidPayload(
                f"Unknown {field_name}",
                {"field": field_name, "ids": sorted(str(i) for i in unknown)},
            )

    # --- Step 1 ---

    async def get_step1(self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID) -> dict:
        """Everything the itinerary screen needs in one read.

        Routes and entrance fees are those of the client's country; fees are
        looked up in-process for that country.
        """
        quotation = await self.get_quotation(db, company_id, quotation_id)

        client = None
        if quotation.client_id:
            result = await db.execute(
                select(Client).where(Client.id == quotation.client_id, Client.company_id == company_id)
            )
            client = result.scalar_one_or_none()
        country_id = client.country_id if client else None

        routes = await self._country_routes(db, company_id, country_id)
        transportation = await self._transportation_options(db, company_id, quotation.transportation_company_id)

        return {
            "quotation": {
                "id": str(quotation.id),
                "group_name": quotation.group_name,
                "client_id": _str(quotation.client_id),
                "client_name": client.name if client else None,
                "country_id": _str(country_id),
                "transportation_company_id": _str(quotation.transportation_company_id),
                "total_pax": quotation.total_pax,
                "arrival_date": quotation.arrival_date.isoformat() if quotation.arrival_date else None,
                "departure_date": quotation.departure_date.isoformat() if quotation.departure_date else None,
            },
            "basic_info": stay_basic_info(quotation.arrival_date, quotation.departure_date),
            "routes": routes,
            "transportation": transportation,
            "saved_routes": await self.read_step1(db, company_id, quotation_id),
        }

    async def _country_routes(
        self, db: AsyncSession, company_id: uuid.UUID, country_id: uuid.UUID | None
    ) -> list[dict]:
        if country_id is None:
            return []

        result = await db.execute(
            select(Route)
            .where(Route.company_id == company_id, Route.country_id == country_id, Route.is_active.is_(True))
            .order_by(Route.name)
        )
        routes = result.scalars().all()
        if not routes:
            return []

        result = await db.execute(
            select(RoutePlace.route_id, Place.id, Place.name)
            .join(Place, Place.id == RoutePlace.place_id)
            .where(RoutePlace.route_id.in_([r.id for r in routes]), RoutePlace.company_id == company_id)
            .order_by(RoutePlace.route_id, RoutePlace.sequence)
        )
        route_places = result.all()

        place_ids = {row[1] for row in route_places}
        fee_lookup = {}
        if place_ids:
            result = await db.execute(
                select(EntranceFee.place_id, EntranceFee.country_id, EntranceFee.amount).where(
                    EntranceFee.company_id == company_id,
                    EntranceFee.country_id == country_id,
                    EntranceFee.place_id.in_(place_ids),
                )
            )
            fee_lookup = {(row[0], row[1]): row[2] for row in result.all()}

        report = aggregation_engine.compute_entrance_fees(
            [PlaceVisitRef(route_key=row[0], place_id=row[1]) for row in route_places],
            country_id,
            fee_lookup,
        )

        by_route: dict[uuid.UUID, list[dict]] = {r.id: [] for r in routes}
        for (route_id, place_id, place_name), line in zip(route_places, report.lines):
            by_route[route_id].append({
                "place_id": str(place_id),
                "place_name": place_name,
                "entrance_fee": float(line.amount),
                "flags": line.flags,
            })

        return [
            {
                "route_id": str(r.id),
                "route_name": r.name,
                "places": by_route[r.id],
                "entrance_fee_total": float(report.per_route.get(r.id, 0)),
            }
            for r in routes
        ]

    async def _transportation_options(
        self, db: AsyncSession, company_id: uuid.UUID, transportation_company_id: uuid.UUID | None
    ) -> list[dict]:
        if transportation_company_id is None:
            return []

        vehicle = aliased(ListItem)
        fee_type = aliased(ListItem)
        result = await db.execute(
            select(
                TransportationFee.id,
                TransportationFee.amount,
                TransportationFee.vehicle_type_id,
                vehicle.name,
                TransportationFee.fee_type_id,
                fee_type.name,
            )
            .outerjoin(vehicle, vehicle.id == TransportationFee.vehicle_type_id)
            .outerjoin(fee_type, fee_type.id == TransportationFee.fee_type_id)
            .where(
                TransportationFee.company_id == company_id,
                TransportationFee.transportation_company_id == transportation_company_id,
                TransportationFee.is_active.is_(True),
            )
            .order_by(fee_type.name, vehicle.name)
        )
        rows = [
            {
                "fee_id": str(fee_id),
                "amount": _money(amount),
                "vehicle_type_id": str(vehicle_type_id),
                "vehicle_type_name": vehicle_name,
                "fee_type_id": str(fee_type_id),
                "fee_type_name": fee_type_name,
            }
            for fee_id, amount, vehicle_type_id, vehicle_name, fee_type_id, fee_type_name in result.all()
        ]
        return aggregation_engine.compute_transportation_options(rows)

    async def save_step1(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        routes: list,
    ) -> list[dict]:
        """Replace the itinerary; an empty ``routes`` list clears it."""
        await self.get_quotation(db, company_id, quotation_id)

        for route in routes:
            route.route_date = normalize_route_date(route.route_date)
        await self._check_step1_refs(db, company_id, routes)

        await persistence_coordinator.replace_step1(db, company_id, user_id, quotation_id, routes)
        return await self.read_step1(db, company_id, quotation_id)

    async def _check_step1_refs(self, db: AsyncSession, company_id: uuid.UUID, routes: list) -> None:
        places = [p for r in routes for p in r.places]
        meals = [m for r in routes for m in r.meals]
        checks = (
            (Route, [r.route_id for r in routes], "route_id"),
            (ListItem, [r.transportation_type_id for r in routes], "transportation_type_id"),
            (Place, [p.place_id for p in places], "place_id"),
            (ListItem, [p.guide_type_id for p in places], "guide_type_id"),
            (RestaurantMeal, [m.meal_id for m in meals], "meal_id"),
            (Restaurant, [m.restaurant_id for m in meals], "restaurant_id"),
            (ExtraService, [s.extra_service_id for r in routes for s in r.extra_services], "extra_service_id"),
        )
        for model, ids, field_name in checks:
            await self.ensure_tenant_refs(db, company_id, model, ids, field_name)

    async def _load_routes(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID
    ) -> list[QuotationRoute]:
        result = await db.execute(
            select(QuotationRoute)
            .where(QuotationRoute.quotation_id == quotation_id, QuotationRoute.company_id == company_id)
            .options(
                selectinload(QuotationRoute.places),
                selectinload(QuotationRoute.meals),
                selectinload(QuotationRoute.extra_services),
            )
            .order_by(QuotationRoute.position)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def read_step1(self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID) -> list[dict]:
        routes = await self._load_routes(db, company_id, quotation_id)
        if not routes:
            return []

        places = [p for r in routes for p in r.places]
        meals = [m for r in routes for m in r.meals]
        extras = [s for r in routes for s in r.extra_services]

        route_names = await self._names(db, company_id, Route, [r.route_id for r in routes])
        list_names = await self._names(
            db,
            company_id,
            ListItem,
            [r.transportation_type_id for r in routes] + [p.guide_type_id for p in places],
        )
        place_names = await self._names(db, company_id, Place, [p.place_id for p in places])
        restaurant_names = await self._names(db, company_id, Restaurant, [m.restaurant_id for m in meals])

        meal_info: dict[uuid.UUID, tuple] = {}
        meal_ids = {m.meal_id for m in meals}
        if meal_ids:
            result = await db.execute(
                select(RestaurantMeal.id, RestaurantMeal.description, ListItem.name)
                .outerjoin(ListItem, ListItem.id == RestaurantMeal.meal_type_id)
                .where(RestaurantMeal.id.in_(meal_ids), RestaurantMeal.company_id == company_id)
            )
            meal_info = {row[0]: (row[1], row[2]) for row in result.all()}

        extra_info: dict[uuid.UUID, tuple] = {}
        extra_ids = {s.extra_service_id for s in extras}
        if extra_ids:
            result = await db.execute(
                select(ExtraService.id, ExtraService.name, ExtraService.description).where(
                    ExtraService.id.in_(extra_ids), ExtraService.company_id == company_id
                )
            )
            extra_info = {row[0]: (row[1], row[2]) for row in result.all()}

        return [
            {
                "id": str(r.id),
                "route_date": r.route_date.isoformat() if r.route_date else None,
                "route_id": _str(r.route_id),
                "route_name": route_names.get(r.route_id),
                "transportation_type_id": _str(r.transportation_type_id),
                "transportation_type_name": list_names.get(r.transportation_type_id),
                "transportation_amount": _money(r.transportation_amount),
                "places": [
                    {
                        "place_id": str(p.place_id),
                        "place_name": place_names.get(p.place_id),
                        "entrance_fee_pp": _money(p.entrance_fee_pp),
                        "guide_type_id": _str(p.guide_type_id),
                        "guide_type_name": list_names.get(p.guide_type_id),
                        "guide_cost": _money(p.guide_cost),
                    }
                    for p in r.places
                ],
                "meals": [
                    {
                        "meal_id": str(m.meal_id),
                        "meal_description": meal_info.get(m.meal_id, (None, None))[0],
                        "meal_type_name": meal_info.get(m.meal_id, (None, None))[1],
                        "restaurant_id": _str(m.restaurant_id),
                        "restaurant_name": restaurant_names.get(m.restaurant_id),
                        "amount_pp": _money(m.amount_pp),
                    }
                    for m in r.meals
                ],
                "extra_services": [
                    {
                        "extra_service_id": str(s.extra_service_id),
                        "extra_service_name": extra_info.get(s.extra_service_id, (None, None))[0],
                        "extra_service_description": extra_info.get(s.extra_service_id, (None, None))[1],
                        "cost_pp": _money(s.cost_pp),
                    }
                    for s in r.extra_services
                ],
            }
            for r in routes
        ]

    # --- Step 2 ---

    def validate_options(self, options: list) -> None:
        if not options:
            raise InvalidPayload("options must be a non-empty list")
        for index, option in enumerate(options):
            missing = [
                name for name in ("option_id", "option_name")
                if not str(getattr(option, name) or "").strip()
            ]
            if missing:
                raise InvalidPayload(
                    f"Option {index} is missing {', '.join(missing)}",
                    {"index": index, "missing": missing},
                )

    async def save_accommodation(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        user_id: uuid.UUID | None,
        quotation_id: uuid.UUID,
        options: list,
    ) -> list[dict]:
        self.validate_options(options)
        await self.get_quotation(db, company_id, quotation_id)
        rooms = [r for o in options for r in o.rooms]
        await self.ensure_tenant_refs(db, company_id, Hotel, [r.hotel_id for r in rooms], "hotel_id")
        await self.ensure_tenant_refs(db, company_id, ListItem, [r.room_type_id for r in rooms], "room_type_id")

        commands = persistence_coordinator.plan_accommodation(options)
        await persistence_coordinator.apply_accommodation(db, company_id, user_id, quotation_id, commands)
        return await self.get_accommodation(db, company_id, quotation_id)

    async def _load_options(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID
    ) -> tuple[list[AccommodationOption], dict[str, list[AccommodationRoom]]]:
        result = await db.execute(
            select(AccommodationOption).where(
                AccommodationOption.company_id == company_id,
                AccommodationOption.quotation_id == quotation_id,
            ).execution_options(populate_existing=True)
        )
        options = sorted(
            result.scalars().all(),
            key=lambda o: (o.sort_order if o.sort_order is not None else UNSORTED_LAST, o.option_name or ""),
        )

        result = await db.execute(
            select(AccommodationRoom)
            .where(
                AccommodationRoom.company_id == company_id,
                AccommodationRoom.quotation_id == quotation_id,
            )
            .order_by(AccommodationRoom.created_at, AccommodationRoom.id)
            .execution_options(populate_existing=True)
        )
        rooms_by_option: dict[str, list[AccommodationRoom]] = {}
        for room in result.scalars().all():
            rooms_by_option.setdefault(room.option_id, []).append(room)
        return options, rooms_by_option

    async def get_accommodation(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID
    ) -> list[dict]:
        await self.get_quotation(db, company_id, quotation_id)
        options, rooms_by_option = await self._load_options(db, company_id, quotation_id)

        rooms = [room for group in rooms_by_option.values() for room in group]
        hotel_names = await self._names(db, company_id, Hotel, [r.hotel_id for r in rooms])
        room_type_names = await self._names(db, company_id, ListItem, [r.room_type_id for r in rooms])

        seasons: dict[uuid.UUID, tuple] = {}
        season_ids = {r.season_id for r in rooms}
        if season_ids:
            result = await db.execute(
                select(HotelSeason.id, ListItem.name, HotelSeason.start_date, HotelSeason.end_date)
                .outerjoin(ListItem, ListItem.id == HotelSeason.season_name_id)
                .where(HotelSeason.id.in_(season_ids), HotelSeason.company_id == company_id)
            )
            seasons = {row[0]: row[1:] for row in result.all()}

        payload = []
        for option in options:
            option_rooms = rooms_by_option.get(option.option_id, [])
            totals = aggregation_engine.compute_option_totals(option_rooms)
            payload.append({
                "option_id": option.option_id,
                "option_name": option.option_name,
                "sort_order": option.sort_order,
                "rooms": [self._room_dict(r, hotel_names, room_type_names, seasons) for r in option_rooms],
                "totals": totals.to_dict(),
            })
        return payload

    def _room_dict(self, room: AccommodationRoom, hotel_names: dict, room_type_names: dict, seasons: dict) -> dict:
        season_name, season_start, season_end = seasons.get(room.season_id, (None, None, None))
        costs = aggregation_engine.compute_room_costs(room)
        return {
            "id": str(room.id),
            "hotel_id": str(room.hotel_id),
            "hotel_name": hotel_names.get(room.hotel_id),
            "season_id": str(room.season_id),
            "season_name": season_name,
            "season_start": season_start.isoformat() if season_start else None,
            "season_end": season_end.isoformat() if season_end else None,
            "rate_id": str(room.rate_id),
            "room_type_id": _str(room.room_type_id),
            "room_type_name": room_type_names.get(room.room_type_id),
            "nights": costs.nights,
            "guests": costs.guests,
            "rate_amount": _money(room.rate_amount),
            "half_board_amount": _money(room.half_board_amount),
            "full_board_amount": _money(room.full_board_amount),
            "single_supplement_amount": _money(room.single_supplement_amount),
            "bb_total": float(costs.bb_total),
            "hb_addon_total": float(costs.hb_addon_total),
            "fb_addon_total": float(costs.fb_addon_total),
            "single_in_double_bb": float(costs.single_in_double_bb),
        }

    # --- Totals and state ---

    async def get_totals(self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID) -> dict:
        """Step-1 costs plus one totals block per accommodation option."""
        quotation = await self.get_quotation(db, company_id, quotation_id)
        routes = await self._load_routes(db, company_id, quotation_id)
        options, rooms_by_option = await self._load_options(db, company_id, quotation_id)
        pax = quotation.total_pax or 0
        result = await db.execute(
            select(QuotationExtraService).where(
                QuotationExtraService.company_id == company_id,
                QuotationExtraService.quotation_id == quotation_id,
                QuotationExtraService.quotation_route_id.is_(None),
            )
        )
        quotation_extras = list(result.scalars().all())

        base = aggregation_engine.compute_quotation_totals(routes, None, pax, quotation_extras)
        option_totals = [
            aggregation_engine.compute_quotation_totals(
                routes,
                OptionRooms(o.option_id, o.option_name, rooms_by_option.get(o.option_id, [])),
                pax,
                quotation_extras,
            ).to_dict()
            for o in options
        ]
        return {
            "quotation_id": str(quotation.id),
            "pax": base.pax,
            "basic_info": stay_basic_info(quotation.arrival_date, quotation.departure_date),
            "step1": base.step1.to_dict(),
            "transportation_per_pax": float(base.transportation_per_pax),
            "options": option_totals,
        }

    async def quotation_state(self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID) -> dict:
        await self.get_quotation(db, company_id, quotation_id)

        async def count(model) -> int:
            result = await db.execute(
                select(func.count()).select_from(model).where(
                    model.company_id == company_id, model.quotation_id == quotation_id
                )
            )
            return result.scalar() or 0

        route_count = await count(QuotationRoute)
        option_count = await count(AccommodationOption)
        room_count = await count(AccommodationRoom)

        result = await db.execute(
            select(func.count(func.distinct(AccommodationRoom.option_id))).where(
                AccommodationRoom.company_id == company_id, AccommodationRoom.quotation_id == quotation_id
            )
        )
        priced_options = result.scalar() or 0

        # An option only counts once it has at least one room line
        if room_count and route_count and priced_options >= option_count:
            state = STATE_PRICED
        elif room_count:
            state = STATE_ACCOMMODATION_SAVED
        elif route_count:
            state = STATE_STEP1_SAVED
        else:
            state = STATE_DRAFT

        return {
            "quotation_id": quotation_id,
            "state": state,
            "route_count": route_count,
            "option_count": option_count,
            "room_count": room_count,
        }


quotation_builder = QuotationBuilder()
