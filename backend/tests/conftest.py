import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("LOG_TO_FILE", "false")

import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from tourquote.database import Base, get_db
from tourquote.dependencies import get_current_user
from tourquote.main import app
from tourquote.models import (
    Client,
    EntranceFee,
    ExtraService,
    Hotel,
    ListItem,
    Place,
    Quotation,
    Restaurant,
    RestaurantMeal,
    Route,
    RoutePlace,
    TransportationFee,
    User,
)


@dataclass
class Seed:
    """Ids of the baseline tenant data every API test starts from."""

    company_id: uuid.UUID
    user: User
    hotel_id: uuid.UUID
    other_hotel_id: uuid.UUID
    room_type_id: uuid.UUID
    other_room_type_id: uuid.UUID
    season_name_id: uuid.UUID
    country_id: uuid.UUID
    quotation_id: uuid.UUID
    route_id: uuid.UUID
    place_ids: list[uuid.UUID] = field(default_factory=list)
    guide_type_id: uuid.UUID | None = None
    transportation_type_id: uuid.UUID | None = None
    transportation_company_id: uuid.UUID | None = None
    restaurant_id: uuid.UUID | None = None
    meal_id: uuid.UUID | None = None
    extra_service_id: uuid.UUID | None = None


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


def _item(company_id, list_key, name) -> ListItem:
    return ListItem(id=uuid.uuid4(), company_id=company_id, list_key=list_key, name=name)


@pytest.fixture
async def seed(session_factory) -> Seed:
    company_id = uuid.uuid4()
    today = date.today()

    room_type = _item(company_id, "room_type", "Double")
    other_room_type = _item(company_id, "room_type", "Triple")
    season_name = _item(company_id, "season_name", "High")
    country = _item(company_id, "country", "Germany")
    guide_type = _item(company_id, "guide_type", "Licensed guide")
    transport_type = _item(company_id, "transportation_type", "Coach")
    vehicle_bus = _item(company_id, "vehicle_type", "Bus")
    vehicle_van = _item(company_id, "vehicle_type", "Van")
    fee_full_day = _item(company_id, "fee_type", "Full day")
    meal_type = _item(company_id, "meal_type", "Lunch")

    user = User(id=uuid.uuid4(), company_id=company_id, email=f"agent-{company_id}@example.com")
    hotel = Hotel(id=uuid.uuid4(), company_id=company_id, name="Nile View", stars=5)
    other_hotel = Hotel(id=uuid.uuid4(), company_id=company_id, name="Desert Rose", stars=4)
    client = Client(id=uuid.uuid4(), company_id=company_id, name="Travel GmbH", country_id=country.id)

    places = [
        Place(id=uuid.uuid4(), company_id=company_id, name="Karnak Temple"),
        Place(id=uuid.uuid4(), company_id=company_id, name="Valley of the Kings"),
    ]
    route = Route(id=uuid.uuid4(), company_id=company_id, name="Luxor East Bank", country_id=country.id)
    route_places = [
        RoutePlace(company_id=company_id, route_id=route.id, place_id=p.id, sequence=i)
        for i, p in enumerate(places)
    ]
    # Only the first place has a fee for this country
    fee = EntranceFee(company_id=company_id, place_id=places[0].id, country_id=country.id, amount=Decimal("20"))

    restaurant = Restaurant(id=uuid.uuid4(), company_id=company_id, name="Sofra")
    meal = RestaurantMeal(
        id=uuid.uuid4(),
        company_id=company_id,
        restaurant_id=restaurant.id,
        meal_type_id=meal_type.id,
        description="Set menu",
        rate_pp=Decimal("15"),
    )
    extra = ExtraService(id=uuid.uuid4(), company_id=company_id, name="Felucca ride", cost_pp=Decimal("10"))

    transportation_company_id = uuid.uuid4()
    transport_fees = [
        TransportationFee(
            company_id=company_id,
            transportation_company_id=transportation_company_id,
            vehicle_type_id=vehicle.id,
            fee_type_id=fee_full_day.id,
            amount=amount,
        )
        for vehicle, amount in ((vehicle_bus, Decimal("300")), (vehicle_van, Decimal("120")))
    ]

    quotation = Quotation(
        id=uuid.uuid4(),
        company_id=company_id,
        client_id=client.id,
        transportation_company_id=transportation_company_id,
        group_name="Spring group",
        total_pax=10,
        arrival_date=today + timedelta(days=30),
        departure_date=today + timedelta(days=35),
    )

    async with session_factory() as session:
        session.add_all([
            room_type, other_room_type, season_name, country, guide_type, transport_type,
            vehicle_bus, vehicle_van, fee_full_day, meal_type,
        ])
        await session.flush()
        session.add_all([user, hotel, other_hotel, client, route, restaurant, extra, *places])
        await session.flush()
        session.add_all([*route_places, fee, meal, *transport_fees, quotation])
        await session.commit()

    return Seed(
        company_id=company_id,
        user=user,
        hotel_id=hotel.id,
        other_hotel_id=other_hotel.id,
        room_type_id=room_type.id,
        other_room_type_id=other_room_type.id,
        season_name_id=season_name.id,
        country_id=country.id,
        quotation_id=quotation.id,
        route_id=route.id,
        place_ids=[p.id for p in places],
        guide_type_id=guide_type.id,
        transportation_type_id=transport_type.id,
        transportation_company_id=transportation_company_id,
        restaurant_id=restaurant.id,
        meal_id=meal.id,
        extra_service_id=extra.id,
    )


@pytest.fixture
async def client(session_factory, seed) -> AsyncClient:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    async def override_current_user():
        return seed.user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_current_user
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
