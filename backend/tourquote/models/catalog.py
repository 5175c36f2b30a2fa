"""Lookup tables owned by neighbouring modules (hotels, places, restaurants...).

The pricing core only reads these to resolve ids into display names and fees.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from tourquote.database import Base


class ListItem(Base):
    """Labelled system-list entry: room types, season names, countries, vehicle types..."""

    __tablename__ = "list_items"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    list_key: Mapped[str] = mapped_column(String(50), nullable=False)  # room_type | season_name | country | ...
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Hotel(Base):
    __tablename__ = "hotels"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    address: Mapped[str | None] = mapped_column(String(500))
    area_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    stars: Mapped[int | None] = mapped_column(Integer)
    chain_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    reservation_email: Mapped[str | None] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Client(Base):
    __tablename__ = "clients"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    country_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Place(Base):
    __tablename__ = "places"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    area_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    description: Mapped[str | None] = mapped_column(Text)


class EntranceFee(Base):
    __tablename__ = "entrance_fees"
    __table_args__ = (UniqueConstraint("company_id", "place_id", "country_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    place_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("places.id", ondelete="CASCADE"), nullable=False
    )
    country_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("list_items.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)


class Route(Base):
    __tablename__ = "routes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    country_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class RoutePlace(Base):
    __tablename__ = "route_places"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("routes.id", ondelete="CASCADE"), nullable=False
    )
    place_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("places.id", ondelete="CASCADE"), nullable=False
    )
    sequence: Mapped[int] = mapped_column(Integer, default=0)


class Restaurant(Base):
    __tablename__ = "restaurants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)


class RestaurantMeal(Base):
    __tablename__ = "restaurant_meals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    restaurant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
    )
    meal_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    description: Mapped[str | None] = mapped_column(String(500))
    rate_pp: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))


class ExtraService(Base):
    __tablename__ = "extra_services"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    cost_pp: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))


class TransportationFee(Base):
    __tablename__ = "transportation_fees"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    transportation_company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    transportation_company_name: Mapped[str | None] = mapped_column(String(300))
    vehicle_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("list_items.id"), nullable=False)
    fee_type_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("list_items.id"), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
