import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tourquote.database import Base


class Quotation(Base):
    """Quotation header. Created and edited by the quotations module; read here."""

    __tablename__ = "quotations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    client_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("clients.id"))
    transportation_company_id: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    group_name: Mapped[str | None] = mapped_column(String(300))
    total_pax: Mapped[int] = mapped_column(Integer, default=0)
    arrival_date: Mapped[date | None] = mapped_column(Date)
    departure_date: Mapped[date | None] = mapped_column(Date)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


# --- Step 1: route entries (replace-all lifecycle) ---


class QuotationRoute(Base):
    __tablename__ = "quotation_routes"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    route_date: Mapped[date | None] = mapped_column(Date)
    route_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("routes.id"))
    transportation_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    transportation_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    places: Mapped[list["QuotationPlace"]] = relationship(
        back_populates="route", cascade="all, delete-orphan", order_by="QuotationPlace.position"
    )
    meals: Mapped[list["QuotationMeal"]] = relationship(
        back_populates="route", cascade="all, delete-orphan", order_by="QuotationMeal.position"
    )
    extra_services: Mapped[list["QuotationExtraService"]] = relationship(
        back_populates="route", cascade="all, delete-orphan", order_by="QuotationExtraService.position"
    )


class QuotationPlace(Base):
    __tablename__ = "quotation_places"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quotation_route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotation_routes.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    place_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("places.id"), nullable=False)
    entrance_fee_pp: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))
    guide_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    guide_cost: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    route: Mapped["QuotationRoute"] = relationship(back_populates="places")


class QuotationMeal(Base):
    __tablename__ = "quotation_meals"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    quotation_route_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotation_routes.id", ondelete="CASCADE"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    meal_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("restaurant_meals.id"), nullable=False)
    restaurant_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("restaurants.id"))
    amount_pp: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))

    route: Mapped["QuotationRoute"] = relationship(back_populates="meals")


class QuotationExtraService(Base):
    __tablename__ = "quotation_extra_services"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # NULL for quotation-level extras managed outside step 1
    quotation_route_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("quotation_routes.id", ondelete="CASCADE")
    )
    position: Mapped[int] = mapped_column(Integer, default=0)
    extra_service_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("extra_services.id"), nullable=False)
    cost_pp: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    route: Mapped["QuotationRoute | None"] = relationship(back_populates="extra_services")


# --- Step 2: accommodation options (upsert lifecycle) ---


class AccommodationOption(Base):
    __tablename__ = "quotation_accommodation_options"
    __table_args__ = (UniqueConstraint("company_id", "quotation_id", "option_id", name="uq_accom_option"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id: Mapped[str] = mapped_column(String(64), nullable=False)  # client-generated key
    option_name: Mapped[str] = mapped_column(String(200), nullable=False)
    sort_order: Mapped[int | None] = mapped_column(Integer)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


class AccommodationRoom(Base):
    __tablename__ = "quotation_accommodation_rooms"
    __table_args__ = (
        UniqueConstraint(
            "company_id", "quotation_id", "option_id", "season_id", "rate_id", name="uq_accom_room"
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    company_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    quotation_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("quotations.id", ondelete="CASCADE"), nullable=False, index=True
    )
    option_id: Mapped[str] = mapped_column(String(64), nullable=False)
    hotel_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("hotels.id"), nullable=False)
    # Amounts below are a snapshot, so season/rate rows may later disappear
    season_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    rate_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    room_type_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("list_items.id"))
    nights: Mapped[int | None] = mapped_column(Integer)
    guests: Mapped[int | None] = mapped_column(Integer)
    rate_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    half_board_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    full_board_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    single_supplement_amount: Mapped[Decimal | None] = mapped_column(Numeric(10, 2))
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
