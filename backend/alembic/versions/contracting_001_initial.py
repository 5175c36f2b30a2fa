"""Contracting and quotation costing tables

Revision ID: contracting_001
Revises:
Create Date: 2026-10-19
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision = "contracting_001"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()"))


def _company():
    return sa.Column("company_id", UUID(as_uuid=True), nullable=False, index=True)


def _audit():
    return [
        sa.Column("created_by", UUID(as_uuid=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_by", UUID(as_uuid=True)),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def _quotation_fk():
    return sa.Column(
        "quotation_id", UUID(as_uuid=True), sa.ForeignKey("quotations.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )


def _route_child():
    return [
        _id(),
        _company(),
        _quotation_fk(),
        sa.Column(
            "quotation_route_id", UUID(as_uuid=True),
            sa.ForeignKey("quotation_routes.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("position", sa.Integer, server_default="0"),
    ]


def upgrade() -> None:
    # --- lookups ---
    op.create_table(
        "users",
        _id(),
        _company(),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("first_name", sa.String(100), server_default=""),
        sa.Column("last_name", sa.String(100), server_default=""),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "list_items",
        _id(),
        _company(),
        sa.Column("list_key", sa.String(50), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true"),
    )
    op.create_index("idx_list_items_key", "list_items", ["company_id", "list_key"])

    op.create_table(
        "hotels",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("address", sa.String(500)),
        sa.Column("area_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("stars", sa.Integer),
        sa.Column("chain_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("reservation_email", sa.String(255)),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "clients",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("country_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("is_active", sa.Boolean, server_default="true"),
    )
    op.create_table(
        "places",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("area_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("description", sa.Text),
    )
    op.create_table(
        "entrance_fees",
        _id(),
        _company(),
        sa.Column("place_id", UUID(as_uuid=True), sa.ForeignKey("places.id", ondelete="CASCADE"), nullable=False),
        sa.Column("country_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.UniqueConstraint("company_id", "place_id", "country_id"),
    )
    op.create_table(
        "routes",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("country_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("is_active", sa.Boolean, server_default="true"),
    )
    op.create_table(
        "route_places",
        _id(),
        _company(),
        sa.Column("route_id", UUID(as_uuid=True), sa.ForeignKey("routes.id", ondelete="CASCADE"), nullable=False),
        sa.Column("place_id", UUID(as_uuid=True), sa.ForeignKey("places.id", ondelete="CASCADE"), nullable=False),
        sa.Column("sequence", sa.Integer, server_default="0"),
    )
    op.create_table(
        "restaurants",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
    )
    op.create_table(
        "restaurant_meals",
        _id(),
        _company(),
        sa.Column(
            "restaurant_id", UUID(as_uuid=True), sa.ForeignKey("restaurants.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("meal_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("description", sa.String(500)),
        sa.Column("rate_pp", sa.Numeric(10, 2)),
    )
    op.create_table(
        "extra_services",
        _id(),
        _company(),
        sa.Column("name", sa.String(300), nullable=False),
        sa.Column("description", sa.Text),
        sa.Column("cost_pp", sa.Numeric(10, 2)),
    )
    op.create_table(
        "transportation_fees",
        _id(),
        _company(),
        sa.Column("transportation_company_id", UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("transportation_company_name", sa.String(300)),
        sa.Column("vehicle_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id"), nullable=False),
        sa.Column("fee_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default="true"),
    )

    # --- contracting ---
    op.create_table(
        "hotel_contracts",
        _id(),
        _company(),
        sa.Column(
            "hotel_id", UUID(as_uuid=True), sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        sa.Column("attachment_id", UUID(as_uuid=True)),
        *_audit(),
        sa.CheckConstraint("start_date <= end_date", name="ck_hotel_contracts_window"),
    )
    op.create_table(
        "hotel_seasons",
        _id(),
        _company(),
        sa.Column(
            "hotel_id", UUID(as_uuid=True), sa.ForeignKey("hotels.id", ondelete="CASCADE"), nullable=False, index=True
        ),
        sa.Column("season_name_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("start_date", sa.Date, nullable=False),
        sa.Column("end_date", sa.Date, nullable=False),
        *_audit(),
        sa.CheckConstraint("start_date <= end_date", name="ck_hotel_seasons_window"),
    )
    op.create_index("idx_hotel_seasons_window", "hotel_seasons", ["company_id", "start_date", "end_date"])
    op.create_table(
        "hotel_season_rates",
        _id(),
        _company(),
        sa.Column(
            "season_id", UUID(as_uuid=True), sa.ForeignKey("hotel_seasons.id", ondelete="CASCADE"),
            nullable=False, index=True,
        ),
        sa.Column("room_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id"), nullable=False),
        sa.Column("start_date", sa.Date),
        sa.Column("end_date", sa.Date),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("half_board_amount", sa.Numeric(10, 2)),
        sa.Column("full_board_amount", sa.Numeric(10, 2)),
        sa.Column("single_supplement_amount", sa.Numeric(10, 2)),
        *_audit(),
    )

    # --- quotations ---
    op.create_table(
        "quotations",
        _id(),
        _company(),
        sa.Column("client_id", UUID(as_uuid=True), sa.ForeignKey("clients.id")),
        sa.Column("transportation_company_id", UUID(as_uuid=True)),
        sa.Column("group_name", sa.String(300)),
        sa.Column("total_pax", sa.Integer, server_default="0"),
        sa.Column("arrival_date", sa.Date),
        sa.Column("departure_date", sa.Date),
        sa.Column("is_active", sa.Boolean, server_default="true"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "quotation_routes",
        _id(),
        _company(),
        _quotation_fk(),
        sa.Column("position", sa.Integer, server_default="0"),
        sa.Column("route_date", sa.Date),
        sa.Column("route_id", UUID(as_uuid=True), sa.ForeignKey("routes.id")),
        sa.Column("transportation_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("transportation_amount", sa.Numeric(10, 2)),
        *_audit(),
    )
    op.create_table(
        "quotation_places",
        *_route_child(),
        sa.Column("place_id", UUID(as_uuid=True), sa.ForeignKey("places.id"), nullable=False),
        sa.Column("entrance_fee_pp", sa.Numeric(10, 2), server_default="0"),
        sa.Column("guide_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("guide_cost", sa.Numeric(10, 2), server_default="0"),
    )
    op.create_table(
        "quotation_meals",
        *_route_child(),
        sa.Column("meal_id", UUID(as_uuid=True), sa.ForeignKey("restaurant_meals.id"), nullable=False),
        sa.Column("restaurant_id", UUID(as_uuid=True), sa.ForeignKey("restaurants.id")),
        sa.Column("amount_pp", sa.Numeric(10, 2)),
    )
    op.create_table(
        "quotation_extra_services",
        *_route_child(),
        sa.Column("extra_service_id", UUID(as_uuid=True), sa.ForeignKey("extra_services.id"), nullable=False),
        sa.Column("cost_pp", sa.Numeric(10, 2)),
    )
    op.create_table(
        "quotation_accommodation_options",
        _id(),
        _company(),
        _quotation_fk(),
        sa.Column("option_id", sa.String(64), nullable=False),
        sa.Column("option_name", sa.String(200), nullable=False),
        sa.Column("sort_order", sa.Integer),
        *_audit(),
        sa.UniqueConstraint("company_id", "quotation_id", "option_id", name="uq_accom_option"),
    )
    op.create_table(
        "quotation_accommodation_rooms",
        _id(),
        _company(),
        _quotation_fk(),
        sa.Column("option_id", sa.String(64), nullable=False),
        sa.Column("hotel_id", UUID(as_uuid=True), sa.ForeignKey("hotels.id"), nullable=False),
        sa.Column("season_id", UUID(as_uuid=True), nullable=False),
        sa.Column("rate_id", UUID(as_uuid=True), nullable=False),
        sa.Column("room_type_id", UUID(as_uuid=True), sa.ForeignKey("list_items.id")),
        sa.Column("nights", sa.Integer),
        sa.Column("guests", sa.Integer),
        sa.Column("rate_amount", sa.Numeric(10, 2)),
        sa.Column("half_board_amount", sa.Numeric(10, 2)),
        sa.Column("full_board_amount", sa.Numeric(10, 2)),
        sa.Column("single_supplement_amount", sa.Numeric(10, 2)),
        *_audit(),
        sa.UniqueConstraint(
            "company_id", "quotation_id", "option_id", "season_id", "rate_id", name="uq_accom_room"
        ),
    )
    op.create_index(
        "idx_accom_rooms_option", "quotation_accommodation_rooms", ["company_id", "quotation_id", "option_id"]
    )


def downgrade() -> None:
    op.drop_index("idx_accom_rooms_option", table_name="quotation_accommodation_rooms")
    for table in (
        "quotation_accommodation_rooms",
        "quotation_accommodation_options",
        "quotation_extra_services",
        "quotation_meals",
        "quotation_places",
        "quotation_routes",
        "quotations",
        "hotel_season_rates",
    ):
        op.drop_table(table)
    op.drop_index("idx_hotel_seasons_window", table_name="hotel_seasons")
    for table in (
        "hotel_seasons",
        "hotel_contracts",
        "transportation_fees",
        "extra_services",
        "restaurant_meals",
        "restaurants",
        "route_places",
        "routes",
        "entrance_fees",
        "places",
        "clients",
        "hotels",
    ):
        op.drop_table(table)
    op.drop_index("idx_list_items_key", table_name="list_items")
    op.drop_table("list_items")
    op.drop_table("users")
