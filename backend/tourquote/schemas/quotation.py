import uuid
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field


# --- Step 1 ---


class PlaceVisitIn(BaseModel):
    place_id: uuid.UUID
    entrance_fee_pp: Decimal | None = Decimal("0")
    guide_type_id: uuid.UUID | None = None
    guide_cost: Decimal | None = Decimal("0")


class MealSelectionIn(BaseModel):
    meal_id: uuid.UUID
    restaurant_id: uuid.UUID | None = None
    amount_pp: Decimal | None = None


class ExtraServiceSelectionIn(BaseModel):
    extra_service_id: uuid.UUID
    cost_pp: Decimal | None = None


class RouteEntryIn(BaseModel):
    route_date: str | date | None = None  # YYYY-MM-DD or DD-MM-YYYY
    route_id: uuid.UUID | None = None
    transportation_type_id: uuid.UUID | None = None
    transportation_amount: Decimal | None = None
    places: list[PlaceVisitIn] = []
    meals: list[MealSelectionIn] = []
    extra_services: list[ExtraServiceSelectionIn] = []


class Step1SaveRequest(BaseModel):
    quotation_id: uuid.UUID
    routes: list[RouteEntryIn] = []


# --- Step 2 ---


class RoomLineIn(BaseModel):
    hotel_id: uuid.UUID | None = None
    season_id: uuid.UUID | None = None
    rate_id: uuid.UUID | None = None
    room_type_id: uuid.UUID | None = None
    nights: int | None = None
    guests: int | None = None
    rate_amount: Decimal | None = None
    half_board_amount: Decimal | None = None
    full_board_amount: Decimal | None = None
    single_supplement_amount: Decimal | None = None


class DeletedRefs(BaseModel):
    """Room lines the client removed since the last save."""

    rate_ids: list[uuid.UUID] = Field(default_factory=list)
    hotel_ids: list[uuid.UUID] = Field(default_factory=list)


class AccommodationOptionIn(BaseModel):
    # Presence is checked by the builder so a missing key is a 400, not a 422
    option_id: str | None = None
    option_name: str | None = None
    sort_order: int | None = None
    deleted: DeletedRefs = Field(default_factory=DeletedRefs)
    rooms: list[RoomLineIn] = Field(default_factory=list)


class AccommodationSaveRequest(BaseModel):
    options: list[AccommodationOptionIn] = []


class QuotationStateResponse(BaseModel):
    quotation_id: uuid.UUID
    state: str
    route_count: int
    option_count: int
    room_count: int


# --- Quotation extra services ---


class QuotationExtraServiceCreate(BaseModel):
    extra_service_id: uuid.UUID
    cost_pp: Decimal | None = Decimal("0")
    # Leave empty for a quotation-level extra
    quotation_route_id: uuid.UUID | None = None


class QuotationExtraServiceUpdate(BaseModel):
    extra_service_id: uuid.UUID | None = None
    cost_pp: Decimal | None = None
    quotation_route_id: uuid.UUID | None = None


class QuotationExtraServiceResponse(BaseModel):
    id: uuid.UUID
    quotation_id: uuid.UUID
    quotation_route_id: uuid.UUID | None
    position: int | None
    extra_service_id: uuid.UUID
    extra_service_name: str | None
    extra_service_description: str | None
    cost_pp: Decimal | None
