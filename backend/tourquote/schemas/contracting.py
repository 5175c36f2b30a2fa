import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel


class ContractBase(BaseModel):
    start_date: date
    end_date: date
    attachment_id: uuid.UUID | None = None


class ContractCreate(ContractBase):
    pass


class ContractUpdate(ContractBase):
    pass


class ContractResponse(BaseModel):
    id: uuid.UUID
    hotel_id: uuid.UUID
    start_date: date
    end_date: date
    attachment_id: uuid.UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class SeasonBase(BaseModel):
    season_name_id: uuid.UUID | None = None
    start_date: date
    end_date: date


class SeasonCreate(SeasonBase):
    pass


class SeasonUpdate(SeasonBase):
    pass


class SeasonResponse(BaseModel):
    id: uuid.UUID
    hotel_id: uuid.UUID
    season_name_id: uuid.UUID | None
    start_date: date
    end_date: date
    created_at: datetime

    model_config = {"from_attributes": True}


class RateBase(BaseModel):
    room_type_id: uuid.UUID
    # Leave both dates empty to follow the season window
    start_date: date | None = None
    end_date: date | None = None
    amount: Decimal
    half_board_amount: Decimal | None = None
    full_board_amount: Decimal | None = None
    single_supplement_amount: Decimal | None = None


class RateCreate(RateBase):
    pass


class RateUpdate(RateBase):
    pass


class RateResponse(BaseModel):
    id: uuid.UUID
    season_id: uuid.UUID
    room_type_id: uuid.UUID
    start_date: date | None
    end_date: date | None
    amount: float
    half_board_amount: float | None
    full_board_amount: float | None
    single_supplement_amount: float | None
    created_at: datetime

    model_config = {"from_attributes": True}


class StayPriceRequest(BaseModel):
    arrival_date: date
    departure_date: date
    room_type_id: uuid.UUID
