import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.database import get_db
from tourquote.dependencies import get_current_user
from tourquote.models.user import User
from tourquote.schemas.contracting import (
    ContractCreate,
    ContractResponse,
    ContractUpdate,
    RateCreate,
    RateResponse,
    RateUpdate,
    SeasonCreate,
    SeasonResponse,
    SeasonUpdate,
    StayPriceRequest,
)
from tourquote.services.contracting_service import contracting_service

router = APIRouter()


# --- Contracts ---


@router.get("/{hotel_id}/contracts", response_model=list[ContractResponse])
async def list_contracts(
    hotel_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.list_contracts(db, user.company_id, hotel_id)


@router.post("/{hotel_id}/contracts", status_code=201, response_model=ContractResponse)
async def create_contract(
    hotel_id: uuid.UUID,
    req: ContractCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Create a contract; 409 if its dates overlap another contract of the hotel."""
    return await contracting_service.create_contract(db, user.company_id, user.id, hotel_id, req)


@router.get("/{hotel_id}/contracts/{contract_id}", response_model=ContractResponse)
async def get_contract(
    hotel_id: uuid.UUID,
    contract_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.get_contract(db, user.company_id, hotel_id, contract_id)


@router.put("/{hotel_id}/contracts/{contract_id}", response_model=ContractResponse)
async def update_contract(
    hotel_id: uuid.UUID,
    contract_id: uuid.UUID,
    req: ContractUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.update_contract(db, user.company_id, user.id, hotel_id, contract_id, req)


@router.delete("/{hotel_id}/contracts/{contract_id}", status_code=204)
async def delete_contract(
    hotel_id: uuid.UUID,
    contract_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await contracting_service.delete_contract(db, user.company_id, hotel_id, contract_id)


# --- Seasons ---


@router.get("/{hotel_id}/seasons", response_model=list[SeasonResponse])
async def list_seasons(
    hotel_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.list_seasons(db, user.company_id, hotel_id)


@router.post("/{hotel_id}/seasons", status_code=201, response_model=SeasonResponse)
async def create_season(
    hotel_id: uuid.UUID,
    req: SeasonCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.create_season(db, user.company_id, user.id, hotel_id, req)


@router.get("/{hotel_id}/seasons-with-rates")
async def seasons_with_rates(
    hotel_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Seasons that have not ended, with nested rates and the contract active today."""
    return await contracting_service.seasons_with_rates(db, user.company_id, hotel_id)


@router.get("/{hotel_id}/seasons/{season_id}", response_model=SeasonResponse)
async def get_season(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.get_season(db, user.company_id, hotel_id, season_id)


@router.put("/{hotel_id}/seasons/{season_id}", response_model=SeasonResponse)
async def update_season(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    req: SeasonUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.update_season(db, user.company_id, user.id, hotel_id, season_id, req)


@router.delete("/{hotel_id}/seasons/{season_id}", status_code=204)
async def delete_season(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await contracting_service.delete_season(db, user.company_id, hotel_id, season_id)


# --- Rates ---


@router.get("/{hotel_id}/seasons/{season_id}/rates", response_model=list[RateResponse])
async def list_rates(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.list_rates(db, user.company_id, hotel_id, season_id)


@router.post("/{hotel_id}/seasons/{season_id}/rates", status_code=201, response_model=RateResponse)
async def create_rate(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    req: RateCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Add a rate; its dates default to the season's and must stay inside them."""
    return await contracting_service.create_rate(db, user.company_id, user.id, hotel_id, season_id, req)


@router.put("/{hotel_id}/seasons/{season_id}/rates/{rate_id}", response_model=RateResponse)
async def update_rate(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    rate_id: uuid.UUID,
    req: RateUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await contracting_service.update_rate(
        db, user.company_id, user.id, hotel_id, season_id, rate_id, req
    )


@router.delete("/{hotel_id}/seasons/{season_id}/rates/{rate_id}", status_code=204)
async def delete_rate(
    hotel_id: uuid.UUID,
    season_id: uuid.UUID,
    rate_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await contracting_service.delete_rate(db, user.company_id, hotel_id, season_id, rate_id)


# --- Stay calculator ---


@router.post("/{hotel_id}/stay-price")
async def stay_price(
    hotel_id: uuid.UUID,
    req: StayPriceRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Price every night of a stay for one room type; gaps come back as missing nights."""
    return await contracting_service.price_stay(
        db, user.company_id, hotel_id, req.arrival_date, req.departure_date, req.room_type_id
    )
