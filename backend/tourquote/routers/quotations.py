import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.database import get_db
from tourquote.dependencies import get_current_user
from tourquote.models.user import User
from tourquote.schemas.quotation import (
    AccommodationSaveRequest,
    QuotationExtraServiceCreate,
    QuotationExtraServiceResponse,
    QuotationExtraServiceUpdate,
    QuotationStateResponse,
    Step1SaveRequest,
)
from tourquote.services.quotation_builder import quotation_builder
from tourquote.services.quotation_extras import quotation_extras

router = APIRouter()


@router.post("/step1")
async def save_step1(
    req: Step1SaveRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Replace the itinerary of a quotation. An empty ``routes`` list clears it."""
    routes = await quotation_builder.save_step1(db, user.company_id, user.id, req.quotation_id, req.routes)
    return {"quotation_id": str(req.quotation_id), "routes": routes}


@router.get("/{quotation_id}/step1")
async def get_step1(
    quotation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await quotation_builder.get_step1(db, user.company_id, quotation_id)


@router.get("/{quotation_id}/accommodation")
async def get_accommodation(
    quotation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    options = await quotation_builder.get_accommodation(db, user.company_id, quotation_id)
    return {"quotation_id": str(quotation_id), "options": options}


@router.post("/{quotation_id}/accommodation")
async def save_accommodation(
    quotation_id: uuid.UUID,
    req: AccommodationSaveRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Upsert accommodation options; rooms are removed only via ``deleted.rate_ids`` / ``deleted.hotel_ids``."""
    options = await quotation_builder.save_accommodation(db, user.company_id, user.id, quotation_id, req.options)
    return {"quotation_id": str(quotation_id), "options": options}


@router.get("/{quotation_id}/totals")
async def get_totals(
    quotation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await quotation_builder.get_totals(db, user.company_id, quotation_id)


@router.get("/{quotation_id}/state", response_model=QuotationStateResponse)
async def get_state(
    quotation_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await quotation_builder.quotation_state(db, user.company_id, quotation_id)


# --- Extra services ---


@router.get("/{quotation_id}/extra-services", response_model=list[QuotationExtraServiceResponse])
async def list_extra_services(
    quotation_id: uuid.UUID,
    quotation_route_id: uuid.UUID | None = None,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await quotation_extras.list_extras(db, user.company_id, quotation_id, quotation_route_id)


@router.post("/{quotation_id}/extra-services", status_code=201, response_model=QuotationExtraServiceResponse)
async def create_extra_service(
    quotation_id: uuid.UUID,
    req: QuotationExtraServiceCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Add an extra service; without ``quotation_route_id`` it survives step-1 saves."""
    return await quotation_extras.create_extra(db, user.company_id, user.id, quotation_id, req)


@router.put("/extra-services/{extra_id}", response_model=QuotationExtraServiceResponse)
async def update_extra_service(
    extra_id: uuid.UUID,
    req: QuotationExtraServiceUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await quotation_extras.update_extra(db, user.company_id, user.id, extra_id, req)


@router.delete("/extra-services/{extra_id}", status_code=204)
async def delete_extra_service(
    extra_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    await quotation_extras.delete_extra(db, user.company_id, extra_id)
