"""Quotation extra services — CRUD for extras outside the step-1 save.

An extra either hangs off one route entry or, with no ``quotation_route_id``,
off the quotation itself. Quotation-level extras survive step-1 saves; route
extras are replaced with their route entry.
"""

import logging
import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tourquote.errors import InvalidPayload, QuotationExtraServiceNotFound
from tourquote.models.catalog import ExtraService
from tourquote.models.quotation import QuotationExtraService, QuotationRoute
from tourquote.services.quotation_builder import quotation_builder

logger = logging.getLogger(__name__)


class QuotationExtrasService:
    async def _check_route(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID, quotation_route_id: uuid.UUID | None
    ) -> None:
        if quotation_route_id is None:
            return
        result = await db.execute(
            select(QuotationRoute.id).where(
                QuotationRoute.id == quotation_route_id,
                QuotationRoute.quotation_id == quotation_id,
                QuotationRoute.company_id == company_id,
            )
        )
        if result.scalar_one_or_none() is None:
            raise InvalidPayload(
                "Route entry does not belong to this quotation",
                {"field": "quotation_route_id", "ids": [str(quotation_route_id)]},
            )

    async def _next_position(
        self, db: AsyncSession, company_id: uuid.UUID, quotation_id: uuid.UUID, quotation_route_id: uuid.UUID | None
    ) -> int:
        route_filter = (
            QuotationExtraService.quotation_route_id.is_(None)
            if quotation_route_id is None
            else QuotationExtraService.quotation_route_id == quotation_route_id
        )
        result = await db.execute(
            select(func.max(QuotationExtraService.position)).where(
                QuotationExtraService.company_id == company_id,
                QuotationExtraService.quotation_id == quotation_id,
                route_filter,
            )
        )
        current = result.scalar()
        return 0 if current is None else current + 1

    async def _to_dict(self, db: AsyncSession, company_id: uuid.UUID, extra: QuotationExtraService) -> dict:
        result = await db.execute(
            select(ExtraService.name, ExtraService.description).where(
                ExtraService.id == extra.extra_service_id, ExtraService.company_id == company_id
            )
        )
        info = result.one_or_none()
        return {
            "id": extra.id,
            "quotation_id": extra.quotation_id,
            "quotation_route_id": extra.quotation_route_id,
            "position": extra.position,
            "extra_service_id": extra.extra_service_id,
            "extra_service_name": info[0] if info else None,
            "extra_service_description": info[1] if info else None,
            "cost_pp": extra.cost_pp,
        }

    async def get_extra(self, db: AsyncSession, company_id: uuid.UUID, extra_id: uuid.UUID) -> QuotationExtraService:
        result = await db.execute(
            select(QuotationExtraService).where(
                QuotationExtraService.id == extra_id,
                QuotationExtraService.company_id == company_id,
            )
        )
        extra = result.scalar_one_or_none()
        if not extra:
            raise QuotationExtraServiceNotFound(extra_id)
        return extra

    async def list_extras(
        self,
        db: AsyncSession,
        company_id: uuid.UUID,
        quotation_id: uuid.UUID,
        quotation_route_id: uuid.UUID | None = None,
    ) -> list[dict]:
        """All extras of a quotation, or only those of one route entry."""
        await quotation_builder.get_quotation(db, company_id, quotation_id)
        stmt = select(QuotationExtraService).where(
            QuotationExtraService.company_id == company_id,
            QuotationExtraService.quotation_id == quotation_id,
        )
        if quotation_route_id is not None:
            stmt = stmt.where(QuotationExtraService.quotation_route_id == quotation_route_id)
        result = await db.execute(
            stmt.order_by(QuotationExtraService.created_at, QuotationExtraService.id).execution_options(
                populate_existing=True
            )
        )
        return [await self._to_dict(db, company_id, extra) for extra in result.scalars().all()]

    async def create_extra(
        self, db: AsyncSession, company_id: uuid.UUID, user_id: uuid.UUID, quotation_id: uuid.UUID, data
    ) -> dict:
        await quotation_builder.get_quotation(db, company_id, quotation_id)
        await quotation_builder.ensure_tenant_refs(
            db, company_id, ExtraService, [data.extra_service_id], "extra_service_id"
        )
        await self._check_route(db, company_id, quotation_id, data.quotation_route_id)

        extra = QuotationExtraService(
            company_id=company_id,
            quotation_id=quotation_id,
            quotation_route_id=data.quotation_route_id,
            position=await self._next_position(db, company_id, quotation_id, data.quotation_route_id),
            extra_service_id=data.extra_service_id,
            cost_pp=data.cost_pp,
            created_by=user_id,
            updated_by=user_id,
        )
        db.add(extra)
        await db.commit()
        await db.refresh(extra)

        logger.info(f"Extra service {extra.id} added to quotation {quotation_id}")
        return await self._to_dict(db, company_id, extra)

    async def update_extra(
        self, db: AsyncSession, company_id: uuid.UUID, user_id: uuid.UUID, extra_id: uuid.UUID, data
    ) -> dict:
        extra = await self.get_extra(db, company_id, extra_id)
        changes = data.model_dump(exclude_unset=True)

        if changes.get("extra_service_id") is None:
            changes.pop("extra_service_id", None)
        else:
            await quotation_builder.ensure_tenant_refs(
                db, company_id, ExtraService, [changes["extra_service_id"]], "extra_service_id"
            )
        if "quotation_route_id" in changes:
            await self._check_route(db, company_id, extra.quotation_id, changes["quotation_route_id"])

        for name, value in changes.items():
            setattr(extra, name, value)
        extra.updated_by = user_id
        await db.commit()
        await db.refresh(extra)
        return await self._to_dict(db, company_id, extra)

    async def delete_extra(self, db: AsyncSession, company_id: uuid.UUID, extra_id: uuid.UUID) -> None:
        extra = await self.get_extra(db, company_id, extra_id)
        quotation_id = extra.quotation_id
        await db.delete(extra)
        await db.commit()
        logger.info(f"Extra service {extra_id} removed from quotation {quotation_id}")


quotation_extras = QuotationExtrasService()
