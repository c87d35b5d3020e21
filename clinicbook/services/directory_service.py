"""Lookups of the provider and patient records bookings refer to."""

from uuid import UUID

from sqlalchemy import Table, and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.models.parties import patients, providers
from clinicbook.schemas.providers import ProviderFilters, ProviderListResponse, ProviderResponse


async def _get_active(db: AsyncSession, table: Table, record_id: UUID) -> dict | None:
    stmt = select(table).where(and_(table.c.id == record_id, table.c.is_active.is_(True)))
    result = await db.execute(stmt)
    row = result.mappings().first()
    return dict(row) if row else None


class DirectoryService:
    """Resolves provider and patient references."""

    @staticmethod
    async def get_provider(db: AsyncSession, provider_id: UUID) -> dict | None:
        """Get an active provider by ID."""
        return await _get_active(db, providers, provider_id)

    @staticmethod
    async def get_patient(db: AsyncSession, patient_id: UUID) -> dict | None:
        """Get an active patient by ID."""
        return await _get_active(db, patients, patient_id)

    @staticmethod
    async def list_providers(db: AsyncSession, filters: ProviderFilters) -> ProviderListResponse:
        """
        List active providers with optional specialization search.

        Args:
            db: Database session
            filters: Specialization substring (case-insensitive) and pagination

        Returns:
            Paginated providers ordered by name
        """
        conditions = [providers.c.is_active.is_(True)]
        if filters.specialization:
            conditions.append(providers.c.specialization.ilike(f"%{filters.specialization}%"))

        count_stmt = select(func.count()).select_from(providers).where(and_(*conditions))
        total_result = await db.execute(count_stmt)
        total = total_result.scalar() or 0

        offset = (filters.page - 1) * filters.page_size
        stmt = (
            select(providers)
            .where(and_(*conditions))
            .order_by(providers.c.full_name, providers.c.id)
            .limit(filters.page_size)
            .offset(offset)
        )
        result = await db.execute(stmt)

        return ProviderListResponse(
            total=total,
            page=filters.page,
            page_size=filters.page_size,
            items=[ProviderResponse.model_validate(dict(row)) for row in result.mappings().all()],
        )
