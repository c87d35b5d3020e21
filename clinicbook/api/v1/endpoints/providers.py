"""Provider directory and public schedule endpoints."""

from datetime import date
from uuid import UUID

from fastapi import APIRouter, Query, status

from clinicbook.core.exceptions import NotFoundException, unwrap
from clinicbook.dependencies import DatabaseSession
from clinicbook.schemas.providers import ProviderFilters, ProviderListResponse, ProviderResponse
from clinicbook.schemas.scheduling import ScheduleConfigResponse, TimeSlot
from clinicbook.services.directory_service import DirectoryService
from clinicbook.services.schedule_service import ScheduleService

router = APIRouter()


@router.get(
    "/",
    response_model=ProviderListResponse,
    status_code=status.HTTP_200_OK,
    summary="List providers",
)
async def list_providers(
    db: DatabaseSession,
    specialization: str | None = Query(None, description="Filter by specialization"),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
) -> ProviderListResponse:
    """
    List active providers, optionally filtered by specialization.

    - **specialization**: Case-insensitive substring of the specialization
    - **page** / **page_size**: Pagination (max 100 per page)
    """
    filters = ProviderFilters(specialization=specialization, page=page, page_size=page_size)
    return await DirectoryService.list_providers(db, filters)


@router.get(
    "/{provider_id}",
    response_model=ProviderResponse,
    status_code=status.HTTP_200_OK,
    summary="Get provider by ID",
)
async def get_provider(
    provider_id: UUID,
    db: DatabaseSession,
) -> ProviderResponse:
    provider = await DirectoryService.get_provider(db, provider_id)
    if provider is None:
        raise NotFoundException("Provider not found")
    return ProviderResponse.model_validate(provider)


@router.get(
    "/{provider_id}/available-slots",
    response_model=list[TimeSlot],
    status_code=status.HTTP_200_OK,
    summary="List a provider's slots for one date",
)
async def get_available_slots(
    provider_id: UUID,
    db: DatabaseSession,
    day: date = Query(..., alias="date", description="Calendar date, YYYY-MM-DD"),
) -> list[TimeSlot]:
    """
    List every slot of the provider's working window on ``date``.

    Slots blocked by a break carry the break name as reason; slots taken by an
    existing booking carry ``BOOKED``. Days off and days without working hours
    yield an empty list.

    Args:
        provider_id: Provider ID
        db: Database session
        day: Calendar date in the provider's timezone

    Returns:
        Slots in ascending start order
    """
    service = ScheduleService(db)
    return unwrap(await service.get_available_slots(provider_id, day))


@router.get(
    "/{provider_id}/schedule",
    response_model=ScheduleConfigResponse,
    status_code=status.HTTP_200_OK,
    summary="Get a provider's schedule configuration",
)
async def get_schedule(
    provider_id: UUID,
    db: DatabaseSession,
) -> ScheduleConfigResponse:
    """Get settings, weekly hours, breaks and days off of a provider."""
    service = ScheduleService(db)
    return unwrap(await service.get_schedule_config(provider_id))
