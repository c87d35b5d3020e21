"""Schedule configuration endpoints for the authenticated provider."""

from uuid import UUID

from fastapi import APIRouter, status

from clinicbook.core.exceptions import unwrap
from clinicbook.dependencies import CurrentProvider, DatabaseSession
from clinicbook.schemas.scheduling import (
    BreakWindow,
    BreakWindowCreate,
    ExceptionPeriod,
    ExceptionPeriodCreate,
    ScheduleSettings,
    WeeklyScheduleUpdate,
    WeeklyWindow,
)
from clinicbook.services.schedule_service import ScheduleService

router = APIRouter()


@router.put(
    "/settings",
    response_model=ScheduleSettings,
    status_code=status.HTTP_200_OK,
    summary="Update slot settings",
)
async def update_settings(
    data: ScheduleSettings,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> ScheduleSettings:
    """
    Set slot duration, buffer and timezone.

    Args:
        data: New settings
        provider: Authenticated provider
        db: Database session

    Returns:
        Saved settings
    """
    service = ScheduleService(db)
    return unwrap(await service.update_settings(provider.actor_id, data))


@router.put(
    "/weekly",
    response_model=list[WeeklyWindow],
    status_code=status.HTTP_200_OK,
    summary="Update weekly working hours",
)
async def update_weekly_schedule(
    data: WeeklyScheduleUpdate,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> list[WeeklyWindow]:
    """Replace the working hours of each weekday listed in the request."""
    service = ScheduleService(db)
    return unwrap(await service.update_weekly_schedule(provider.actor_id, data))


@router.post(
    "/breaks",
    response_model=BreakWindow,
    status_code=status.HTTP_201_CREATED,
    summary="Add a break",
)
async def add_break(
    data: BreakWindowCreate,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> BreakWindow:
    """Add a recurring break on one weekday or on ``ALL`` days."""
    service = ScheduleService(db)
    return unwrap(await service.add_break(provider.actor_id, data))


@router.put(
    "/breaks/{break_id}",
    response_model=BreakWindow,
    status_code=status.HTTP_200_OK,
    summary="Update a break",
)
async def update_break(
    break_id: UUID,
    data: BreakWindowCreate,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> BreakWindow:
    service = ScheduleService(db)
    return unwrap(await service.update_break(provider.actor_id, break_id, data))


@router.delete(
    "/breaks/{break_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a break",
)
async def delete_break(
    break_id: UUID,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> None:
    service = ScheduleService(db)
    unwrap(await service.delete_break(provider.actor_id, break_id))


@router.post(
    "/exception-periods",
    response_model=ExceptionPeriod,
    status_code=status.HTTP_201_CREATED,
    summary="Add a day-off period",
)
async def add_exception_period(
    data: ExceptionPeriodCreate,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> ExceptionPeriod:
    """
    Add a holiday, vacation, personal or sick period.

    A recurring period blocks its weekday every week; otherwise every date
    from ``start_date`` to ``end_date`` inclusive is blocked.
    """
    service = ScheduleService(db)
    return unwrap(await service.add_exception_period(provider.actor_id, data))


@router.put(
    "/exception-periods/{period_id}",
    response_model=ExceptionPeriod,
    status_code=status.HTTP_200_OK,
    summary="Update a day-off period",
)
async def update_exception_period(
    period_id: UUID,
    data: ExceptionPeriodCreate,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> ExceptionPeriod:
    service = ScheduleService(db)
    return unwrap(await service.update_exception_period(provider.actor_id, period_id, data))


@router.delete(
    "/exception-periods/{period_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a day-off period",
)
async def delete_exception_period(
    period_id: UUID,
    provider: CurrentProvider,
    db: DatabaseSession,
) -> None:
    service = ScheduleService(db)
    unwrap(await service.delete_exception_period(provider.actor_id, period_id))
