"""Schedule configuration management and the availability read path."""

from datetime import date
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import Table, delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from clinicbook.config import settings as app_settings
from clinicbook.core.results import Err, Ok, not_found, unauthorized
from clinicbook.core.timeutils import day_bounds, utcnow
from clinicbook.models.schedules import (
    break_windows,
    exception_periods,
    schedule_settings,
    weekly_windows,
)
from clinicbook.schemas.scheduling import (
    BreakWindow,
    BreakWindowCreate,
    ExceptionPeriod,
    ExceptionPeriodCreate,
    ScheduleConfig,
    ScheduleConfigResponse,
    ScheduleSettings,
    TimeSlot,
    WeeklyScheduleUpdate,
    WeeklyWindow,
)
from clinicbook.services.availability import compute_slots, resolve_settings_or_default
from clinicbook.services.conflict_guard import ConflictGuard
from clinicbook.services.directory_service import DirectoryService

logger = structlog.get_logger(__name__)


def configured_default_settings() -> ScheduleSettings:
    """Settings applied to providers that never saved their own."""
    return ScheduleSettings(
        slot_duration_minutes=app_settings.default_slot_duration_minutes,
        buffer_minutes=app_settings.default_buffer_minutes,
        timezone=app_settings.default_timezone,
    )


class ScheduleService:
    """Service for reading and maintaining a provider's schedule."""

    def __init__(self, db: AsyncSession):
        """Initialize service with database session."""
        self.db = db

    async def _provider_missing(self, provider_id: UUID) -> Err | None:
        if await DirectoryService.get_provider(self.db, provider_id) is None:
            return not_found("Provider not found")
        return None

    async def _owned_row(
        self,
        table: Table,
        item_id: UUID,
        provider_id: UUID,
        label: str,
    ) -> Ok[dict[str, Any]] | Err:
        result = await self.db.execute(select(table).where(table.c.id == item_id))
        row = result.mappings().first()
        if not row:
            return not_found(f"{label} not found")
        if row["provider_id"] != provider_id:
            return unauthorized(f"{label} does not belong to this provider")
        return Ok(dict(row))

    # ------------------------------------------------------------------ reads

    async def load_config(self, provider_id: UUID) -> ScheduleConfig:
        """
        Load the raw schedule configuration of a provider.

        Settings are left as None when the provider never saved any; use
        ``resolve_settings_or_default`` to apply defaults.
        """
        settings_result = await self.db.execute(
            select(schedule_settings).where(schedule_settings.c.provider_id == provider_id)
        )
        settings_row = settings_result.mappings().first()

        weekly_result = await self.db.execute(
            select(weekly_windows).where(weekly_windows.c.provider_id == provider_id)
        )
        breaks_result = await self.db.execute(
            select(break_windows)
            .where(break_windows.c.provider_id == provider_id)
            .order_by(break_windows.c.position, break_windows.c.created_at)
        )
        periods_result = await self.db.execute(
            select(exception_periods)
            .where(exception_periods.c.provider_id == provider_id)
            .order_by(exception_periods.c.start_date)
        )

        return ScheduleConfig(
            provider_id=provider_id,
            settings=ScheduleSettings.model_validate(dict(settings_row)) if settings_row else None,
            weekly_windows=[
                WeeklyWindow.model_validate(dict(row)) for row in weekly_result.mappings().all()
            ],
            breaks=[
                BreakWindow.model_validate(dict(row)) for row in breaks_result.mappings().all()
            ],
            exception_periods=[
                ExceptionPeriod.model_validate(dict(row))
                for row in periods_result.mappings().all()
            ],
        )

    async def get_schedule_config(self, provider_id: UUID) -> Ok[ScheduleConfigResponse] | Err:
        """
        Get the full schedule of a provider with settings resolved.

        Args:
            provider_id: Provider ID

        Returns:
            Schedule configuration, or NOT_FOUND
        """
        if missing := await self._provider_missing(provider_id):
            return missing

        config = await self.load_config(provider_id)
        return Ok(
            ScheduleConfigResponse(
                provider_id=provider_id,
                settings=resolve_settings_or_default(
                    config.settings, configured_default_settings()
                ),
                weekly_windows=config.weekly_windows,
                breaks=config.breaks,
                exception_periods=config.exception_periods,
            )
        )

    async def get_available_slots(self, provider_id: UUID, day: date) -> Ok[list[TimeSlot]] | Err:
        """
        Compute the slots of a provider for one calendar date.

        Args:
            provider_id: Provider ID
            day: Calendar date in the provider's timezone

        Returns:
            Ordered slots, or NOT_FOUND for an unknown provider
        """
        if missing := await self._provider_missing(provider_id):
            return missing

        config = await self.load_config(provider_id)
        resolved = resolve_settings_or_default(config.settings, configured_default_settings())
        config = config.model_copy(update={"settings": resolved})

        day_start, day_end = day_bounds(day, resolved.zone)
        existing = await ConflictGuard(self.db).find_overlapping(provider_id, day_start, day_end)

        slots = compute_slots(config, existing, day)
        logger.debug(
            "available_slots_computed",
            provider_id=str(provider_id),
            date=day.isoformat(),
            slots=len(slots),
            available=sum(1 for slot in slots if slot.available),
        )
        return Ok(slots)

    # ----------------------------------------------------------------- writes

    async def update_settings(
        self,
        provider_id: UUID,
        data: ScheduleSettings,
    ) -> Ok[ScheduleSettings] | Err:
        """Create or replace the provider's slot settings."""
        if missing := await self._provider_missing(provider_id):
            return missing

        values = data.model_dump()
        existing = await self.db.execute(
            select(schedule_settings.c.id).where(schedule_settings.c.provider_id == provider_id)
        )
        if existing.first():
            stmt: Any = (
                update(schedule_settings)
                .where(schedule_settings.c.provider_id == provider_id)
                .values(**values, updated_at=utcnow())
            )
        else:
            stmt = insert(schedule_settings).values(
                provider_id=provider_id, created_at=utcnow(), updated_at=utcnow(), **values
            )
        await self.db.execute(stmt)
        await self.db.commit()

        logger.info("schedule_settings_updated", provider_id=str(provider_id), **values)
        return Ok(data)

    async def update_weekly_schedule(
        self,
        provider_id: UUID,
        data: WeeklyScheduleUpdate,
    ) -> Ok[list[WeeklyWindow]] | Err:
        """Create or replace the working hours of each listed weekday."""
        if missing := await self._provider_missing(provider_id):
            return missing

        windows = data.windows()
        for window in windows:
            values = {
                "is_available": window.is_available,
                "start_time": window.start_time,
                "end_time": window.end_time,
            }
            existing = await self.db.execute(
                select(weekly_windows.c.id).where(
                    weekly_windows.c.provider_id == provider_id,
                    weekly_windows.c.day_of_week == window.day_of_week.value,
                )
            )
            row = existing.first()
            if row:
                await self.db.execute(
                    update(weekly_windows).where(weekly_windows.c.id == row.id).values(**values)
                )
            else:
                await self.db.execute(
                    insert(weekly_windows).values(
                        provider_id=provider_id,
                        day_of_week=window.day_of_week.value,
                        **values,
                    )
                )
        await self.db.commit()

        logger.info(
            "weekly_schedule_updated",
            provider_id=str(provider_id),
            days=[window.day_of_week.value for window in windows],
        )
        return Ok(windows)

    async def add_break(self, provider_id: UUID, data: BreakWindowCreate) -> Ok[BreakWindow] | Err:
        """Append a break to the provider's configured breaks."""
        if missing := await self._provider_missing(provider_id):
            return missing

        position_result = await self.db.execute(
            select(func.coalesce(func.max(break_windows.c.position), -1)).where(
                break_windows.c.provider_id == provider_id
            )
        )
        position = position_result.scalar_one() + 1

        result = await self.db.execute(
            insert(break_windows)
            .values(provider_id=provider_id, position=position, **data.model_dump())
            .returning(break_windows)
        )
        row = result.mappings().one()
        await self.db.commit()

        logger.info("break_added", provider_id=str(provider_id), break_id=str(row["id"]))
        return Ok(BreakWindow.model_validate(dict(row)))

    async def update_break(
        self,
        provider_id: UUID,
        break_id: UUID,
        data: BreakWindowCreate,
    ) -> Ok[BreakWindow] | Err:
        """Replace a break owned by the provider."""
        owned = await self._owned_row(break_windows, break_id, provider_id, "Break")
        if isinstance(owned, Err):
            return owned

        result = await self.db.execute(
            update(break_windows)
            .where(break_windows.c.id == break_id)
            .values(**data.model_dump())
            .returning(break_windows)
        )
        row = result.mappings().one()
        await self.db.commit()
        return Ok(BreakWindow.model_validate(dict(row)))

    async def delete_break(self, provider_id: UUID, break_id: UUID) -> Ok[None] | Err:
        """Delete a break owned by the provider."""
        owned = await self._owned_row(break_windows, break_id, provider_id, "Break")
        if isinstance(owned, Err):
            return owned

        await self.db.execute(delete(break_windows).where(break_windows.c.id == break_id))
        await self.db.commit()
        logger.info("break_deleted", provider_id=str(provider_id), break_id=str(break_id))
        return Ok(None)

    async def add_exception_period(
        self,
        provider_id: UUID,
        data: ExceptionPeriodCreate,
    ) -> Ok[ExceptionPeriod] | Err:
        """Add a day-off period for the provider."""
        if missing := await self._provider_missing(provider_id):
            return missing

        result = await self.db.execute(
            insert(exception_periods)
            .values(
                provider_id=provider_id,
                created_at=utcnow(),
                updated_at=utcnow(),
                **self._period_values(data),
            )
            .returning(exception_periods)
        )
        row = result.mappings().one()
        await self.db.commit()

        logger.info(
            "exception_period_added",
            provider_id=str(provider_id),
            period_id=str(row["id"]),
            type=data.type.value,
        )
        return Ok(ExceptionPeriod.model_validate(dict(row)))

    async def update_exception_period(
        self,
        provider_id: UUID,
        period_id: UUID,
        data: ExceptionPeriodCreate,
    ) -> Ok[ExceptionPeriod] | Err:
        """Replace a day-off period owned by the provider."""
        owned = await self._owned_row(exception_periods, period_id, provider_id, "Day off")
        if isinstance(owned, Err):
            return owned

        result = await self.db.execute(
            update(exception_periods)
            .where(exception_periods.c.id == period_id)
            .values(updated_at=utcnow(), **self._period_values(data))
            .returning(exception_periods)
        )
        row = result.mappings().one()
        await self.db.commit()
        return Ok(ExceptionPeriod.model_validate(dict(row)))

    async def delete_exception_period(self, provider_id: UUID, period_id: UUID) -> Ok[None] | Err:
        """Delete a day-off period owned by the provider."""
        owned = await self._owned_row(exception_periods, period_id, provider_id, "Day off")
        if isinstance(owned, Err):
            return owned

        await self.db.execute(delete(exception_periods).where(exception_periods.c.id == period_id))
        await self.db.commit()
        logger.info(
            "exception_period_deleted", provider_id=str(provider_id), period_id=str(period_id)
        )
        return Ok(None)

    @staticmethod
    def _period_values(data: ExceptionPeriodCreate) -> dict[str, Any]:
        return {
            "start_date": data.start_date,
            "end_date": data.end_date,
            "reason": data.reason,
            "type": data.type.value,
            "is_recurring": data.is_recurring,
            "recurring_day_of_week": (
                data.recurring_day_of_week.value if data.recurring_day_of_week else None
            ),
        }
