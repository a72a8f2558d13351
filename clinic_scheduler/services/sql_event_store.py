import logging
from contextlib import asynccontextmanager
from datetime import date
from typing import AsyncIterator

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from clinic_scheduler.core.clock import day_bounds, from_naive_utc, to_naive_utc
from clinic_scheduler.core.errors import NotFound, UpstreamFailure
from clinic_scheduler.models.calendar_event import CalendarEvent, CalendarEventRecord, NewCalendarEvent

logger = logging.getLogger(__name__)


def _to_event(row: CalendarEventRecord) -> CalendarEvent:
    return CalendarEvent(
        id=row.id,
        summary=row.summary,
        description=row.description,
        start=from_naive_utc(row.start_utc) if row.start_utc else None,
        end=from_naive_utc(row.end_utc) if row.end_utc else None,
        all_day_date=row.all_day_date,
    )


class SqlEventStore:
    """Event store over the `calendar_events` table."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, action: str) -> AsyncIterator[AsyncSession]:
        """Session whose database errors surface as UpstreamFailure."""
        try:
            async with self._session_maker() as session:
                try:
                    yield session
                except SQLAlchemyError:
                    await session.rollback()
                    raise
        except SQLAlchemyError as e:
            logger.warning("Event store %s failed: %s", action, e)
            raise UpstreamFailure(f"Event store {action} failed, try again later") from e

    async def list_events(self, start: date, end: date) -> list[CalendarEvent]:
        start_inclusive = to_naive_utc(day_bounds(start)[0])
        end_exclusive = to_naive_utc(day_bounds(end)[1])
        async with self._session("list") as session:
            result = await session.execute(
                select(CalendarEventRecord)
                .where(
                    or_(
                        and_(
                            CalendarEventRecord.start_utc >= start_inclusive,
                            CalendarEventRecord.start_utc < end_exclusive,
                        ),
                        and_(
                            CalendarEventRecord.all_day_date >= start,
                            CalendarEventRecord.all_day_date <= end,
                        ),
                    )
                )
                .order_by(CalendarEventRecord.start_utc, CalendarEventRecord.created_at)
            )
            return [_to_event(row) for row in result.scalars().all()]

    async def create_event(self, data: NewCalendarEvent) -> CalendarEvent:
        row = CalendarEventRecord(
            summary=data.summary,
            description=data.description,
            start_utc=to_naive_utc(data.start),
            end_utc=to_naive_utc(data.end),
            color_id=data.color_id,
        )
        async with self._session("create") as session:
            session.add(row)
            await session.commit()
            await session.refresh(row)
        logger.info("Calendar event created: %s", row.id)
        return _to_event(row)

    async def delete_event(self, event_id: str) -> None:
        async with self._session("delete") as session:
            row = await session.get(CalendarEventRecord, event_id)
            if row is None:
                raise NotFound(f"Calendar event {event_id} no longer exists")
            await session.delete(row)
            await session.commit()
        logger.info("Calendar event deleted: %s", event_id)
