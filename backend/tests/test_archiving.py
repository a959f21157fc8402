from datetime import date

from moafinder.core import scheduler
from moafinder.events.models import Event, EventStatus
from moafinder.events.recurrence import DailyRecurrence
from moafinder.events.service import archive_expired_events


async def _status(session_factory, event_id) -> EventStatus:
    async with session_factory() as db:
        return (await db.get(Event, event_id)).status


async def test_archives_only_approved_events_past_expiry(
    directory, make_event, session_factory, settings
):
    organization, location = directory["organization"], directory["location"]
    expired = await make_event(organization, location, start_date=date(2023, 11, 1))
    expired_pending = await make_event(
        organization, location, start_date=date(2023, 11, 1), status=EventStatus.PENDING
    )
    ends_today = await make_event(organization, location)
    running = await make_event(
        organization,
        location,
        start_date=date(2023, 11, 1),
        recurrence=DailyRecurrence(repeat_until=date(2024, 2, 1)),
    )

    async with session_factory() as db:
        assert await archive_expired_events(db, settings.today()) == 1

    assert await _status(session_factory, expired.id) is EventStatus.ARCHIVED
    assert await _status(session_factory, expired_pending.id) is EventStatus.PENDING
    assert await _status(session_factory, ends_today.id) is EventStatus.APPROVED
    assert await _status(session_factory, running.id) is EventStatus.APPROVED


async def test_nightly_job_uses_local_today(directory, make_event, session_factory, settings):
    expired = await make_event(
        directory["organization"], directory["location"], start_date=date(2023, 12, 31)
    )

    # Disabled in the test settings: registers the context without starting.
    scheduler.setup_scheduler(session_factory, settings)
    assert not scheduler.scheduler.running

    await scheduler._archive_expired_events()
    assert await _status(session_factory, expired.id) is EventStatus.ARCHIVED


async def test_health(client):
    response = await client.get("/api/system/health")
    assert response.status_code == 200
    assert response.json()["data"]["status"] == "healthy"
