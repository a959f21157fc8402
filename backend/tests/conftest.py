import uuid
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient

from moafinder.auth.models import Role, User
from moafinder.auth.utils import create_access_token, hash_password
from moafinder.config import Settings
from moafinder.events.models import Event, EventStatus
from moafinder.events.recurrence import OnceRecurrence, compute_expiry_date
from moafinder.locations.models import Location
from moafinder.main import create_app, init_database
from moafinder.organizations.models import Organization

TODAY = date(2024, 1, 1)  # a Monday
PASSWORD = "Sup3r-Secret-Pass!"


class FrozenSettings(Settings):
    def today(self) -> date:
        return TODAY


@pytest.fixture(scope="session")
def password_hash() -> str:
    return hash_password(PASSWORD)


@pytest.fixture
def settings() -> Settings:
    return FrozenSettings(
        database_url="sqlite+aiosqlite:///:memory:",
        secret_key="test-secret",
        archive_expired_events=False,
    )


@pytest.fixture
async def app(settings):
    # ASGITransport does not run the lifespan, so set up the database here.
    application = create_app(settings)
    await init_database(application)
    yield application
    await application.state.engine.dispose()


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac


@pytest.fixture
def session_factory(app):
    return app.state.session_factory


@pytest.fixture
def auth_headers(settings):
    def _headers(user: User) -> dict:
        token = create_access_token(user.id, user.role.value, settings)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def make_user(session_factory, password_hash):
    async def _make(
        role: Role = Role.ORGANIZER,
        organization_id: uuid.UUID | None = None,
        email: str | None = None,
        disabled: bool = False,
    ) -> User:
        async with session_factory() as db:
            user = User(
                email=email or f"{uuid.uuid4().hex[:10]}@example.org",
                hashed_password=password_hash,
                name="Test User",
                role=role,
                organization_id=organization_id,
                disabled=disabled,
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user

    return _make


@pytest.fixture
def make_organization(session_factory):
    async def _make(owner: User | None = None, name: str = "Kiezladen e.V.", approved=True):
        async with session_factory() as db:
            organization = Organization(
                name=name,
                email="info@kiezladen.example.org",
                owner_id=owner.id if owner else None,
                approved=approved,
            )
            db.add(organization)
            await db.commit()
            await db.refresh(organization)
            return organization

    return _make


@pytest.fixture
def make_location(session_factory):
    async def _make(organization: Organization, short_name: str = "Kiezladen") -> Location:
        async with session_factory() as db:
            location = Location(
                name=f"{short_name} Moabit",
                short_name=short_name,
                street="Waldstraße",
                number="12",
                postal_code="10551",
            )
            location.organizations = [await db.get(Organization, organization.id)]
            db.add(location)
            await db.commit()
            await db.refresh(location)
            return location

    return _make


@pytest.fixture
def make_event(session_factory):
    async def _make(
        organization: Organization,
        location: Location,
        title: str = "Nachbarschaftscafé",
        start_date: date = TODAY,
        recurrence=None,
        status: EventStatus = EventStatus.APPROVED,
        expiry_date: date | None = None,
        time_from: str | None = None,
        **fields,
    ) -> Event:
        recurrence = recurrence or OnceRecurrence()
        async with session_factory() as db:
            event = Event(
                title=title,
                description="Offener Treff für alle im Kiez.",
                start_date=start_date,
                time_from=time_from,
                location_id=location.id,
                organizer_id=organization.id,
                status=status,
                expiry_date=expiry_date
                or compute_expiry_date(start_date, None, recurrence.repeat_until),
                **fields,
            )
            event.recurrence = recurrence
            db.add(event)
            await db.commit()
            await db.refresh(event)
            return event

    return _make


@pytest.fixture
async def directory(make_user, make_organization, make_location):
    """An organization with its organizer, a location, plus an editor and an admin."""
    organizer = await make_user(Role.ORGANIZER)
    organization = await make_organization(owner=organizer)
    location = await make_location(organization)
    return {
        "organizer": organizer,
        "organization": organization,
        "location": location,
        "editor": await make_user(Role.EDITOR),
        "admin": await make_user(Role.ADMIN),
    }
