"""Shared test fixtures and configuration."""
import os
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["AUTH_PASSWORD"] = "testpass123"
os.environ["CANTEEN_NAME"] = "Test Canteen"

from canteen.main import app
from canteen.api import auth
from canteen.core.dependencies import get_order_events
from canteen.db.database import get_db
from canteen.db.models import Base, MenuItem, Profile, TimeSlot
from canteen.services.notifications.feed import OrderEventFeed


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "testpass123"


@pytest.fixture
async def test_db_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def test_db(test_db_engine):
    """Create test database session."""
    async_session = async_sessionmaker(
        test_db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session


@pytest.fixture
def event_feed():
    """Fresh order change feed per test."""
    return OrderEventFeed()


@pytest.fixture
async def customer(test_db):
    """Regular customer profile."""
    profile = Profile(id="user-1", full_name="Asha Customer", role="user")
    test_db.add(profile)
    await test_db.commit()
    return profile


@pytest.fixture
async def other_customer(test_db):
    """Second customer profile."""
    profile = Profile(id="user-2", full_name="Ravi Customer", role="user")
    test_db.add(profile)
    await test_db.commit()
    return profile


@pytest.fixture
async def staff(test_db):
    """Staff (admin) profile."""
    profile = Profile(id="staff-1", full_name="Counter Staff", role="admin")
    test_db.add(profile)
    await test_db.commit()
    return profile


@pytest.fixture
async def menu_items(test_db):
    """Menu with made-to-order, immediate and unavailable items."""
    items = {
        "biryani": MenuItem(
            name="Veg Biryani", price=120, category="Meals",
            is_veg=True, type="made-to-order", available=True,
        ),
        "samosa": MenuItem(
            name="Samosa", price=20, category="Snacks",
            is_veg=True, type="immediate", available=True,
        ),
        "dosa": MenuItem(
            name="Masala Dosa", price=80, category="Meals",
            is_veg=True, type="made-to-order", available=True,
        ),
        "coffee": MenuItem(
            name="Cold Coffee", price=60, category="Drinks",
            is_veg=True, type="immediate", available=False,
        ),
    }
    test_db.add_all(items.values())
    await test_db.commit()
    return items


@pytest.fixture
async def time_slots(test_db):
    """Pickup slots with different capacities."""
    slots = [
        TimeSlot(time="12:00", max_orders=25),
        TimeSlot(time="12:30", max_orders=4),
        TimeSlot(time="13:00", max_orders=10),
    ]
    test_db.add_all(slots)
    await test_db.commit()
    return slots


@pytest.fixture
def seed_path():
    """Return path to test seed YAML file."""
    return Path(__file__).parent / "fixtures" / "seed.yaml"


@pytest.fixture
def clean_auth_sessions():
    """Clean up authentication sessions before and after tests."""
    auth._sessions.clear()
    yield
    auth._sessions.clear()


@pytest.fixture
def override_dependencies(test_db, event_feed):
    """Point the app at the test database and feed."""
    async def _override_get_db():
        yield test_db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_order_events] = lambda: event_feed
    yield
    app.dependency_overrides.clear()


@pytest.fixture
async def test_client(override_dependencies, clean_auth_sessions):
    """Unauthenticated API client."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client


async def _login(profile: Profile) -> AsyncClient:
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    response = await client.post(
        "/api/auth/login", json={"user_id": profile.id, "password": TEST_PASSWORD}
    )
    assert response.status_code == 200
    return client


@pytest.fixture
async def customer_client(override_dependencies, clean_auth_sessions, customer):
    """API client logged in as a customer."""
    client = await _login(customer)
    yield client
    await client.aclose()


@pytest.fixture
async def staff_client(override_dependencies, clean_auth_sessions, staff):
    """API client logged in as staff."""
    client = await _login(staff)
    yield client
    await client.aclose()


@pytest.fixture
async def other_customer_client(override_dependencies, clean_auth_sessions, other_customer):
    """API client logged in as a second customer."""
    client = await _login(other_customer)
    yield client
    await client.aclose()
