"""Pytest configuration and fixtures for WineHub tests with real MongoDB."""

import asyncio
import os
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from beanie import init_beanie
from httpx import ASGITransport, AsyncClient
from motor.motor_asyncio import AsyncIOMotorClient

from winehub.database import get_document_models
from winehub.models import User, UserRole
from winehub.routers import ai as ai_router
from winehub.routers import upload as upload_router
from winehub.services.auth import create_access_token, get_password_hash
from winehub.services.upload_storage import UploadStorageService

# MongoDB connection URL for tests (can be overridden with env var)
TEST_MONGODB_URL = os.environ.get("TEST_MONGODB_URL", "mongodb://localhost:27017")

TEST_PASSWORD = "testpassword"


# Create a test-specific app to avoid lifespan conflicts
def create_test_app():
    """Create a FastAPI app configured for testing (no database lifespan)."""
    from fastapi import FastAPI

    from winehub import __version__
    from winehub.main import app as main_app
    from winehub.main import register_exception_handlers
    from winehub.routers.auth import limiter

    # Empty lifespan for testing - we manage the database ourselves
    @asynccontextmanager
    async def test_lifespan(app: FastAPI):
        yield

    test_app = FastAPI(
        title="WineHub Test",
        version=__version__,
        lifespan=test_lifespan,
    )

    # Copy all routes from the main app
    for route in main_app.routes:
        test_app.routes.append(route)

    limiter.enabled = False
    test_app.state.limiter = limiter
    register_exception_handlers(test_app)

    return test_app


# Get or create test app (singleton for test session)
_test_app = None


def get_test_app():
    """Get the test app singleton."""
    global _test_app
    if _test_app is None:
        _test_app = create_test_app()
    return _test_app


@pytest.fixture(scope="session")
def event_loop_policy():
    """Use the default event loop policy."""
    return asyncio.DefaultEventLoopPolicy()


@pytest_asyncio.fixture(scope="function")
async def mongo_client():
    """Create a MongoDB client for testing."""
    client = AsyncIOMotorClient(
        TEST_MONGODB_URL,
        maxPoolSize=10,
        minPoolSize=1,
    )
    yield client
    client.close()


@pytest_asyncio.fixture(scope="function")
async def init_test_db(mongo_client):
    """Initialize Beanie with a unique test database.

    Creates a unique database for each test function and drops it after the test.
    """
    db_name = f"test_winehub_{uuid.uuid4().hex[:8]}"
    db = mongo_client[db_name]

    await init_beanie(
        database=db,
        document_models=get_document_models(),
    )
    yield db

    await mongo_client.drop_database(db_name)


@pytest.fixture(autouse=True)
def upload_root(tmp_path):
    """Point upload storage at a per-test directory."""
    root = tmp_path / "uploads"
    upload_router.set_storage(UploadStorageService(upload_dir=root))
    yield root
    upload_router.set_storage(None)
    ai_router.set_bottle_image_service(None)


async def create_user(
    email: str,
    role: UserRole,
    first_name: str = "Test",
    last_name: str = "User",
    is_active: bool = True,
) -> User:
    user = User(
        email=email,
        hashed_password=get_password_hash(TEST_PASSWORD),
        first_name=first_name,
        last_name=last_name,
        role=role,
        is_active=is_active,
    )
    await user.insert()
    return user


@asynccontextmanager
async def client_for(user: User | None) -> AsyncGenerator[AsyncClient, None]:
    """Open an API client authenticated as user, or anonymous for None."""
    headers = {}
    if user is not None:
        headers["Authorization"] = f"Bearer {create_access_token(str(user.id))}"
    transport = ASGITransport(app=get_test_app())
    async with AsyncClient(transport=transport, base_url="http://test", headers=headers) as ac:
        yield ac


@pytest.fixture
def user_factory(init_test_db):
    """Coroutine function creating a user with the test password."""
    return create_user


@pytest.fixture
def client_factory():
    """Async context manager opening a client for a given user."""
    return client_for


@pytest_asyncio.fixture(scope="function")
async def admin_user(init_test_db) -> User:
    return await create_user("admin@example.com", UserRole.ADMIN, "Ada", "Admin")


@pytest_asyncio.fixture(scope="function")
async def editor_user(init_test_db) -> User:
    return await create_user("editor@example.com", UserRole.EDITOR, "Ed", "Itor")


@pytest_asyncio.fixture(scope="function")
async def other_editor_user(init_test_db) -> User:
    return await create_user("editor2@example.com", UserRole.EDITOR, "Other", "Editor")


@pytest_asyncio.fixture(scope="function")
async def viewer_user(init_test_db) -> User:
    return await create_user("viewer@example.com", UserRole.VIEWER, "Vi", "Ewer")


@pytest_asyncio.fixture(scope="function")
async def client(admin_user) -> AsyncGenerator[AsyncClient, None]:
    """Client authenticated as an admin."""
    async with client_for(admin_user) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def editor_client(editor_user) -> AsyncGenerator[AsyncClient, None]:
    async with client_for(editor_user) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def other_editor_client(other_editor_user) -> AsyncGenerator[AsyncClient, None]:
    async with client_for(other_editor_user) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def viewer_client(viewer_user) -> AsyncGenerator[AsyncClient, None]:
    async with client_for(viewer_user) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def unauthenticated_client(init_test_db) -> AsyncGenerator[AsyncClient, None]:
    """Create an async test client without authentication."""
    async with client_for(None) as ac:
        yield ac


# ============================================================================
# Catalog payloads and factories
# ============================================================================


def winery_payload(**overrides) -> dict:
    payload = {
        "name": f"Winery {uuid.uuid4().hex[:6]}",
        "description": "Family estate on the valley floor.",
        "status": "published",
    }
    payload.update(overrides)
    return payload


def wine_payload(winery_id: str, **overrides) -> dict:
    payload = {
        "name": "Estate Cabernet",
        "winery": winery_id,
        "description": "Structured and age-worthy.",
        "country": "USA",
        "region": "Napa Valley",
        "type": "red",
        "tastingNotes": "Blackcurrant, cedar, graphite.",
        "variety": "Cabernet Sauvignon",
        "foodPairing": "Grilled lamb",
        "status": "published",
    }
    payload.update(overrides)
    return payload


def vintage_payload(wine_id: str, year: int = 2020, **overrides) -> dict:
    payload = {
        "wine": wine_id,
        "year": year,
        "notes": "Warm growing season.",
        "production": {"cases": 1200, "bottles": 14400},
        "pricing": {"wholesale": 40, "retail": 75, "currency": "USD"},
        "status": "published",
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def make_winery():
    """Create a winery through the API and return its data."""

    async def _make(client: AsyncClient, **overrides) -> dict:
        response = await client.post("/api/wineries", json=winery_payload(**overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_wine(make_winery):
    """Create a wine (and a winery when none is given) through the API."""

    async def _make(client: AsyncClient, winery_id: str | None = None, **overrides) -> dict:
        if winery_id is None:
            winery_id = (await make_winery(client))["id"]
        response = await client.post("/api/wines", json=wine_payload(winery_id, **overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def make_vintage(make_wine):
    """Create a vintage (and a wine when none is given) through the API."""

    async def _make(
        client: AsyncClient,
        wine_id: str | None = None,
        year: int = 2020,
        **overrides,
    ) -> dict:
        if wine_id is None:
            wine_id = (await make_wine(client))["id"]
        response = await client.post("/api/vintages", json=vintage_payload(wine_id, year, **overrides))
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make


@pytest.fixture
def sample_image_bytes() -> bytes:
    """Create sample image bytes for testing."""
    # Minimal valid PNG (1x1 pixel, red)
    png_data = bytes([
        0x89, 0x50, 0x4E, 0x47, 0x0D, 0x0A, 0x1A, 0x0A,  # PNG signature
        0x00, 0x00, 0x00, 0x0D,  # IHDR length
        0x49, 0x48, 0x44, 0x52,  # IHDR
        0x00, 0x00, 0x00, 0x01,  # width: 1
        0x00, 0x00, 0x00, 0x01,  # height: 1
        0x08, 0x02,  # bit depth: 8, color type: RGB
        0x00, 0x00, 0x00,  # compression, filter, interlace
        0x90, 0x77, 0x53, 0xDE,  # CRC
        0x00, 0x00, 0x00, 0x0C,  # IDAT length
        0x49, 0x44, 0x41, 0x54,  # IDAT
        0x08, 0xD7, 0x63, 0xF8, 0xFF, 0xFF, 0x3F, 0x00,  # compressed data
        0x05, 0xFE, 0x02, 0xFE,  # CRC
        0xA3, 0x1A, 0x8D, 0xEB,  # CRC
        0x00, 0x00, 0x00, 0x00,  # IEND length
        0x49, 0x45, 0x4E, 0x44,  # IEND
        0xAE, 0x42, 0x60, 0x82,  # CRC
    ])
    return png_data
