import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ADMIN_EMAIL", "")
os.environ.setdefault("ADMIN_PASSWORD", "")

from datetime import datetime, timezone
import uuid

import httpx
import pytest
from sqlalchemy import update

from app.main import app
from app.models.agent_approval import AgentApproval
from app.models.listing import Listing
from app.models.user import User
from app.services.comparison import comparison_store
from app.services.toasts import toast_board
from app.utils.database import AsyncSessionLocal, create_tables, drop_tables, engine
from app.utils.security import create_access_token, hash_password


@pytest.fixture(autouse=True)
async def database():
    await create_tables()
    toast_board.clear()
    yield
    await drop_tables()
    await engine.dispose()
    comparison_store._lists.clear()


@pytest.fixture
async def db():
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture
async def client():
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


async def register(client, email, role="home_seeker", password="secret123", name="Test User", **extra) -> dict:
    payload = {"name": name, "email": email, "password": password, "role": role, **extra}
    if role == "agent":
        payload.setdefault("whatsapp_number", "+2348012345678")
    response = await client.post("/api/v1/auth/register", json=payload)
    assert response.status_code == 200, response.text
    # Tests authenticate with explicit headers only
    client.cookies.clear()
    return response.json()


@pytest.fixture
async def admin(db):
    user = User(
        email="admin@findshelta.test",
        name="Admin User",
        role="admin",
        password_hash=hash_password("adminpass"),
        token_version=0,
        is_verified=True,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


@pytest.fixture
def admin_headers(admin):
    token = create_access_token({"sub": str(admin.id), "role": "admin", "ver": 0})
    return bearer(token)


@pytest.fixture
async def seeker_headers(client):
    session = await register(client, "seeker@example.com", name="Ada Seeker")
    return bearer(session["access_token"])


@pytest.fixture
async def pending_agent(client):
    """Freshly registered agent, approval still pending"""
    session = await register(client, "agent@example.com", role="agent", name="Tunde Agent")
    return {"user": session["user"], "headers": bearer(session["access_token"])}


@pytest.fixture
async def approved_agent(pending_agent, db):
    """Agent approved just now, so inside the free trial"""
    await db.execute(
        update(AgentApproval)
        .where(AgentApproval.user_id == uuid.UUID(pending_agent["user"]["id"]))
        .values(status="approved", approved_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return pending_agent


async def make_listing(db, agent_id, approved=True, **overrides) -> Listing:
    """Insert a listing directly, bypassing moderation"""
    values = dict(
        agent_id=uuid.UUID(agent_id) if isinstance(agent_id, str) else agent_id,
        title="3 Bedroom Flat",
        description="Spacious flat close to the expressway",
        listing_type="rent",
        price=450000,
        currency="NGN",
        location_city="Lekki",
        location_state="Lagos",
        location_address="12 Admiralty Way, Lekki",
        bedrooms=3,
        bathrooms=2,
        amenities=["Parking", "Security"],
        images=["https://img.example.com/1.jpg", "https://img.example.com/2.jpg", "https://img.example.com/3.jpg"],
        status="approved" if approved else "pending",
        is_approved=approved,
        views=0,
    )
    values.update(overrides)
    listing = Listing(**values)
    db.add(listing)
    await db.commit()
    await db.refresh(listing)
    return listing
