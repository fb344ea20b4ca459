from datetime import datetime, timedelta, timezone
import uuid

from sqlalchemy import select, update

from app.models.agent_approval import AgentApproval
from app.models.listing import Listing
from app.services import agent_status
from conftest import make_listing

LISTING = {
    "title": "2 Bedroom Apartment",
    "description": "Serviced apartment with 24/7 power",
    "listing_type": "rent",
    "price": 2500000,
    "location": "Yaba, Lagos",
    "bedrooms": 2,
    "bathrooms": 2,
    "amenities": ["Parking", "Generator"],
    "images": ["https://img.example.com/a.jpg"],
}


async def test_plans_catalog(client):
    response = await client.get("/api/v1/agents/plans")
    data = response.json()
    assert data["free_trial_days"] == 30
    plans = {p["plan"]: p for p in data["plans"]}
    assert plans["monthly"]["price"] == 15000
    assert plans["quarterly"]["months"] == 3
    assert plans["yearly"]["price"] == 150000


async def test_agent_routes_require_agent_role(client, seeker_headers):
    response = await client.get("/api/v1/agents/me/status", headers=seeker_headers)
    assert response.status_code == 403


async def test_pending_agent_status(client, pending_agent):
    response = await client.get("/api/v1/agents/me/status", headers=pending_agent["headers"])
    data = response.json()
    assert data["agent_status"] == "pending"
    assert data["can_list_property"] is False
    assert data["notice"] == "pending_approval"
    assert data["subscription"]["is_active"] is False
    assert data["subscription"]["plan"] is None


async def test_pending_agent_cannot_create_listing(client, pending_agent):
    response = await client.post("/api/v1/agents/me/listings", headers=pending_agent["headers"], json=LISTING)
    assert response.status_code == 403
    assert response.json()["detail"]["notice"] == "pending_approval"


async def test_rejected_agent_gets_rejected_notice(client, pending_agent, db):
    await db.execute(
        update(AgentApproval)
        .where(AgentApproval.user_id == uuid.UUID(pending_agent["user"]["id"]))
        .values(status="rejected")
    )
    await db.commit()

    response = await client.get("/api/v1/agents/me/status", headers=pending_agent["headers"])
    assert response.json()["notice"] == "rejected"


async def test_approved_agent_dashboard(client, approved_agent, db):
    await make_listing(db, approved_agent["user"]["id"], views=7)
    await make_listing(db, approved_agent["user"]["id"], approved=False, title="Pending one")

    response = await client.get("/api/v1/agents/me/dashboard", headers=approved_agent["headers"])
    assert response.status_code == 200
    data = response.json()
    assert data["agent_status"] == "approved"
    assert data["can_list_property"] is True
    assert data["subscription"]["plan"] == "free_trial"
    assert data["subscription"]["is_active"] is True
    assert data["stats"] == {
        "total_listings": 2,
        "approved_listings": 1,
        "pending_listings": 1,
        "rejected_listings": 0,
        "total_views": 7,
    }
    assert len(data["recent_listings"]) == 2


async def test_second_month_shows_monthly_plan(client, pending_agent, db):
    await db.execute(
        update(AgentApproval)
        .where(AgentApproval.user_id == uuid.UUID(pending_agent["user"]["id"]))
        .values(status="approved", approved_at=datetime.now(timezone.utc) - timedelta(days=40))
    )
    await db.commit()

    data = (await client.get("/api/v1/agents/me/status", headers=pending_agent["headers"])).json()
    assert data["subscription"]["plan"] == "monthly"
    assert data["can_list_property"] is True


async def test_failed_approval_lookup_is_terminal(client, approved_agent, monkeypatch):
    async def broken_fetch(db, user_id):
        raise RuntimeError("connection reset")

    monkeypatch.setattr(agent_status, "fetch_agent_approval", broken_fetch)

    data = (await client.get("/api/v1/agents/me/status", headers=approved_agent["headers"])).json()
    assert data["subscription"]["payment_status"] == "error"
    assert data["can_list_property"] is False
    assert "contact support" in data["support_message"]


async def test_create_listing_goes_to_moderation(client, approved_agent):
    response = await client.post("/api/v1/agents/me/listings", headers=approved_agent["headers"], json=LISTING)
    assert response.status_code == 201
    listing = response.json()
    assert listing["status"] == "pending"
    assert listing["is_approved"] is False
    assert listing["location_city"] == "Yaba"
    assert listing["location_state"] == "Lagos"
    assert listing["agent_whatsapp"] == "+2348012345678"
    assert listing["display_price"] == "₦2,500,000/year"

    mine = await client.get("/api/v1/agents/me/listings", headers=approved_agent["headers"])
    assert mine.json()["count"] == 1


async def test_location_without_state_defaults_to_lagos(client, approved_agent):
    response = await client.post(
        "/api/v1/agents/me/listings", headers=approved_agent["headers"], json={**LISTING, "location": "Surulere"}
    )
    assert response.json()["location_state"] == "Lagos"


async def test_editing_approved_listing_resets_moderation(client, approved_agent, db):
    listing = await make_listing(db, approved_agent["user"]["id"])

    response = await client.patch(
        f"/api/v1/agents/me/listings/{listing.id}",
        headers=approved_agent["headers"],
        json={"price": 500000, "location": "Ikeja, Lagos"},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "pending"
    assert data["is_approved"] is False
    assert data["price"] == 500000
    assert data["location_city"] == "Ikeja"


async def test_agent_cannot_edit_someone_elses_listing(client, approved_agent, admin, db):
    listing = await make_listing(db, admin.id)
    response = await client.patch(
        f"/api/v1/agents/me/listings/{listing.id}", headers=approved_agent["headers"], json={"title": "Mine now"}
    )
    assert response.status_code == 404


async def test_delete_listing(client, approved_agent, db):
    listing = await make_listing(db, approved_agent["user"]["id"])
    response = await client.delete(f"/api/v1/agents/me/listings/{listing.id}", headers=approved_agent["headers"])
    assert response.status_code == 200

    db.expire_all()
    result = await db.execute(select(Listing).where(Listing.id == listing.id))
    assert result.scalar_one_or_none() is None


async def test_submit_payment(client, pending_agent):
    response = await client.post("/api/v1/agents/me/payments", headers=pending_agent["headers"], json={
        "plan": "quarterly", "proof_of_payment": "https://receipts.example.com/123.png",
    })
    assert response.status_code == 201
    payment = response.json()
    assert payment["status"] == "pending"
    assert payment["amount"] == 40000

    history = await client.get("/api/v1/agents/me/payments", headers=pending_agent["headers"])
    assert len(history.json()["payments"]) == 1


async def test_payment_amount_must_match_plan(client, pending_agent):
    response = await client.post("/api/v1/agents/me/payments", headers=pending_agent["headers"], json={
        "plan": "monthly", "proof_of_payment": "https://receipts.example.com/1.png", "amount": 100,
    })
    assert response.status_code == 400


async def test_free_trial_is_not_purchasable(client, pending_agent):
    response = await client.post("/api/v1/agents/me/payments", headers=pending_agent["headers"], json={
        "plan": "free_trial", "proof_of_payment": "https://receipts.example.com/1.png",
    })
    assert response.status_code == 422
