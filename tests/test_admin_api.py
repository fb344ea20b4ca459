from datetime import datetime, timedelta, timezone
from decimal import Decimal
import uuid

from sqlalchemy import select

from app.api.admin.dashboard import growth_percent
from app.models.agent_approval import AgentApproval
from app.models.payment import Payment
from app.models.user import User
from app.services.moderation import ModerationService
from app.services.notification_hub import ChannelFilter, NotificationHub
from app.services.toasts import ToastBoard
from conftest import make_listing


async def submit_payment(client, agent, plan="monthly"):
    response = await client.post("/api/v1/agents/me/payments", headers=agent["headers"], json={
        "plan": plan, "proof_of_payment": "https://receipts.example.com/r.png",
    })
    return response.json()


async def test_admin_routes_require_admin(client, seeker_headers):
    assert (await client.get("/admin/stats", headers=seeker_headers)).status_code == 403
    assert (await client.get("/admin/listings/pending")).status_code == 401


async def test_stats(client, admin_headers, pending_agent, db):
    await make_listing(db, pending_agent["user"]["id"], approved=False)
    await make_listing(db, pending_agent["user"]["id"], approved=True)
    await submit_payment(client, pending_agent)

    data = (await client.get("/admin/stats", headers=admin_headers)).json()
    assert data["total_listings"] == 2
    assert data["pending_listings"] == 1
    assert data["total_agents"] == 1
    assert data["pending_agents"] == 1
    assert data["pending_payments"] == 1


async def add_payment(db, agent_id, amount, days_ago, status="approved"):
    payment = Payment(
        agent_id=uuid.UUID(agent_id),
        amount=amount,
        plan="monthly",
        proof_of_payment="https://receipts.example.com/r.png",
        status=status,
        submitted_at=datetime.now(timezone.utc) - timedelta(days=days_ago),
    )
    db.add(payment)
    await db.commit()


async def test_analytics_revenue_and_growth(client, admin_headers, pending_agent, seeker_headers, db):
    agent_id = pending_agent["user"]["id"]
    await add_payment(db, agent_id, 200000, days_ago=2)
    await add_payment(db, agent_id, 100000, days_ago=20)
    await add_payment(db, agent_id, 200000, days_ago=45)
    await add_payment(db, agent_id, 1000000, days_ago=80)
    await add_payment(db, agent_id, 500000, days_ago=1, status="pending")
    await make_listing(db, agent_id, views=7)
    await make_listing(db, agent_id, approved=False, views=3)

    data = (await client.get("/admin/analytics", headers=admin_headers)).json()
    assert data["range"] == "30d"
    assert data["total_revenue"] == 300000
    assert data["previous_revenue"] == 200000
    assert data["growth_percent"] == 50
    assert data["total_agents"] == 1
    assert data["total_listings"] == 2
    assert data["total_views"] == 10
    assert [a["description"] for a in data["recent_activity"]] == [
        "Payment of ₦200,000 received",
        "Payment of ₦100,000 received",
    ]

    week = (await client.get("/admin/analytics", params={"range": "7d"}, headers=admin_headers)).json()
    assert week["total_revenue"] == 200000
    assert week["growth_percent"] == 0

    quarter = (await client.get("/admin/analytics", params={"range": "90d"}, headers=admin_headers)).json()
    assert quarter["total_revenue"] == 1500000


async def test_analytics_rejects_unknown_range(client, admin_headers):
    response = await client.get("/admin/analytics", params={"range": "1y"}, headers=admin_headers)
    assert response.status_code == 422


def test_growth_percent():
    assert growth_percent(Decimal("150"), Decimal("100")) == 50
    assert growth_percent(Decimal("50"), Decimal("100")) == -50
    assert growth_percent(Decimal("110"), Decimal("100")) == 10
    assert growth_percent(Decimal("100"), Decimal("0")) == 0


async def test_recent_activity(client, admin_headers, pending_agent, db):
    await make_listing(db, pending_agent["user"]["id"], approved=False, title="Bungalow in Ajah")
    await submit_payment(client, pending_agent)

    data = (await client.get("/admin/recent-activity", headers=admin_headers)).json()
    assert data["recent_listings"][0]["title"] == "Bungalow in Ajah"
    assert data["recent_listings"][0]["agent_name"] == "Tunde Agent"
    assert data["recent_agents"][0]["email"] == "agent@example.com"
    assert data["recent_payments"][0]["plan"] == "monthly"


async def test_approve_listing_flow(client, admin_headers, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"], approved=False, title="Terrace in Lekki")

    pending = (await client.get("/admin/listings/pending", headers=admin_headers)).json()
    assert pending["count"] == 1
    assert pending["listings"][0]["agent_name"] == "Tunde Agent"

    response = await client.post(f"/admin/listings/{listing.id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["is_approved"] is True

    toasts = (await client.get("/admin/toasts", headers=admin_headers)).json()["toasts"]
    assert toasts[-1]["message"] == 'Listing "Terrace in Lekki" by Tunde Agent has been approved'

    public = await client.get(f"/api/v1/listings/{listing.id}")
    assert public.status_code == 200

    stats = (await client.get("/admin/stats", headers=admin_headers)).json()
    assert stats["approved_today"] == 1
    assert stats["pending_listings"] == 0


async def test_reject_listing_keeps_it_out_of_search(client, admin_headers, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"], approved=False)

    response = await client.post(f"/admin/listings/{listing.id}/reject", headers=admin_headers)
    assert response.json()["status"] == "rejected"

    assert (await client.get(f"/api/v1/listings/{listing.id}")).status_code == 404
    assert (await client.get("/admin/stats", headers=admin_headers)).json()["rejected_today"] == 1


async def test_second_decision_conflicts(client, admin_headers, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"], approved=False)

    first = await client.post(f"/admin/listings/{listing.id}/approve", headers=admin_headers)
    assert first.status_code == 200

    second = await client.post(f"/admin/listings/{listing.id}/reject", headers=admin_headers)
    assert second.status_code == 409
    assert second.json()["detail"]["status"] == "approved"


async def test_unknown_record_is_404(client, admin_headers):
    response = await client.post(f"/admin/payments/{uuid.uuid4()}/approve", headers=admin_headers)
    assert response.status_code == 404


async def test_approve_agent_unlocks_listing(client, admin_headers, pending_agent):
    agents = (await client.get("/admin/agents", params={"status": "pending"}, headers=admin_headers)).json()
    assert agents["count"] == 1
    approval_id = agents["agents"][0]["id"]

    response = await client.post(f"/admin/agents/{approval_id}/approve", headers=admin_headers)
    assert response.status_code == 200
    assert response.json()["status"] == "approved"
    assert response.json()["approved_at"] is not None

    toasts = (await client.get("/admin/toasts", headers=admin_headers)).json()["toasts"]
    assert toasts[-1]["message"] == "registration approved for agent@example.com"

    status = (await client.get("/api/v1/agents/me/status", headers=pending_agent["headers"])).json()
    assert status["can_list_property"] is True
    assert status["subscription"]["plan"] == "free_trial"


async def test_reject_agent_clears_approval_date(client, admin_headers, pending_agent):
    agents = (await client.get("/admin/agents", headers=admin_headers)).json()
    approval_id = agents["agents"][0]["id"]

    response = await client.post(f"/admin/agents/{approval_id}/reject", headers=admin_headers)
    assert response.json()["status"] == "rejected"
    assert response.json()["approved_at"] is None

    status = (await client.get("/api/v1/agents/me/status", headers=pending_agent["headers"])).json()
    assert status["notice"] == "rejected"


async def test_approve_payment_sets_expiry_and_verifies_agent(client, admin_headers, pending_agent, db):
    payment = await submit_payment(client, pending_agent, plan="quarterly")

    queue = (await client.get("/admin/payments/pending", headers=admin_headers)).json()
    assert queue["payments"][0]["agent_email"] == "agent@example.com"

    response = await client.post(f"/admin/payments/{payment['id']}/approve", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    expires_at = datetime.fromisoformat(data["expires_at"])
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)
    days = (expires_at - datetime.now(timezone.utc)).days
    assert 88 <= days <= 92

    db.expire_all()
    agent = await db.get(User, uuid.UUID(pending_agent["user"]["id"]))
    assert agent.is_verified is True

    toasts = (await client.get("/admin/toasts", headers=admin_headers)).json()["toasts"]
    assert toasts[-1]["message"] == "payment approved for agent@example.com"


async def test_reject_payment(client, admin_headers, pending_agent, db):
    payment = await submit_payment(client, pending_agent)
    response = await client.post(f"/admin/payments/{payment['id']}/reject", headers=admin_headers)
    assert response.json()["status"] == "rejected"

    db.expire_all()
    stored = (await db.execute(select(Payment))).scalar_one()
    assert stored.reviewed_at is not None
    assert stored.expires_at is None


async def test_decisions_publish_agent_notifications(pending_agent, admin, db):
    hub = NotificationHub(queue_size=10)
    service = ModerationService(hub=hub, toasts=ToastBoard(ttl_seconds=5))
    agent_id = pending_agent["user"]["id"]
    stream = hub.subscribe(ChannelFilter(table="agent_approvals", column="user_id", value=agent_id))

    approval = (await db.execute(select(AgentApproval))).scalar_one()
    await service.approve_agent(db, approval.id, admin)

    received = []
    async for change in stream:
        received.append(change)
        stream.close()

    assert received[0].new["status"] == "approved"
    assert received[0].new["user_id"] == agent_id
