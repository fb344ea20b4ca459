"""
Admin Dashboard API endpoints
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from datetime import datetime, timedelta, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, Any, Literal
import logging

from app.middleware.auth import require_admin
from app.models.agent_approval import AgentApproval, ApprovalStatus
from app.models.listing import Listing, ListingStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import User, UserRole
from app.services.toasts import toast_board
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


async def count_rows(db: AsyncSession, column, *conditions) -> int:
    query = select(func.count(column))
    if conditions:
        query = query.where(*conditions)
    result = await db.execute(query)
    return result.scalar() or 0


async def sum_rows(db: AsyncSession, column, *conditions) -> Decimal:
    query = select(func.sum(column))
    if conditions:
        query = query.where(*conditions)
    result = await db.execute(query)
    return Decimal(str(result.scalar() or 0))


@router.get("/stats")
async def admin_stats(db: AsyncSession = Depends(get_db)) -> Dict[str, Any]:
    """Moderation console counters"""

    try:
        now = datetime.now(timezone.utc)
        today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)

        # Listings
        total_listings = await count_rows(db, Listing.id)
        pending_listings = await count_rows(db, Listing.id, Listing.status == ListingStatus.PENDING.value)
        approved_today = await count_rows(
            db, Listing.id,
            Listing.status == ListingStatus.APPROVED.value,
            Listing.approved_at >= today_start
        )
        rejected_today = await count_rows(
            db, Listing.id,
            Listing.status == ListingStatus.REJECTED.value,
            Listing.rejected_at >= today_start
        )

        # Agents
        total_agents = await count_rows(db, AgentApproval.id)
        pending_agents = await count_rows(db, AgentApproval.id, AgentApproval.status == ApprovalStatus.PENDING.value)

        # Payments
        pending_payments = await count_rows(db, Payment.id, Payment.status == PaymentStatus.PENDING.value)

        return {
            "total_listings": total_listings,
            "pending_listings": pending_listings,
            "approved_today": approved_today,
            "rejected_today": rejected_today,
            "total_agents": total_agents,
            "pending_agents": pending_agents,
            "pending_payments": pending_payments,
            "timestamp": now.isoformat()
        }

    except Exception as e:
        logger.error(f"Failed to get admin stats: {e}")
        raise HTTPException(status_code=500, detail="Failed to get admin stats, please try again")


@router.get("/recent-activity")
async def recent_activity(db: AsyncSession = Depends(get_db), limit: int = 10):
    """Latest listing submissions, agent registrations and payments"""

    try:
        recent_listings_result = await db.execute(
            select(Listing.id, Listing.title, Listing.status, Listing.created_at, User.name)
            .join(User, User.id == Listing.agent_id)
            .order_by(Listing.created_at.desc())
            .limit(limit)
        )
        recent_listings = [
            {
                "id": str(row.id),
                "title": row.title,
                "agent_name": row.name,
                "status": row.status,
                "created_at": row.created_at.isoformat() if row.created_at else None
            }
            for row in recent_listings_result.fetchall()
        ]

        recent_agents_result = await db.execute(
            select(AgentApproval.id, AgentApproval.full_name, AgentApproval.email,
                   AgentApproval.status, AgentApproval.created_at)
            .order_by(AgentApproval.created_at.desc())
            .limit(limit)
        )
        recent_agents = [
            {
                "id": str(row.id),
                "name": row.full_name,
                "email": row.email,
                "status": row.status,
                "created_at": row.created_at.isoformat() if row.created_at else None
            }
            for row in recent_agents_result.fetchall()
        ]

        recent_payments_result = await db.execute(
            select(Payment.id, Payment.plan, Payment.amount, Payment.status, Payment.submitted_at, User.email)
            .join(User, User.id == Payment.agent_id)
            .order_by(Payment.submitted_at.desc())
            .limit(limit)
        )
        recent_payments = [
            {
                "id": str(row.id),
                "plan": row.plan,
                "amount": float(row.amount),
                "agent_email": row.email,
                "status": row.status,
                "submitted_at": row.submitted_at.isoformat() if row.submitted_at else None
            }
            for row in recent_payments_result.fetchall()
        ]

        return {
            "recent_listings": recent_listings,
            "recent_agents": recent_agents,
            "recent_payments": recent_payments,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }

    except Exception as e:
        logger.error(f"Failed to get recent activity: {e}")
        raise HTTPException(status_code=500, detail="Failed to get recent activity, please try again")


ANALYTICS_RANGES = {"7d": 7, "30d": 30, "90d": 90}


def growth_percent(current: Decimal, previous: Decimal) -> int:
    """Whole-percent change against the previous window; 0 when there was no earlier revenue"""
    if previous <= 0:
        return 0
    change = (current - previous) / previous * 100
    return int(change.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


@router.get("/analytics")
async def admin_analytics(
    time_range: Literal["7d", "30d", "90d"] = Query("30d", alias="range"),
    db: AsyncSession = Depends(get_db)
) -> Dict[str, Any]:
    """Revenue, growth and platform totals for the analytics page"""

    try:
        end = datetime.now(timezone.utc)
        window = timedelta(days=ANALYTICS_RANGES[time_range])
        start = end - window
        previous_start = start - window
        approved = Payment.status == PaymentStatus.APPROVED.value

        # Revenue
        total_revenue = await sum_rows(db, Payment.amount, approved, Payment.submitted_at >= start)
        previous_revenue = await sum_rows(
            db, Payment.amount,
            approved,
            Payment.submitted_at >= previous_start,
            Payment.submitted_at < start
        )

        # Platform totals
        total_agents = await count_rows(db, User.id, User.role == UserRole.AGENT.value)
        total_listings = await count_rows(db, Listing.id)
        total_views = int(await sum_rows(db, Listing.views))

        payments_result = await db.execute(
            select(Payment.id, Payment.amount, Payment.plan, Payment.submitted_at)
            .where(approved, Payment.submitted_at >= start)
            .order_by(Payment.submitted_at.desc())
            .limit(5)
        )
        recent_activity = [
            {
                "type": "payment",
                "description": f"Payment of ₦{row.amount:,.0f} received",
                "amount": float(row.amount),
                "plan": row.plan,
                "timestamp": row.submitted_at.isoformat() if row.submitted_at else None
            }
            for row in payments_result.fetchall()
        ]

        return {
            "range": time_range,
            "total_revenue": float(total_revenue),
            "previous_revenue": float(previous_revenue),
            "growth_percent": growth_percent(total_revenue, previous_revenue),
            "total_agents": total_agents,
            "total_listings": total_listings,
            "total_views": total_views,
            "recent_activity": recent_activity,
            "timestamp": end.isoformat()
        }

    except Exception as e:
        logger.error(f"Failed to get analytics: {e}")
        raise HTTPException(status_code=500, detail="Failed to get analytics, please try again")


@router.get("/toasts")
async def active_toasts():
    """Confirmations from recent moderation decisions; each lives a few seconds"""
    return {"toasts": [t.to_dict() for t in toast_board.active()]}
