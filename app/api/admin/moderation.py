"""
Admin Moderation API endpoints
Review queues and approve/reject actions for listings, agent registrations and payments
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, Dict, Any
import logging
import uuid

from app.api.agents import payment_out
from app.api.listings import listing_out
from app.middleware.auth import require_admin
from app.models.agent_approval import AgentApproval, ApprovalStatus
from app.models.listing import Listing, ListingStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services.moderation import ModerationConflict, RecordNotFound, moderation_service
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()


def approval_out(approval: AgentApproval) -> Dict[str, Any]:
    return {
        "id": str(approval.id),
        "user_id": str(approval.user_id),
        "full_name": approval.full_name,
        "email": approval.email,
        "phone": approval.phone,
        "company_name": approval.company_name,
        "status": approval.status,
        "approved_at": approval.approved_at.isoformat() if approval.approved_at else None,
        "created_at": approval.created_at.isoformat() if approval.created_at else None,
    }


async def run_decision(action, db: AsyncSession, record_id: uuid.UUID, admin: User):
    """Run a moderation action, mapping its failures onto HTTP errors"""
    try:
        return await action(db, record_id, admin)
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ModerationConflict as e:
        raise HTTPException(status_code=409, detail={"message": e.message, "status": e.current_status})
    except Exception as e:
        logger.error(f"Moderation action {action.__name__} failed for {record_id}: {e}")
        await db.rollback()
        raise HTTPException(status_code=500, detail="Moderation failed, please try again")


# Listings

@router.get("/listings/pending")
async def pending_listings(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Listings waiting for review, oldest first"""
    result = await db.execute(
        select(Listing, User.name)
        .join(User, User.id == Listing.agent_id)
        .where(Listing.status == ListingStatus.PENDING.value)
        .order_by(Listing.created_at.asc())
    )
    listings = []
    for listing, agent_name in result.all():
        data = listing_out(listing)
        data["agent_name"] = agent_name
        listings.append(data)
    return {"listings": listings, "count": len(listings)}


@router.post("/listings/{listing_id}/approve")
async def approve_listing(
    listing_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    listing = await run_decision(moderation_service.approve_listing, db, listing_id, admin)
    return listing_out(listing)


@router.post("/listings/{listing_id}/reject")
async def reject_listing(
    listing_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    listing = await run_decision(moderation_service.reject_listing, db, listing_id, admin)
    return listing_out(listing)


# Agent registrations

@router.get("/agents")
async def list_agent_registrations(
    status: Optional[ApprovalStatus] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Agent registrations, optionally filtered by review status"""
    query = select(AgentApproval).order_by(AgentApproval.created_at.desc())
    if status:
        query = query.where(AgentApproval.status == status.value)
    result = await db.execute(query)
    approvals = result.scalars().all()
    return {"agents": [approval_out(a) for a in approvals], "count": len(approvals)}


@router.post("/agents/{approval_id}/approve")
async def approve_agent(
    approval_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    approval = await run_decision(moderation_service.approve_agent, db, approval_id, admin)
    return approval_out(approval)


@router.post("/agents/{approval_id}/reject")
async def reject_agent(
    approval_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    approval = await run_decision(moderation_service.reject_agent, db, approval_id, admin)
    return approval_out(approval)


# Payments

@router.get("/payments/pending")
async def pending_payments(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Proof-of-payment submissions waiting for review, oldest first"""
    result = await db.execute(
        select(Payment, User.name, User.email)
        .join(User, User.id == Payment.agent_id)
        .where(Payment.status == PaymentStatus.PENDING.value)
        .order_by(Payment.submitted_at.asc())
    )
    payments = []
    for payment, agent_name, agent_email in result.all():
        data = payment_out(payment)
        data["agent_name"] = agent_name
        data["agent_email"] = agent_email
        payments.append(data)
    return {"payments": payments, "count": len(payments)}


@router.post("/payments/{payment_id}/approve")
async def approve_payment(
    payment_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    payment = await run_decision(moderation_service.approve_payment, db, payment_id, admin)
    return payment_out(payment)


@router.post("/payments/{payment_id}/reject")
async def reject_payment(
    payment_id: uuid.UUID,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    payment = await run_decision(moderation_service.reject_payment, db, payment_id, admin)
    return payment_out(payment)
