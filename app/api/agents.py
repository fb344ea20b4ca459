"""
Agents API endpoints
Agent dashboard: approval and subscription status, own listings and payment submissions
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from decimal import Decimal
import logging
import uuid

from app.api.listings import listing_out
from app.config.plans import FREE_TRIAL_DAYS, get_plan, list_paid_plans
from app.config.settings import CURRENCY
from app.middleware.auth import require_agent
from app.models.listing import Listing, ListingStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services.agent_status import AgentStanding, resolve_agent_standing
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

DEFAULT_STATE = "Lagos"

# Pydantic models
class ListingCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    listing_type: Literal["sale", "rent", "shortstay"]
    price: Decimal = Field(gt=0)
    location: str = Field(min_length=1, description="\"City, State\"")
    location_address: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[int] = Field(None, ge=0, le=20)
    amenities: List[str] = []
    images: List[str] = []
    video_url: Optional[str] = None
    whatsapp_number: Optional[str] = None

class ListingUpdateRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    listing_type: Optional[Literal["sale", "rent", "shortstay"]] = None
    price: Optional[Decimal] = Field(None, gt=0)
    location: Optional[str] = Field(None, min_length=1)
    location_address: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[int] = Field(None, ge=0, le=20)
    amenities: Optional[List[str]] = None
    images: Optional[List[str]] = None
    video_url: Optional[str] = None
    whatsapp_number: Optional[str] = None

class PaymentSubmitRequest(BaseModel):
    plan: Literal["monthly", "quarterly", "yearly"]
    proof_of_payment: str = Field(min_length=1, max_length=1000)
    amount: Optional[Decimal] = Field(None, gt=0)


def split_location(location: str) -> tuple:
    """'Lekki, Lagos' -> ('Lekki', 'Lagos'); the state defaults to Lagos"""
    parts = [p.strip() for p in location.split(",") if p.strip()]
    city = parts[0] if parts else location.strip()
    state = parts[1] if len(parts) > 1 else DEFAULT_STATE
    return city, state


def payment_out(payment: Payment) -> Dict[str, Any]:
    return {
        "id": str(payment.id),
        "plan": payment.plan,
        "amount": float(payment.amount),
        "currency": CURRENCY,
        "proof_of_payment": payment.proof_of_payment,
        "status": payment.status,
        "expires_at": payment.expires_at.isoformat() if payment.expires_at else None,
        "reviewed_at": payment.reviewed_at.isoformat() if payment.reviewed_at else None,
        "submitted_at": payment.submitted_at.isoformat() if payment.submitted_at else None,
    }


def ensure_can_list(standing: AgentStanding):
    """Server-side listing gate, same decision the dashboard shows"""
    if not standing.can_list_property:
        raise HTTPException(
            status_code=403,
            detail={
                "notice": standing.privilege.notice,
                "message": standing.support_message or standing.privilege.message,
            }
        )


async def get_own_listing(db: AsyncSession, agent: User, listing_id: uuid.UUID) -> Listing:
    listing = await db.get(Listing, listing_id)
    if not listing or listing.agent_id != agent.id:
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing


@router.get("/plans")
async def get_plans():
    """Purchasable subscription plans"""
    return {
        "free_trial_days": FREE_TRIAL_DAYS,
        "plans": list_paid_plans(),
    }


@router.get("/me/status")
async def get_agent_status(
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Approval status, derived subscription state and listing privilege"""
    standing = await resolve_agent_standing(db, agent.id)
    return standing.to_dict()


@router.get("/me/dashboard")
async def get_agent_dashboard(
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Agent dashboard: status plus listing statistics"""
    standing = await resolve_agent_standing(db, agent.id)

    try:
        result = await db.execute(
            select(Listing.status, func.count(Listing.id), func.coalesce(func.sum(Listing.views), 0))
            .where(Listing.agent_id == agent.id)
            .group_by(Listing.status)
        )
        rows = result.all()

        recent_result = await db.execute(
            select(Listing)
            .where(Listing.agent_id == agent.id)
            .order_by(Listing.created_at.desc())
            .limit(5)
        )
        recent = recent_result.scalars().all()
    except SQLAlchemyError as e:
        logger.error(f"Error loading dashboard for agent {agent.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load dashboard, please try again")

    by_status = {status: count for status, count, _ in rows}
    stats = {
        "total_listings": sum(by_status.values()),
        "approved_listings": by_status.get(ListingStatus.APPROVED.value, 0),
        "pending_listings": by_status.get(ListingStatus.PENDING.value, 0),
        "rejected_listings": by_status.get(ListingStatus.REJECTED.value, 0),
        "total_views": int(sum(views for _, _, views in rows)),
    }

    return {
        "agent": {"id": str(agent.id), "name": agent.name, "email": agent.email},
        **standing.to_dict(),
        "stats": stats,
        "recent_listings": [listing_out(l) for l in recent],
    }


@router.get("/me/listings")
async def get_my_listings(
    status: Optional[ListingStatus] = None,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """All of the agent's listings, any moderation status"""
    query = select(Listing).where(Listing.agent_id == agent.id)
    if status:
        query = query.where(Listing.status == status.value)

    result = await db.execute(query.order_by(Listing.created_at.desc()))
    listings = result.scalars().all()
    return {"listings": [listing_out(l) for l in listings], "count": len(listings)}


@router.post("/me/listings", status_code=201)
async def create_listing(
    data: ListingCreateRequest,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Submit a new listing for moderation"""
    ensure_can_list(await resolve_agent_standing(db, agent.id))

    city, state = split_location(data.location)
    listing = Listing(
        agent_id=agent.id,
        title=data.title.strip(),
        description=data.description.strip(),
        listing_type=data.listing_type,
        price=data.price,
        currency=CURRENCY,
        location_city=city,
        location_state=state,
        location_address=(data.location_address or data.location).strip(),
        bedrooms=data.bedrooms,
        bathrooms=data.bathrooms,
        amenities=data.amenities,
        images=data.images,
        video_url=data.video_url,
        agent_whatsapp=data.whatsapp_number or agent.whatsapp_number,
        status=ListingStatus.PENDING.value,
        is_approved=False,
        views=0,
    )
    db.add(listing)
    await db.commit()
    await db.refresh(listing)

    logger.info(f"Listing {listing.id} submitted by agent {agent.email}")
    return listing_out(listing)


@router.patch("/me/listings/{listing_id}")
async def update_listing(
    listing_id: uuid.UUID,
    data: ListingUpdateRequest,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Edit a listing; the edit goes back to the moderation queue"""
    ensure_can_list(await resolve_agent_standing(db, agent.id))
    listing = await get_own_listing(db, agent, listing_id)

    update_data = data.model_dump(exclude_unset=True)
    location = update_data.pop("location", None)
    whatsapp = update_data.pop("whatsapp_number", None)
    if location:
        listing.location_city, listing.location_state = split_location(location)
        if "location_address" not in update_data:
            listing.location_address = location.strip()
    if whatsapp:
        listing.agent_whatsapp = whatsapp

    for field, value in update_data.items():
        if value is not None or field == "video_url":
            setattr(listing, field, value)

    listing.status = ListingStatus.PENDING.value
    listing.is_approved = False
    listing.approved_at = None
    listing.rejected_at = None

    await db.commit()
    await db.refresh(listing)
    return listing_out(listing)


@router.delete("/me/listings/{listing_id}")
async def delete_listing(
    listing_id: uuid.UUID,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the agent's listings"""
    listing = await get_own_listing(db, agent, listing_id)
    await db.delete(listing)
    await db.commit()

    logger.info(f"Listing {listing_id} deleted by agent {agent.email}")
    return {"message": "Listing deleted"}


@router.post("/me/payments", status_code=201)
async def submit_payment(
    data: PaymentSubmitRequest,
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Submit proof of payment for a plan; an admin reviews it"""
    plan = get_plan(data.plan)
    if data.amount is not None and data.amount != plan["price"]:
        raise HTTPException(
            status_code=400,
            detail=f"The {plan['name']} plan costs {plan['price']:,.0f} {CURRENCY}"
        )

    payment = Payment(
        agent_id=agent.id,
        amount=plan["price"],
        plan=data.plan,
        proof_of_payment=data.proof_of_payment.strip(),
        status=PaymentStatus.PENDING.value,
    )
    db.add(payment)
    await db.commit()
    await db.refresh(payment)

    logger.info(f"Payment {payment.id} ({payment.plan}) submitted by agent {agent.email}")
    return payment_out(payment)


@router.get("/me/payments")
async def get_my_payments(
    agent: User = Depends(require_agent),
    db: AsyncSession = Depends(get_db)
):
    """Payment history, newest first"""
    result = await db.execute(
        select(Payment)
        .where(Payment.agent_id == agent.id)
        .order_by(Payment.submitted_at.desc())
    )
    payments = result.scalars().all()
    return {"payments": [payment_out(p) for p in payments]}
