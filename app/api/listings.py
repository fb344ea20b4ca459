"""
Listings API endpoints
Public browsing and search, listing detail, virtual tours and reviews
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, func, update
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any
from decimal import Decimal
import logging
import uuid

from app.middleware.auth import require_auth
from app.models.listing import Listing, ListingType, ListingStatus
from app.models.review import PropertyReview
from app.models.user import User
from app.services.listing_search import (
    ListingFilters,
    build_search_query,
    format_price,
    has_amenities,
)
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

TOUR_AUTOPLAY_MS = 3000

# Pydantic models
class ReviewCreate(BaseModel):
    rating: int = Field(ge=1, le=5)
    comment: str = Field(min_length=1, max_length=2000)


def listing_out(listing: Listing) -> Dict[str, Any]:
    return {
        "id": str(listing.id),
        "agent_id": str(listing.agent_id),
        "title": listing.title,
        "description": listing.description,
        "listing_type": listing.listing_type,
        "price": float(listing.price),
        "currency": listing.currency,
        "display_price": format_price(listing.price, listing.listing_type, listing.currency),
        "location": listing.location,
        "location_city": listing.location_city,
        "location_state": listing.location_state,
        "location_address": listing.location_address,
        "bedrooms": listing.bedrooms,
        "bathrooms": listing.bathrooms,
        "amenities": listing.amenities or [],
        "images": listing.images or [],
        "video_url": listing.video_url,
        "agent_whatsapp": listing.agent_whatsapp,
        "status": listing.status,
        "is_approved": bool(listing.is_approved),
        "views": listing.views or 0,
        "created_at": listing.created_at.isoformat() if listing.created_at else None,
    }


def review_out(review: PropertyReview) -> Dict[str, Any]:
    return {
        "id": str(review.id),
        "user_name": review.user_name,
        "rating": review.rating,
        "comment": review.comment,
        "helpful_count": review.helpful_count or 0,
        "created_at": review.created_at.isoformat() if review.created_at else None,
    }


def is_public(listing: Optional[Listing]) -> bool:
    return listing is not None and (listing.is_approved or listing.status == ListingStatus.APPROVED)


async def get_public_listing(db: AsyncSession, listing_id: uuid.UUID) -> Listing:
    listing = await db.get(Listing, listing_id)
    if not is_public(listing):
        raise HTTPException(status_code=404, detail="Listing not found")
    return listing


async def search_listings(
    db: AsyncSession,
    filters: ListingFilters,
    sort: str = "newest",
    limit: int = 50,
    offset: int = 0
) -> List[Listing]:
    """Approved listings matching the filters"""
    stmt = build_search_query(filters, sort)
    if not filters.amenities:
        stmt = stmt.limit(limit).offset(offset)
    result = await db.execute(stmt)
    listings = list(result.scalars().all())
    if filters.amenities:
        # JSON containment differs per backend, so amenities are checked here
        listings = [l for l in listings if has_amenities(l, filters.amenities)][offset:offset + limit]
    return listings


@router.get("/")
async def browse_listings(
    listing_type: Optional[ListingType] = None,
    min_price: Optional[Decimal] = Query(None, ge=0),
    max_price: Optional[Decimal] = Query(None, ge=0),
    location: Optional[str] = None,
    bedrooms: Optional[int] = Query(None, ge=0),
    bathrooms: Optional[int] = Query(None, ge=0),
    q: Optional[str] = None,
    amenities: Optional[str] = Query(None, description="Comma-separated amenity names"),
    sort: str = "newest",
    limit: int = Query(50, ge=1, le=100),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db)
):
    """Search approved listings"""
    filters = ListingFilters(
        listing_type=listing_type.value if listing_type else None,
        min_price=min_price,
        max_price=max_price,
        location=location,
        bedrooms=bedrooms,
        bathrooms=bathrooms,
        query=q,
        amenities=[a.strip() for a in (amenities or "").split(",") if a.strip()],
    )
    try:
        listings = await search_listings(db, filters, sort, limit, offset)
    except SQLAlchemyError as e:
        logger.error(f"Listing search failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to load listings, please try again")

    return {
        "listings": [listing_out(l) for l in listings],
        "count": len(listings),
        "filters": filters.to_dict(),
    }


@router.get("/categories")
async def listings_by_category(
    per_category: int = Query(12, ge=1, le=50),
    db: AsyncSession = Depends(get_db)
):
    """Newest approved listings grouped into sale / rent / short stay rows"""
    categories = {}
    try:
        # Each type gets its own query and limit
        for kind in ListingType:
            listings = await search_listings(db, ListingFilters(listing_type=kind.value), limit=per_category)
            categories[kind.value] = [listing_out(l) for l in listings]
    except SQLAlchemyError as e:
        logger.error(f"Category listing failed: {e}")
        raise HTTPException(status_code=500, detail="Failed to load listings, please try again")

    return categories


@router.get("/{listing_id}")
async def get_listing(listing_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Listing detail; counts a view"""
    listing = await get_public_listing(db, listing_id)

    await db.execute(
        update(Listing)
        .where(Listing.id == listing_id)
        .values(views=Listing.views + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(listing)

    agent = await db.get(User, listing.agent_id)
    data = listing_out(listing)
    data["agent_name"] = agent.name if agent else None
    return data


@router.get("/{listing_id}/tour")
async def get_virtual_tour(listing_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Slides for the virtual tour viewer; navigation wraps around at both ends"""
    listing = await get_public_listing(db, listing_id)
    images = listing.images or []
    count = len(images)
    slides = [
        {
            "index": i,
            "image_url": url,
            "next_index": (i + 1) % count,
            "previous_index": (i - 1 + count) % count,
        }
        for i, url in enumerate(images)
    ]
    return {
        "listing_id": str(listing.id),
        "title": listing.title,
        "slides": slides,
        "video_url": listing.video_url,
        "autoplay_interval_ms": TOUR_AUTOPLAY_MS,
    }


@router.get("/{listing_id}/reviews")
async def list_reviews(listing_id: uuid.UUID, db: AsyncSession = Depends(get_db)):
    """Reviews for a listing with the average rating"""
    await get_public_listing(db, listing_id)

    result = await db.execute(
        select(PropertyReview)
        .where(PropertyReview.property_id == listing_id)
        .order_by(PropertyReview.created_at.desc())
    )
    reviews = result.scalars().all()

    avg_result = await db.execute(
        select(func.avg(PropertyReview.rating)).where(PropertyReview.property_id == listing_id)
    )
    average = avg_result.scalar()

    return {
        "reviews": [review_out(r) for r in reviews],
        "count": len(reviews),
        "average_rating": round(float(average), 1) if average is not None else 0.0,
    }


@router.post("/{listing_id}/reviews", status_code=201)
async def add_review(
    listing_id: uuid.UUID,
    data: ReviewCreate,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Post a review for a listing"""
    await get_public_listing(db, listing_id)

    review = PropertyReview(
        property_id=listing_id,
        user_id=user.id,
        user_name=user.name,
        rating=data.rating,
        comment=data.comment.strip(),
        helpful_count=0,
    )
    db.add(review)
    await db.commit()
    await db.refresh(review)
    return review_out(review)


@router.post("/{listing_id}/reviews/{review_id}/helpful")
async def mark_review_helpful(
    listing_id: uuid.UUID,
    review_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Increment a review's helpful counter"""
    review = await db.get(PropertyReview, review_id)
    if not review or review.property_id != listing_id:
        raise HTTPException(status_code=404, detail="Review not found")

    await db.execute(
        update(PropertyReview)
        .where(PropertyReview.id == review_id)
        .values(helpful_count=PropertyReview.helpful_count + 1)
        .execution_options(synchronize_session=False)
    )
    await db.commit()
    await db.refresh(review)
    return review_out(review)
