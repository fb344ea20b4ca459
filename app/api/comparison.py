"""
Comparison API endpoints
Side-by-side comparison of up to three listings
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Dict, Any
import uuid

from app.api.listings import get_public_listing, listing_out
from app.middleware.auth import require_auth
from app.models.listing import Listing
from app.models.user import User
from app.services.comparison import ComparisonList, MAX_COMPARISON_ITEMS, comparison_store
from app.utils.database import get_db

router = APIRouter()


async def comparison_out(db: AsyncSession, comparison: ComparisonList) -> Dict[str, Any]:
    ids = comparison.items
    listings = {}
    if ids:
        result = await db.execute(select(Listing).where(Listing.id.in_(ids)))
        listings = {l.id: l for l in result.scalars().all()}
    return {
        "properties": [listing_out(listings[pid]) for pid in ids if pid in listings],
        "count": len(comparison),
        "max_items": MAX_COMPARISON_ITEMS,
    }


@router.get("/")
async def get_comparison(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    return await comparison_out(db, comparison_store.for_user(user.id))


@router.post("/{property_id}")
async def add_to_comparison(
    property_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Add a listing; a full list drops its oldest entry"""
    await get_public_listing(db, property_id)
    comparison = comparison_store.for_user(user.id)
    comparison.add(property_id)
    return await comparison_out(db, comparison)


@router.delete("/{property_id}")
async def remove_from_comparison(
    property_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    comparison = comparison_store.for_user(user.id)
    comparison.remove(property_id)
    return await comparison_out(db, comparison)


@router.delete("/")
async def clear_comparison(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    comparison = comparison_store.for_user(user.id)
    comparison.clear()
    return await comparison_out(db, comparison)
