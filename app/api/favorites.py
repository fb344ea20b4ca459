"""
Favorites API endpoints
Bookmarked listings and saved searches for signed-in users
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Dict, Any
from decimal import Decimal
import logging
import uuid

from app.api.listings import get_public_listing, listing_out, search_listings
from app.middleware.auth import require_auth
from app.models.favorites import FavoriteProperty, SavedSearch
from app.models.user import User
from app.services.listing_search import ListingFilters
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

# Pydantic models
class SearchFilters(BaseModel):
    listing_type: Optional[Literal["sale", "rent", "shortstay"]] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    location: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0)
    bathrooms: Optional[int] = Field(None, ge=0)
    query: Optional[str] = None
    amenities: List[str] = []

class SavedSearchCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    filters: SearchFilters


def saved_search_out(search: SavedSearch) -> Dict[str, Any]:
    return {
        "id": str(search.id),
        "name": search.name,
        "filters": search.filters or {},
        "created_at": search.created_at.isoformat() if search.created_at else None,
    }


@router.get("/")
async def get_favorite_ids(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Ids of the user's favorite listings"""
    result = await db.execute(
        select(FavoriteProperty.property_id).where(FavoriteProperty.user_id == user.id)
    )
    return {"property_ids": [str(pid) for pid in result.scalars().all()]}


@router.get("/properties")
async def get_favorite_properties(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Favorite listings with full details, most recently saved first"""
    result = await db.execute(
        select(FavoriteProperty)
        .options(selectinload(FavoriteProperty.listing))
        .where(FavoriteProperty.user_id == user.id)
        .order_by(FavoriteProperty.created_at.desc())
    )
    favorites = result.scalars().all()
    return {"properties": [listing_out(f.listing) for f in favorites if f.listing is not None]}


# Saved searches are declared before /{property_id} so "searches" is not taken for an id

@router.get("/searches")
async def get_saved_searches(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(SavedSearch)
        .where(SavedSearch.user_id == user.id)
        .order_by(SavedSearch.created_at.desc())
    )
    return {"searches": [saved_search_out(s) for s in result.scalars().all()]}


@router.post("/searches", status_code=201)
async def save_search(
    data: SavedSearchCreate,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Save a named set of search filters"""
    filters = ListingFilters.from_dict(data.filters.model_dump())
    search = SavedSearch(user_id=user.id, name=data.name.strip(), filters=filters.to_dict())
    db.add(search)
    await db.commit()
    await db.refresh(search)
    return saved_search_out(search)


async def get_own_search(db: AsyncSession, user: User, search_id: uuid.UUID) -> SavedSearch:
    search = await db.get(SavedSearch, search_id)
    if not search or search.user_id != user.id:
        raise HTTPException(status_code=404, detail="Saved search not found")
    return search


@router.delete("/searches/{search_id}")
async def delete_saved_search(
    search_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    search = await get_own_search(db, user, search_id)
    await db.delete(search)
    await db.commit()
    return {"message": "Saved search deleted"}


@router.get("/searches/{search_id}/results")
async def run_saved_search(
    search_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Approved listings matching a saved search"""
    search = await get_own_search(db, user, search_id)
    listings = await search_listings(db, ListingFilters.from_dict(search.filters))
    return {
        "search": saved_search_out(search),
        "listings": [listing_out(l) for l in listings],
        "count": len(listings),
    }


@router.post("/{property_id}", status_code=201)
async def add_favorite(
    property_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Bookmark a listing; bookmarking twice is a no-op"""
    await get_public_listing(db, property_id)

    result = await db.execute(
        select(FavoriteProperty).where(
            FavoriteProperty.user_id == user.id,
            FavoriteProperty.property_id == property_id
        )
    )
    if not result.scalar_one_or_none():
        db.add(FavoriteProperty(user_id=user.id, property_id=property_id))
        await db.commit()

    return {"property_id": str(property_id), "is_favorite": True}


@router.delete("/{property_id}")
async def remove_favorite(
    property_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(
        select(FavoriteProperty).where(
            FavoriteProperty.user_id == user.id,
            FavoriteProperty.property_id == property_id
        )
    )
    favorite = result.scalar_one_or_none()
    if not favorite:
        raise HTTPException(status_code=404, detail="Listing is not in favorites")

    await db.delete(favorite)
    await db.commit()
    return {"property_id": str(property_id), "is_favorite": False}
