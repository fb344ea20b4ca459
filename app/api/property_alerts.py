"""
Property Alerts API endpoints
Standing search criteria for home seekers and the listings that match them
"""

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Literal, Dict, Any
from decimal import Decimal
import logging
import uuid

from app.api.listings import listing_out, search_listings
from app.middleware.auth import require_auth
from app.models.property_alert import PropertyAlert
from app.models.user import User
from app.services.listing_search import ListingFilters
from app.utils.database import get_db

logger = logging.getLogger(__name__)

router = APIRouter()

# Pydantic models
class PropertyAlertCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    listing_type: Optional[Literal["sale", "rent", "shortstay"]] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    amenities: List[str] = []
    email_notifications: bool = True

    @field_validator('bedrooms', 'bathrooms')
    @classmethod
    def validate_rooms(cls, v):
        if v is not None and (v < 0 or v > 20):
            raise ValueError('Rooms must be between 0 and 20')
        return v

    @field_validator('min_price', 'max_price')
    @classmethod
    def validate_price(cls, v):
        if v is not None and v < 0:
            raise ValueError('Price must be positive')
        return v

class PropertyAlertUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    listing_type: Optional[Literal["sale", "rent", "shortstay"]] = None
    min_price: Optional[Decimal] = Field(None, ge=0)
    max_price: Optional[Decimal] = Field(None, ge=0)
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    bedrooms: Optional[int] = Field(None, ge=0, le=20)
    bathrooms: Optional[int] = Field(None, ge=0, le=20)
    amenities: Optional[List[str]] = None
    is_active: Optional[bool] = None
    email_notifications: Optional[bool] = None


def alert_out(alert: PropertyAlert) -> Dict[str, Any]:
    return {
        "id": str(alert.id),
        "name": alert.name,
        "listing_type": alert.listing_type,
        "min_price": float(alert.min_price) if alert.min_price is not None else None,
        "max_price": float(alert.max_price) if alert.max_price is not None else None,
        "location_city": alert.location_city,
        "location_state": alert.location_state,
        "bedrooms": alert.bedrooms,
        "bathrooms": alert.bathrooms,
        "amenities": alert.amenities or [],
        "is_active": alert.is_active,
        "email_notifications": alert.email_notifications,
        "created_at": alert.created_at.isoformat() if alert.created_at else None,
    }


def check_price_range(min_price: Optional[Decimal], max_price: Optional[Decimal]):
    if min_price is not None and max_price is not None and min_price > max_price:
        raise HTTPException(status_code=400, detail="Minimum price cannot exceed maximum price")


async def get_own_alert(db: AsyncSession, user: User, alert_id: uuid.UUID) -> PropertyAlert:
    alert = await db.get(PropertyAlert, alert_id)
    if not alert or alert.user_id != user.id:
        raise HTTPException(status_code=404, detail="Alert not found")
    return alert


@router.get("/")
async def get_alerts(
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """List the user's property alerts"""
    result = await db.execute(
        select(PropertyAlert)
        .where(PropertyAlert.user_id == user.id)
        .order_by(PropertyAlert.created_at.desc())
    )
    return {"alerts": [alert_out(a) for a in result.scalars().all()]}


@router.post("/", status_code=201)
async def create_alert(
    data: PropertyAlertCreate,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Create a new property alert"""
    check_price_range(data.min_price, data.max_price)

    alert = PropertyAlert(
        user_id=user.id,
        is_active=True,
        **data.model_dump()
    )
    db.add(alert)
    await db.commit()
    await db.refresh(alert)

    logger.info(f"Alert {alert.id} created by {user.email}")
    return alert_out(alert)


@router.patch("/{alert_id}")
async def update_alert(
    alert_id: uuid.UUID,
    data: PropertyAlertUpdate,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Update alert criteria or settings"""
    alert = await get_own_alert(db, user, alert_id)

    update_data = data.model_dump(exclude_unset=True)
    check_price_range(
        update_data.get("min_price", alert.min_price),
        update_data.get("max_price", alert.max_price),
    )
    for field, value in update_data.items():
        if field == "amenities" and value is None:
            value = []
        setattr(alert, field, value)

    await db.commit()
    await db.refresh(alert)
    return alert_out(alert)


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Delete a property alert"""
    alert = await get_own_alert(db, user, alert_id)
    await db.delete(alert)
    await db.commit()
    return {"message": "Alert deleted"}


@router.post("/{alert_id}/toggle")
async def toggle_alert(
    alert_id: uuid.UUID,
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Pause or resume an alert"""
    alert = await get_own_alert(db, user, alert_id)
    alert.is_active = not alert.is_active
    await db.commit()
    await db.refresh(alert)
    return alert_out(alert)


@router.get("/{alert_id}/matches")
async def get_alert_matches(
    alert_id: uuid.UUID,
    limit: int = Query(50, ge=1, le=100),
    user: User = Depends(require_auth),
    db: AsyncSession = Depends(get_db)
):
    """Approved listings currently matching the alert"""
    alert = await get_own_alert(db, user, alert_id)
    listings = await search_listings(db, ListingFilters.from_alert(alert), limit=limit)
    return {
        "alert": alert_out(alert),
        "listings": [listing_out(l) for l in listings],
        "count": len(listings),
    }
