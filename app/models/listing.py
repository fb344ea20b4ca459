"""
Listing model - a property offered for sale, rent or short stay
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Numeric, Text, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base
import uuid
import enum

class ListingType(str, enum.Enum):
    SALE = "sale"
    RENT = "rent"
    SHORTSTAY = "shortstay"

class ListingStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Listing(Base):
    __tablename__ = "listings"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    agent_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    # Property details
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    listing_type = Column(String(20), nullable=False, index=True)  # ListingType enum
    price = Column(Numeric(14, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="NGN")
    location_city = Column(String(120), nullable=False, index=True)
    location_state = Column(String(120), nullable=False, index=True)
    location_address = Column(String(500), nullable=False)
    bedrooms = Column(Integer)
    bathrooms = Column(Integer)
    amenities = Column(JSON, nullable=False, default=list)
    images = Column(JSON, nullable=False, default=list)  # ordered image URLs
    video_url = Column(String(1000))
    agent_whatsapp = Column(String(50))
    
    # Moderation
    status = Column(String(20), nullable=False, default=ListingStatus.PENDING, index=True)
    is_approved = Column(Boolean, nullable=False, default=False, index=True)
    approved_at = Column(DateTime(timezone=True))
    rejected_at = Column(DateTime(timezone=True))
    
    # Stats
    views = Column(Integer, nullable=False, default=0)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    agent = relationship("User")
    reviews = relationship("PropertyReview", back_populates="listing", cascade="all, delete-orphan")
    
    @property
    def location(self) -> str:
        return f"{self.location_city}, {self.location_state}"
    
    def __repr__(self):
        return f"<Listing(id={self.id}, title='{self.title}', status='{self.status}')>"
