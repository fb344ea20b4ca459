"""
Favorites models - bookmarked listings and saved search filters
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, JSON, UniqueConstraint, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base
import uuid

class FavoriteProperty(Base):
    __tablename__ = "favorite_properties"
    __table_args__ = (
        UniqueConstraint("user_id", "property_id", name="uq_favorite_user_property"),
    )
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    property_id = Column(Uuid(as_uuid=True), ForeignKey("listings.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    
    listing = relationship("Listing")
    
    def __repr__(self):
        return f"<FavoriteProperty(user_id={self.user_id}, property_id={self.property_id})>"


class SavedSearch(Base):
    __tablename__ = "saved_searches"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    filters = Column(JSON, nullable=False, default=dict)  # listing_type, min_price, max_price, location, bedrooms, bathrooms
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    
    def __repr__(self):
        return f"<SavedSearch(id={self.id}, name='{self.name}')>"
