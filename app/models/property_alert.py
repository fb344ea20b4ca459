"""
Property Alert model - a home seeker's standing search criteria
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Numeric, ForeignKey, JSON, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base
import uuid

class PropertyAlert(Base):
    __tablename__ = "property_alerts"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    
    # Criteria (all optional; unset means "any")
    listing_type = Column(String(20))
    min_price = Column(Numeric(14, 2))
    max_price = Column(Numeric(14, 2))
    location_city = Column(String(120))
    location_state = Column(String(120))
    bedrooms = Column(Integer)   # minimum
    bathrooms = Column(Integer)  # minimum
    amenities = Column(JSON, nullable=False, default=list)  # all required
    
    # Alert Settings
    is_active = Column(Boolean, default=True, nullable=False)
    email_notifications = Column(Boolean, default=True, nullable=False)
    
    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    user = relationship("User")
    
    def __repr__(self):
        return f"<PropertyAlert(id={self.id}, name='{self.name}', active={self.is_active})>"
