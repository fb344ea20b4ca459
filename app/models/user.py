"""
User model - every signed-in principal (home seeker, agent or admin)
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Uuid
from sqlalchemy.sql import func
from app.utils.database import Base
import uuid
import enum

class UserRole(str, enum.Enum):
    HOME_SEEKER = "home_seeker"
    AGENT = "agent"
    ADMIN = "admin"

class User(Base):
    __tablename__ = "users"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)  # stored lowercased
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, default=UserRole.HOME_SEEKER, index=True)
    whatsapp_number = Column(String(50))
    
    # Authentication fields
    password_hash = Column(String(255), nullable=False)  # bcrypt hash
    token_version = Column(Integer, nullable=False, default=0)  # bumped on sign-out / password change
    last_login_at = Column(DateTime(timezone=True))
    
    # Set once an admin approves one of the agent's payments
    is_verified = Column(Boolean, nullable=False, default=False)
    
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    @property
    def first_name(self):
        """Extract first name from full name"""
        return self.name.split(' ')[0] if self.name else ''
    
    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN
    
    @property
    def is_agent(self) -> bool:
        return self.role == UserRole.AGENT
    
    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}', role='{self.role}')>"
