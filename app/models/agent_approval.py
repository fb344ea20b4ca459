"""
Agent approval model - one registration review record per agent
"""

from sqlalchemy import Column, String, DateTime, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base
import uuid
import enum

class ApprovalStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class AgentApproval(Base):
    __tablename__ = "agent_approvals"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    user_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=True, index=True)
    
    # Registration details, as submitted
    full_name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)  # WhatsApp number
    company_name = Column(String(255))
    
    # Review state - only admin actions change these
    status = Column(String(20), nullable=False, default=ApprovalStatus.PENDING, index=True)
    approved_at = Column(DateTime(timezone=True))  # set on approve, cleared on reject
    
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    
    user = relationship("User")
    
    def __repr__(self):
        return f"<AgentApproval(id={self.id}, user_id={self.user_id}, status='{self.status}')>"
