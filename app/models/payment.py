"""
Payment model - proof-of-payment submissions reviewed by an admin
"""

from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Uuid
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.utils.database import Base
import uuid
import enum

class PaymentStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

class Payment(Base):
    __tablename__ = "payments"
    
    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    agent_id = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    
    amount = Column(Numeric(14, 2), nullable=False)
    plan = Column(String(20), nullable=False)  # monthly|quarterly|yearly
    proof_of_payment = Column(String(1000), nullable=False)  # receipt URL
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING, index=True)
    
    # Filled in by the reviewing admin
    expires_at = Column(DateTime(timezone=True))
    reviewed_by = Column(Uuid(as_uuid=True), ForeignKey("users.id", ondelete="SET NULL"))
    reviewed_at = Column(DateTime(timezone=True))
    
    submitted_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
    
    agent = relationship("User", foreign_keys=[agent_id])
    
    def __repr__(self):
        return f"<Payment(id={self.id}, agent_id={self.agent_id}, plan='{self.plan}', status='{self.status}')>"
