"""
Moderation Service
Admin approve/reject decisions for listings, agent registrations and payments
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Type

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.plans import get_plan_months
from app.models.agent_approval import AgentApproval, ApprovalStatus
from app.models.listing import Listing, ListingStatus
from app.models.payment import Payment, PaymentStatus
from app.models.user import User
from app.services.notification_hub import (
    NotificationHub,
    ChangeEvent,
    ChangeType,
    notification_hub,
    snapshot,
)
from app.services.subscription import add_months
from app.services.toasts import ToastBoard, toast_board

logger = logging.getLogger(__name__)


class RecordNotFound(Exception):
    """Raised when the record under review does not exist"""


class ModerationConflict(Exception):
    """Raised when the record was already decided by someone else"""
    def __init__(self, message: str, current_status: str):
        self.message = message
        self.current_status = current_status
        super().__init__(self.message)


class ModerationService:
    """
    Each decision is a compare-and-set from ``pending``: the update only
    applies while the row is still pending, so a second admin acting on the
    same record gets a conflict instead of overwriting the first decision.
    """

    def __init__(self, hub: NotificationHub = notification_hub, toasts: ToastBoard = toast_board):
        self.hub = hub
        self.toasts = toasts

    async def _decide(
        self,
        db: AsyncSession,
        model: Type[Any],
        record_id: uuid.UUID,
        values: Dict[str, Any],
        label: str,
    ) -> Any:
        record = await db.get(model, record_id)
        if record is None:
            raise RecordNotFound(f"{label} not found")

        result = await db.execute(
            update(model)
            .where(model.id == record_id, model.status == "pending")
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            await db.refresh(record)
            raise ModerationConflict(f"{label} is already {record.status}", record.status)
        return record

    async def _commit(self, db: AsyncSession, record: Any, table: str) -> Any:
        await db.commit()
        await db.refresh(record)
        self.hub.publish(ChangeEvent(table=table, event_type=ChangeType.UPDATE.value, new=snapshot(record)))
        return record

    async def _agent_name(self, db: AsyncSession, user_id: uuid.UUID) -> str:
        result = await db.execute(select(User.name).where(User.id == user_id))
        return result.scalar_one_or_none() or "Unknown agent"

    # Listings

    async def approve_listing(self, db: AsyncSession, listing_id: uuid.UUID, admin: User, now: Optional[datetime] = None) -> Listing:
        now = now or datetime.now(timezone.utc)
        listing = await self._decide(db, Listing, listing_id, {
            "status": ListingStatus.APPROVED.value,
            "is_approved": True,
            "approved_at": now,
        }, "Listing")
        listing = await self._commit(db, listing, "listings")
        agent_name = await self._agent_name(db, listing.agent_id)
        self.toasts.push(f"Listing \"{listing.title}\" by {agent_name} has been approved")
        logger.info(f"Listing {listing.id} approved by {admin.email}")
        return listing

    async def reject_listing(self, db: AsyncSession, listing_id: uuid.UUID, admin: User, now: Optional[datetime] = None) -> Listing:
        now = now or datetime.now(timezone.utc)
        listing = await self._decide(db, Listing, listing_id, {
            "status": ListingStatus.REJECTED.value,
            "is_approved": False,
            "rejected_at": now,
        }, "Listing")
        listing = await self._commit(db, listing, "listings")
        agent_name = await self._agent_name(db, listing.agent_id)
        self.toasts.push(f"Listing \"{listing.title}\" by {agent_name} has been rejected")
        logger.info(f"Listing {listing.id} rejected by {admin.email}")
        return listing

    # Agent registrations

    async def approve_agent(self, db: AsyncSession, approval_id: uuid.UUID, admin: User, now: Optional[datetime] = None) -> AgentApproval:
        now = now or datetime.now(timezone.utc)
        approval = await self._decide(db, AgentApproval, approval_id, {
            "status": ApprovalStatus.APPROVED.value,
            "approved_at": now,
        }, "Agent registration")
        approval = await self._commit(db, approval, "agent_approvals")
        self.toasts.push(f"registration approved for {approval.email}")
        logger.info(f"Agent registration {approval.id} ({approval.email}) approved by {admin.email}")
        return approval

    async def reject_agent(self, db: AsyncSession, approval_id: uuid.UUID, admin: User) -> AgentApproval:
        approval = await self._decide(db, AgentApproval, approval_id, {
            "status": ApprovalStatus.REJECTED.value,
            "approved_at": None,
        }, "Agent registration")
        approval = await self._commit(db, approval, "agent_approvals")
        self.toasts.push(f"registration rejected for {approval.email}")
        logger.info(f"Agent registration {approval.id} ({approval.email}) rejected by {admin.email}")
        return approval

    # Payments

    async def approve_payment(self, db: AsyncSession, payment_id: uuid.UUID, admin: User, now: Optional[datetime] = None) -> Payment:
        now = now or datetime.now(timezone.utc)
        payment = await db.get(Payment, payment_id)
        if payment is None:
            raise RecordNotFound("Payment not found")

        payment = await self._decide(db, Payment, payment_id, {
            "status": PaymentStatus.APPROVED.value,
            "reviewed_by": admin.id,
            "reviewed_at": now,
            "expires_at": add_months(now, get_plan_months(payment.plan)),
        }, "Payment")
        await db.execute(
            update(User)
            .where(User.id == payment.agent_id)
            .values(is_verified=True)
            .execution_options(synchronize_session=False)
        )
        payment = await self._commit(db, payment, "payments")
        agent_email = await self._agent_email(db, payment.agent_id)
        self.toasts.push(f"payment approved for {agent_email}")
        logger.info(f"Payment {payment.id} ({payment.plan}) approved by {admin.email}")
        return payment

    async def reject_payment(self, db: AsyncSession, payment_id: uuid.UUID, admin: User, now: Optional[datetime] = None) -> Payment:
        now = now or datetime.now(timezone.utc)
        payment = await self._decide(db, Payment, payment_id, {
            "status": PaymentStatus.REJECTED.value,
            "reviewed_by": admin.id,
            "reviewed_at": now,
        }, "Payment")
        payment = await self._commit(db, payment, "payments")
        agent_email = await self._agent_email(db, payment.agent_id)
        self.toasts.push(f"payment rejected for {agent_email}")
        logger.info(f"Payment {payment.id} rejected by {admin.email}")
        return payment

    async def _agent_email(self, db: AsyncSession, user_id: uuid.UUID) -> str:
        result = await db.execute(select(User.email).where(User.id == user_id))
        return result.scalar_one_or_none() or "unknown agent"


# Global service instance
moderation_service = ModerationService()
