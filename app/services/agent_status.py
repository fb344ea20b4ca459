"""
Agent Status Service
Resolves an agent's approval record and the subscription/listing decision built on it
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.agent_approval import AgentApproval
from app.services.subscription import (
    SubscriptionState,
    ListingPrivilege,
    SUPPORT_MESSAGE,
    calculate_subscription_state,
    evaluate_listing_privilege,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AgentStanding:
    agent_status: Optional[str]
    subscription: SubscriptionState
    privilege: ListingPrivilege
    support_message: Optional[str] = None

    @property
    def can_list_property(self) -> bool:
        return self.privilege.can_list_property

    def to_dict(self) -> Dict[str, Any]:
        return {
            "agent_status": self.agent_status,
            "subscription": self.subscription.to_dict(),
            "can_list_property": self.privilege.can_list_property,
            "notice": self.privilege.notice,
            "message": self.privilege.message,
            "support_message": self.support_message,
        }


async def fetch_agent_approval(db: AsyncSession, user_id: uuid.UUID) -> Optional[AgentApproval]:
    """Approval record for a user, or None when the user never registered as an agent"""
    result = await db.execute(select(AgentApproval).where(AgentApproval.user_id == user_id))
    return result.scalar_one_or_none()


async def resolve_agent_standing(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: Optional[datetime] = None
) -> AgentStanding:
    """
    Fetch the approval record and derive subscription state and listing privilege.

    A failed lookup is terminal: the agent sees the "contact support" state
    and nothing is retried.
    """
    try:
        approval = await fetch_agent_approval(db, user_id)
    except Exception as e:
        logger.error(f"Failed to load agent approval for user {user_id}: {e}")
        state = SubscriptionState.failed()
        return AgentStanding(
            agent_status=None,
            subscription=state,
            privilege=evaluate_listing_privilege(None, state),
            support_message=SUPPORT_MESSAGE,
        )

    agent_status = approval.status if approval else None
    state = calculate_subscription_state(approval, now)
    return AgentStanding(
        agent_status=agent_status,
        subscription=state,
        privilege=evaluate_listing_privilege(agent_status, state),
    )
