"""
Subscription Lifecycle Service
Derives an agent's subscription window from the approval record and decides
whether the agent dashboard may offer listing creation
"""

import calendar
import enum
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from app.config.plans import SubscriptionPlan, BILLING_WINDOW_DAYS
from app.models.agent_approval import ApprovalStatus


class PaymentState(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    EXPIRED = "expired"
    ERROR = "error"


@dataclass(frozen=True)
class SubscriptionState:
    """
    Derived subscription view for one agent at one instant.

    Never persisted; rebuilt on every dashboard request. When ``is_active``
    is true, ``plan`` is set and ``expiry_date`` lies after the instant the
    state was computed for.
    """
    is_active: bool
    is_verified: bool
    payment_status: str
    expiry_date: Optional[datetime] = None
    plan: Optional[str] = None

    @classmethod
    def unverified(cls) -> "SubscriptionState":
        """State for a missing or not-yet-approved registration"""
        return cls(is_active=False, is_verified=False, payment_status=PaymentState.PENDING.value)

    @classmethod
    def failed(cls) -> "SubscriptionState":
        """Terminal state when the approval lookup itself failed"""
        return cls(is_active=False, is_verified=False, payment_status=PaymentState.ERROR.value)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["expiry_date"] = self.expiry_date.isoformat() if self.expiry_date else None
        return data


def _as_utc(value: datetime) -> datetime:
    """Normalize to an aware UTC datetime; naive values are taken as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def add_months(value: datetime, months: int) -> datetime:
    """
    Calendar month arithmetic.

    The day of month is kept where possible and clamped to the last day of
    the target month otherwise (Jan 31 + 1 month -> Feb 28/29).
    """
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def calculate_subscription_state(approval: Optional[Any], now: Optional[datetime] = None) -> SubscriptionState:
    """
    Map an agent approval record and the current time to a SubscriptionState.

    Args:
        approval: object exposing ``status``, ``approved_at`` and
            ``created_at`` (normally an AgentApproval row), or None
        now: evaluation instant, defaults to the current UTC time

    The first 30-day window after approval is the free trial; every later
    window is billed monthly. The window end is the reference date plus a
    whole number of calendar months. Payments are not consulted.
    """
    if approval is None or approval.status != ApprovalStatus.APPROVED:
        return SubscriptionState.unverified()

    reference_raw = approval.approved_at or approval.created_at
    if reference_raw is None:
        return SubscriptionState.unverified()

    now = _as_utc(now or datetime.now(timezone.utc))
    reference = _as_utc(reference_raw)

    # A reference in the future counts as day zero
    elapsed_days = max((now - reference).days, 0)
    elapsed_months = elapsed_days // BILLING_WINDOW_DAYS
    is_first_month = elapsed_months == 0

    window = elapsed_months + 1
    expiry = add_months(reference, window)
    # 30-day windows can outrun a short calendar month around February
    while expiry <= now:
        window += 1
        expiry = add_months(reference, window)

    is_active = now < expiry
    plan = SubscriptionPlan.FREE_TRIAL if is_first_month else SubscriptionPlan.MONTHLY

    return SubscriptionState(
        is_active=is_active,
        is_verified=True,
        payment_status=(PaymentState.APPROVED if is_active else PaymentState.EXPIRED).value,
        expiry_date=expiry,
        plan=plan.value,
    )


class ListingNotice(str, enum.Enum):
    PENDING_APPROVAL = "pending_approval"
    REJECTED = "rejected"
    SUBSCRIPTION_REQUIRED = "subscription_required"


NOTICE_MESSAGES = {
    ListingNotice.PENDING_APPROVAL: "Your agent account is awaiting admin approval. You can start listing once approved.",
    ListingNotice.REJECTED: "Your agent registration was rejected. Please contact support to resubmit your details.",
    ListingNotice.SUBSCRIPTION_REQUIRED: "Please complete your subscription to start listing properties.",
}

SUPPORT_MESSAGE = "We could not verify your subscription status. Please contact support."


@dataclass(frozen=True)
class ListingPrivilege:
    can_list_property: bool
    notice: Optional[str] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def evaluate_listing_privilege(agent_status: Optional[str], state: SubscriptionState) -> ListingPrivilege:
    """Decide whether the agent may create or edit listings, with the notice to show if not"""
    if agent_status == ApprovalStatus.APPROVED and state.is_active:
        return ListingPrivilege(can_list_property=True)

    if agent_status == ApprovalStatus.REJECTED:
        notice = ListingNotice.REJECTED
    elif agent_status != ApprovalStatus.APPROVED:
        notice = ListingNotice.PENDING_APPROVAL
    else:
        notice = ListingNotice.SUBSCRIPTION_REQUIRED

    return ListingPrivilege(
        can_list_property=False,
        notice=notice.value,
        message=NOTICE_MESSAGES[notice],
    )
