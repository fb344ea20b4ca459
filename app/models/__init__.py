"""
Model package initialization
"""

from .user import User, UserRole
from .agent_approval import AgentApproval, ApprovalStatus
from .listing import Listing, ListingType, ListingStatus
from .payment import Payment, PaymentStatus
from .favorites import FavoriteProperty, SavedSearch
from .property_alert import PropertyAlert
from .review import PropertyReview

__all__ = [
    # Core models
    "User",
    "AgentApproval",
    "Listing",
    "Payment",
    "FavoriteProperty",
    "SavedSearch",
    "PropertyAlert",
    "PropertyReview",
    
    # Enums
    "UserRole",
    "ApprovalStatus",
    "ListingType",
    "ListingStatus",
    "PaymentStatus",
]
