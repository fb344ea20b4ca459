"""
API package initialization
"""

# Import all routers to make them available
from . import auth, agents, listings, favorites, property_alerts, comparison, notifications

__all__ = ["auth", "agents", "listings", "favorites", "property_alerts", "comparison", "notifications"]
