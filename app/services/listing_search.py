"""
Listing Search Service
Filter criteria shared by browsing, saved searches and property alerts
"""

from dataclasses import dataclass, field, asdict
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import Select, select, or_, and_

from app.models.listing import Listing, ListingType, ListingStatus

CURRENCY_SYMBOLS = {"NGN": "₦", "USD": "$", "GBP": "£", "EUR": "€"}

PRICE_SUFFIXES = {
    ListingType.RENT.value: "/year",
    ListingType.SHORTSTAY.value: "/night",
}

SORT_OPTIONS = {
    "newest": Listing.created_at.desc(),
    "oldest": Listing.created_at.asc(),
    "price_asc": Listing.price.asc(),
    "price_desc": Listing.price.desc(),
    "popular": Listing.views.desc(),
}


@dataclass
class ListingFilters:
    listing_type: Optional[str] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    location: Optional[str] = None  # free text over city, state and address
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    bedrooms: Optional[int] = None  # minimum
    bathrooms: Optional[int] = None  # minimum
    query: Optional[str] = None  # free text over title and description
    amenities: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ListingFilters":
        """Build filters from stored JSON; accepts ``property_type`` as an alias of ``listing_type``"""
        data = data or {}
        return cls(
            listing_type=data.get("listing_type") or data.get("property_type"),
            min_price=_decimal(data.get("min_price")),
            max_price=_decimal(data.get("max_price")),
            location=data.get("location") or None,
            location_city=data.get("location_city") or None,
            location_state=data.get("location_state") or None,
            bedrooms=data.get("bedrooms"),
            bathrooms=data.get("bathrooms"),
            query=data.get("query") or None,
            amenities=list(data.get("amenities") or []),
        )

    @classmethod
    def from_alert(cls, alert: Any) -> "ListingFilters":
        return cls(
            listing_type=alert.listing_type,
            min_price=_decimal(alert.min_price),
            max_price=_decimal(alert.max_price),
            location_city=alert.location_city,
            location_state=alert.location_state,
            bedrooms=alert.bedrooms,
            bathrooms=alert.bathrooms,
            amenities=list(alert.amenities or []),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        for key in ("min_price", "max_price"):
            if data[key] is not None:
                data[key] = float(data[key])
        return {k: v for k, v in data.items() if v not in (None, [])}


def _decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    return Decimal(str(value))


def _contains(haystack: Optional[str], needle: str) -> bool:
    return bool(haystack) and needle.lower() in haystack.lower()


def build_search_query(filters: ListingFilters, sort: str = "newest", approved_only: bool = True) -> Select:
    """SELECT over listings applying every filter except amenities"""
    stmt = select(Listing)
    conditions = []

    if approved_only:
        conditions.append(or_(Listing.is_approved.is_(True), Listing.status == ListingStatus.APPROVED.value))
    if filters.listing_type:
        conditions.append(Listing.listing_type == filters.listing_type)
    if filters.min_price is not None:
        conditions.append(Listing.price >= filters.min_price)
    if filters.max_price is not None:
        conditions.append(Listing.price <= filters.max_price)
    if filters.location:
        pattern = f"%{filters.location}%"
        conditions.append(or_(
            Listing.location_city.ilike(pattern),
            Listing.location_state.ilike(pattern),
            Listing.location_address.ilike(pattern),
        ))
    if filters.location_city:
        conditions.append(Listing.location_city.ilike(filters.location_city))
    if filters.location_state:
        conditions.append(Listing.location_state.ilike(filters.location_state))
    if filters.bedrooms is not None:
        conditions.append(Listing.bedrooms >= filters.bedrooms)
    if filters.bathrooms is not None:
        conditions.append(Listing.bathrooms >= filters.bathrooms)
    if filters.query:
        pattern = f"%{filters.query}%"
        conditions.append(or_(Listing.title.ilike(pattern), Listing.description.ilike(pattern)))

    if conditions:
        stmt = stmt.where(and_(*conditions))

    return stmt.order_by(SORT_OPTIONS.get(sort, SORT_OPTIONS["newest"]))


def has_amenities(listing: Any, amenities: Iterable[str]) -> bool:
    available = {a.lower() for a in (listing.amenities or [])}
    return all(a.lower() in available for a in amenities)


def listing_matches(listing: Any, filters: ListingFilters) -> bool:
    """In-memory version of build_search_query (amenities included)"""
    if filters.listing_type and listing.listing_type != filters.listing_type:
        return False
    price = Decimal(str(listing.price))
    if filters.min_price is not None and price < filters.min_price:
        return False
    if filters.max_price is not None and price > filters.max_price:
        return False
    if filters.location and not any(
        _contains(v, filters.location)
        for v in (listing.location_city, listing.location_state, listing.location_address)
    ):
        return False
    if filters.location_city and (listing.location_city or "").lower() != filters.location_city.lower():
        return False
    if filters.location_state and (listing.location_state or "").lower() != filters.location_state.lower():
        return False
    if filters.bedrooms is not None and (listing.bedrooms or 0) < filters.bedrooms:
        return False
    if filters.bathrooms is not None and (listing.bathrooms or 0) < filters.bathrooms:
        return False
    if filters.query and not (_contains(listing.title, filters.query) or _contains(listing.description, filters.query)):
        return False
    return has_amenities(listing, filters.amenities)


def format_price(price: Any, listing_type: str, currency: str = "NGN") -> str:
    """Whole-unit price with the currency symbol and a per-period suffix (e.g. ₦450,000/year)"""
    amount = f"{Decimal(str(price)):,.0f}"
    symbol = CURRENCY_SYMBOLS.get(currency)
    text = f"{symbol}{amount}" if symbol else f"{currency} {amount}"
    return text + PRICE_SUFFIXES.get(listing_type, "")
