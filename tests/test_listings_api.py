from datetime import datetime, timedelta, timezone
import uuid

from conftest import make_listing


async def test_search_returns_only_approved(client, pending_agent, db):
    agent_id = pending_agent["user"]["id"]
    await make_listing(db, agent_id, title="Visible")
    await make_listing(db, agent_id, approved=False, title="Hidden")

    data = (await client.get("/api/v1/listings/")).json()
    assert data["count"] == 1
    assert data["listings"][0]["title"] == "Visible"
    assert data["listings"][0]["display_price"] == "₦450,000/year"


async def test_search_filters(client, pending_agent, db):
    agent_id = pending_agent["user"]["id"]
    await make_listing(db, agent_id, title="Lekki rent", price=450000)
    await make_listing(db, agent_id, title="Ikoyi sale", listing_type="sale", price=150000000,
                       location_city="Ikoyi", bedrooms=5, amenities=["Gym", "Parking"])
    await make_listing(db, agent_id, title="Abuja stay", listing_type="shortstay", price=35000,
                       location_city="Wuse", location_state="Abuja", bedrooms=1)

    async def titles(**params):
        response = await client.get("/api/v1/listings/", params=params)
        assert response.status_code == 200
        return sorted(l["title"] for l in response.json()["listings"])

    assert await titles(listing_type="sale") == ["Ikoyi sale"]
    assert await titles(max_price=500000) == ["Abuja stay", "Lekki rent"]
    assert await titles(location="abuja") == ["Abuja stay"]
    assert await titles(bedrooms=3) == ["Ikoyi sale", "Lekki rent"]
    assert await titles(q="ikoyi") == ["Ikoyi sale"]
    assert await titles(amenities="gym,parking") == ["Ikoyi sale"]


async def test_search_sort_and_paging(client, pending_agent, db):
    agent_id = pending_agent["user"]["id"]
    for price in (300000, 100000, 200000):
        await make_listing(db, agent_id, title=f"Flat {price}", price=price)

    data = (await client.get("/api/v1/listings/", params={"sort": "price_asc", "limit": 2})).json()
    assert [l["price"] for l in data["listings"]] == [100000, 200000]

    data = (await client.get("/api/v1/listings/", params={"sort": "price_asc", "limit": 2, "offset": 2})).json()
    assert [l["price"] for l in data["listings"]] == [300000]


async def test_categories(client, pending_agent, db):
    agent_id = pending_agent["user"]["id"]
    await make_listing(db, agent_id, listing_type="sale")
    await make_listing(db, agent_id, listing_type="shortstay")
    await make_listing(db, agent_id, listing_type="shortstay")

    data = (await client.get("/api/v1/listings/categories")).json()
    assert len(data["sale"]) == 1
    assert len(data["rent"]) == 0
    assert len(data["shortstay"]) == 2
    assert data["shortstay"][0]["display_price"].endswith("/night")


async def test_categories_not_crowded_out_by_busy_type(client, pending_agent, db):
    agent_id = pending_agent["user"]["id"]
    now = datetime.now(timezone.utc)
    await make_listing(db, agent_id, title="Old duplex", listing_type="sale", created_at=now - timedelta(days=10))
    for i in range(3):
        await make_listing(db, agent_id, title=f"New flat {i}", created_at=now - timedelta(hours=i))

    data = (await client.get("/api/v1/listings/categories", params={"per_category": 1})).json()
    assert [l["title"] for l in data["sale"]] == ["Old duplex"]
    assert [l["title"] for l in data["rent"]] == ["New flat 0"]
    assert data["shortstay"] == []


async def test_detail_counts_views(client, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"])

    first = (await client.get(f"/api/v1/listings/{listing.id}")).json()
    second = (await client.get(f"/api/v1/listings/{listing.id}")).json()
    assert first["views"] == 1
    assert second["views"] == 2
    assert second["agent_name"] == "Tunde Agent"


async def test_unknown_listing_is_404(client):
    assert (await client.get(f"/api/v1/listings/{uuid.uuid4()}")).status_code == 404


async def test_virtual_tour_wraps_around(client, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"])

    tour = (await client.get(f"/api/v1/listings/{listing.id}/tour")).json()
    assert tour["autoplay_interval_ms"] == 3000
    slides = tour["slides"]
    assert len(slides) == 3
    assert slides[0]["previous_index"] == 2
    assert slides[2]["next_index"] == 0
    assert slides[1]["next_index"] == 2


async def test_virtual_tour_without_images(client, pending_agent, db):
    listing = await make_listing(db, pending_agent["user"]["id"], images=[])
    tour = (await client.get(f"/api/v1/listings/{listing.id}/tour")).json()
    assert tour["slides"] == []


async def test_reviews(client, pending_agent, seeker_headers, db):
    listing = await make_listing(db, pending_agent["user"]["id"])
    url = f"/api/v1/listings/{listing.id}/reviews"

    assert (await client.post(url, json={"rating": 5, "comment": "Great"})).status_code == 401
    assert (await client.post(url, headers=seeker_headers, json={"rating": 6, "comment": "Too good"})).status_code == 422

    first = await client.post(url, headers=seeker_headers, json={"rating": 5, "comment": "Great location"})
    assert first.status_code == 201
    assert first.json()["user_name"] == "Ada Seeker"
    await client.post(url, headers=seeker_headers, json={"rating": 4, "comment": "Good value"})

    data = (await client.get(url)).json()
    assert data["count"] == 2
    assert data["average_rating"] == 4.5

    review_id = first.json()["id"]
    helpful = await client.post(f"{url}/{review_id}/helpful", headers=seeker_headers)
    assert helpful.json()["helpful_count"] == 1
