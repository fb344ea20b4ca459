import asyncio

import pytest

from app.services.comparison import ComparisonList, ComparisonStore
from app.services.notification_hub import (
    ChangeEvent,
    ChannelFilter,
    NotificationHub,
    describe_change,
)
from app.services.toasts import ToastBoard


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


# Toasts

def test_toasts_expire_after_ttl():
    clock = FakeClock()
    board = ToastBoard(ttl_seconds=5, clock=clock)
    board.push("registration approved for a@example.com")
    clock.now += 3
    board.push("payment approved for b@example.com")

    assert [t.message for t in board.active()] == [
        "registration approved for a@example.com",
        "payment approved for b@example.com",
    ]

    clock.now += 2.5
    assert [t.message for t in board.active()] == ["payment approved for b@example.com"]

    clock.now += 5
    assert board.active() == []


def test_push_drops_expired_toasts():
    clock = FakeClock()
    board = ToastBoard(ttl_seconds=5, clock=clock)
    for i in range(50):
        board.push(f"listing {i} approved")
        clock.now += 6

    assert len(board._toasts) == 1
    assert board._toasts[0].message == "listing 49 approved"


def test_toast_ids_increase():
    board = ToastBoard(ttl_seconds=5, clock=FakeClock())
    first = board.push("one")
    second = board.push("two")
    assert second.id > first.id
    assert first.to_dict()["message"] == "one"


# Comparison

def test_comparison_evicts_oldest_when_full():
    comparison = ComparisonList()
    for pid in ["a", "b", "c", "d"]:
        comparison.add(pid)
    assert comparison.items == ["b", "c", "d"]


def test_comparison_ignores_duplicates():
    comparison = ComparisonList()
    comparison.add("a")
    comparison.add("b")
    comparison.add("c")
    comparison.add("a")
    assert comparison.items == ["a", "b", "c"]


def test_comparison_remove_and_clear():
    comparison = ComparisonList()
    comparison.add("a")
    comparison.add("b")
    comparison.remove("a")
    assert comparison.items == ["b"]
    comparison.clear()
    assert len(comparison) == 0


def test_comparison_store_discard():
    store = ComparisonStore()
    store.for_user("u1").add("a")
    assert "a" in store.for_user("u1")
    store.discard("u1")
    assert len(store.for_user("u1")) == 0


# Notification hub

def payment_update(agent_id="agent-1", status="approved", plan="monthly"):
    return ChangeEvent(
        table="payments",
        event_type="UPDATE",
        new={"id": "p1", "agent_id": agent_id, "status": status, "plan": plan},
    )


def test_channel_filter_matching():
    f = ChannelFilter(table="payments", column="agent_id", value="agent-1", event="UPDATE")
    assert f.matches(payment_update())
    assert not f.matches(payment_update(agent_id="agent-2"))
    assert not f.matches(ChangeEvent(table="listings", event_type="UPDATE", new={"agent_id": "agent-1"}))
    assert not f.matches(ChangeEvent(table="payments", event_type="INSERT", new={"agent_id": "agent-1"}))


async def test_hub_delivers_only_matching_events():
    hub = NotificationHub(queue_size=10)
    mine = hub.subscribe(ChannelFilter(table="payments", column="agent_id", value="agent-1"))
    other = hub.subscribe(ChannelFilter(table="payments", column="agent_id", value="agent-2"))

    assert hub.publish(payment_update()) == 1

    received = []

    async def consume():
        async for change in mine:
            received.append(change)
            mine.close()

    await asyncio.wait_for(consume(), timeout=1)
    assert received[0].new["status"] == "approved"
    assert hub.subscriber_count == 1
    other.close()
    assert hub.subscriber_count == 0


async def test_stream_cannot_be_restarted():
    hub = NotificationHub()
    stream = hub.subscribe(ChannelFilter(table="payments"))
    stream.close()
    async for _ in stream:
        pass
    with pytest.raises(RuntimeError):
        stream.__aiter__()


def test_subscribe_requires_a_filter():
    with pytest.raises(ValueError):
        NotificationHub().subscribe()


def test_full_queue_drops_events():
    hub = NotificationHub(queue_size=1)
    hub.subscribe(ChannelFilter(table="payments"))
    assert hub.publish(payment_update()) == 1
    assert hub.publish(payment_update()) == 0


def test_describe_payment_and_listing_changes():
    approved = describe_change(payment_update())
    assert approved["type"] == "payment_approved"
    assert "monthly" in approved["message"]
    assert approved["expires_in_seconds"] == 10

    rejected = describe_change(payment_update(status="rejected"))
    assert rejected["type"] == "payment_rejected"

    listing = describe_change(ChangeEvent(
        table="listings", event_type="UPDATE",
        new={"title": "Duplex in Ikoyi", "is_approved": True, "status": "approved"},
    ))
    assert listing["type"] == "listing_approved"
    assert "Duplex in Ikoyi" in listing["message"]


def test_describe_ignores_uninteresting_changes():
    assert describe_change(payment_update(status="pending")) is None
    assert describe_change(ChangeEvent(table="payments", event_type="INSERT", new={"status": "approved"})) is None
