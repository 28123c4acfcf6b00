import uuid

import pytest
from sqlalchemy.exc import IntegrityError

from models.subscription import Subscription
from services.subscriptions import SUBSCRIBED, UNSUBSCRIBED
from utils.errors import InternalError, InvalidInput, NotFound


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob")


def _pair_count(storage, subscriber_id, channel_id) -> int:
    return (
        storage.get_session()
        .query(Subscription)
        .filter(Subscription.subscriber_id == subscriber_id, Subscription.channel_id == channel_id)
        .count()
    )


def test_toggle_subscribes_then_unsubscribes(graph, storage, alice, bob) -> None:
    first = graph.toggle(bob["id"], "alice")
    assert first.action == SUBSCRIBED
    assert first.edge["subscriber_id"] == bob["id"]
    assert first.edge["channel_id"] == alice["id"]
    assert _pair_count(storage, bob["id"], alice["id"]) == 1

    second = graph.toggle(bob["id"], "alice")
    assert second.action == UNSUBSCRIBED
    assert second.edge["id"] == first.edge["id"]
    assert _pair_count(storage, bob["id"], alice["id"]) == 0


def test_toggle_resolves_channel_by_id_or_username(graph, alice, bob) -> None:
    assert graph.toggle(bob["id"], alice["id"]).action == SUBSCRIBED
    assert graph.toggle(bob["id"], "ALICE").action == UNSUBSCRIBED


def test_pair_count_never_exceeds_one(graph, storage, alice, bob) -> None:
    for _ in range(5):
        graph.toggle(bob["id"], "alice")
        assert _pair_count(storage, bob["id"], alice["id"]) in (0, 1)
    assert _pair_count(storage, bob["id"], alice["id"]) == 1


def test_toggle_unknown_channel(graph, bob) -> None:
    with pytest.raises(NotFound):
        graph.toggle(bob["id"], "nobody")
    with pytest.raises(NotFound):
        graph.toggle(bob["id"], str(uuid.uuid4()))


def test_cannot_subscribe_to_yourself(graph, storage, alice, bob) -> None:
    graph.toggle(bob["id"], "alice")

    for reference in (alice["id"], "alice", "Alice"):
        with pytest.raises(InvalidInput) as excinfo:
            graph.toggle(alice["id"], reference)
        assert excinfo.value.message == "Cannot subscribe to yourself"
    assert _pair_count(storage, alice["id"], alice["id"]) == 0


def test_store_rejects_duplicate_edge(storage, alice, bob) -> None:
    storage.new(Subscription(subscriber_id=bob["id"], channel_id=alice["id"]))
    storage.save()

    storage.new(Subscription(subscriber_id=bob["id"], channel_id=alice["id"]))
    with pytest.raises(IntegrityError):
        storage.save()


def test_store_rejects_self_edge(storage, alice) -> None:
    storage.new(Subscription(subscriber_id=alice["id"], channel_id=alice["id"]))
    with pytest.raises(IntegrityError):
        storage.save()


def test_toggle_racing_insert_reports_subscribed(graph, storage, monkeypatch, alice, bob) -> None:
    # the other request already stored the edge, but our read happened before it
    storage.new(Subscription(subscriber_id=bob["id"], channel_id=alice["id"]))
    storage.save()

    real_find = graph._find_edge
    calls = []

    def stale_then_real(subscriber_id, channel_id):
        calls.append(1)
        if len(calls) == 1:
            return None
        return real_find(subscriber_id, channel_id)

    monkeypatch.setattr(graph, "_find_edge", stale_then_real)

    result = graph.toggle(bob["id"], "alice")

    assert result.action == SUBSCRIBED
    assert _pair_count(storage, bob["id"], alice["id"]) == 1


def test_toggle_delete_affecting_nothing_is_internal_error(graph, monkeypatch, alice, bob) -> None:
    phantom = Subscription(id=str(uuid.uuid4()), subscriber_id=bob["id"], channel_id=alice["id"])
    monkeypatch.setattr(graph, "_find_edge", lambda subscriber_id, channel_id: phantom)

    with pytest.raises(InternalError):
        graph.toggle(bob["id"], "alice")


def test_list_subscribers_and_subscriptions(graph, make_user, alice, bob) -> None:
    carol = make_user("carol")
    graph.toggle(bob["id"], "alice")
    graph.toggle(carol["id"], "alice")
    graph.toggle(alice["id"], "carol")

    subscribers = graph.list_subscribers(alice["id"])
    assert sorted(s["username"] for s in subscribers) == ["bob", "carol"]
    assert set(subscribers[0]) == {"id", "username", "full_name", "avatar"}

    channels = graph.list_subscriptions(alice["id"])
    assert [c["username"] for c in channels] == ["carol"]
    assert graph.list_subscriptions(bob["id"])[0]["id"] == alice["id"]
    assert graph.list_subscribers(bob["id"]) == []


@pytest.mark.parametrize("bad_id", ["alice", "", "1234", None])
def test_list_rejects_malformed_ids(graph, bad_id) -> None:
    with pytest.raises(InvalidInput):
        graph.list_subscribers(bad_id)
    with pytest.raises(InvalidInput):
        graph.list_subscriptions(bad_id)


def test_counts_match_edges(graph, make_user, alice, bob) -> None:
    carol = make_user("carol")
    graph.toggle(bob["id"], "alice")
    graph.toggle(carol["id"], "alice")
    graph.toggle(alice["id"], "bob")

    assert graph.subscriber_count(alice["id"]) == 2
    assert graph.subscribed_to_count(alice["id"]) == 1
    assert graph.subscriber_count(carol["id"]) == 0
    assert graph.is_subscribed(bob["id"], alice["id"])
    assert not graph.is_subscribed(alice["id"], carol["id"])
    assert not graph.is_subscribed(None, alice["id"])
