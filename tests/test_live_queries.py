"""Tests for the live query projections."""

import pytest

import services.assignment_service as assignment_svc
import services.event_service as event_svc
import services.live_queries as live
import services.wishlist_service as wishlist_svc
from services.errors import StoreError


class Recorder:
    """Collects every snapshot a subscription delivers."""

    def __init__(self):
        self.snapshots = []
        self.errors = []

    def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    def on_error(self, ex):
        self.errors.append(ex)

    @property
    def last(self):
        return self.snapshots[-1]


@pytest.fixture
def recorder():
    return Recorder()


def test_events_for_user_initial_and_updates(recorder, alice, bob):
    unsubscribe = live.subscribe_to_events_for_user(bob.uid, recorder)
    try:
        assert recorder.snapshots == [[]]

        event = event_svc.create_event("Secret Santa", alice.uid)
        event_svc.invite_user_to_event(str(event.id), bob.email, alice.uid)
        assert recorder.last == []

        event_svc.accept_invitation(str(event.id), bob.uid, bob.email)
        assert [e.id for e in recorder.last] == [event.id]

        event_svc.remove_member_from_event(str(event.id), bob.uid)
        assert recorder.last == []
    finally:
        unsubscribe()


def test_unsubscribe_stops_delivery(recorder, alice):
    unsubscribe = live.subscribe_to_events_for_user(alice.uid, recorder)
    unsubscribe()

    event_svc.create_event("Quiet", alice.uid)

    assert recorder.snapshots == [[]]
    unsubscribe()  # A second call is harmless.


def test_pending_invitations_projection(recorder, event, alice, carol):
    unsubscribe = live.subscribe_to_pending_invitations("carol@x.com", recorder)
    try:
        assert recorder.snapshots == [[]]

        event_svc.invite_user_to_event(str(event.id), "carol@x.com", alice.uid)
        assert [(m.event.id, m.invitation_index) for m in recorder.last] == [(event.id, 0)]

        event_svc.reject_invitation(str(event.id), "carol@x.com")
        assert recorder.last == []

        event_svc.invite_user_to_event(str(event.id), "carol@x.com", alice.uid)
        event_svc.delete_event(str(event.id))
        assert recorder.last == []
    finally:
        unsubscribe()


def test_error_goes_to_error_callback(monkeypatch, recorder, alice):
    def broken(user_id):
        raise StoreError("Failed to get events: boom")

    monkeypatch.setattr(event_svc, "get_events_for_user", broken)

    unsubscribe = live.subscribe_to_events_for_user(alice.uid, recorder, recorder.on_error)
    unsubscribe()

    assert recorder.snapshots == []
    assert [e.message for e in recorder.errors] == ["Failed to get events: boom"]


def test_error_without_error_callback_delivers_empty(monkeypatch, recorder, alice):
    def broken(email):
        raise StoreError("Failed to get events with invitations: boom")

    monkeypatch.setattr(event_svc, "get_events_with_pending_invitations", broken)

    unsubscribe = live.subscribe_to_pending_invitations(alice.email, recorder)
    unsubscribe()

    assert recorder.snapshots == [[]]


def test_failing_subscriber_does_not_fail_the_write(event, alice, bob):
    def broken(snapshot):
        if snapshot:
            raise RuntimeError("ui bug")

    unsubscribe = live.subscribe_to_pending_invitations(bob.email, broken)
    try:
        invitation = event_svc.invite_user_to_event(str(event.id), bob.email, alice.uid)
    finally:
        unsubscribe()

    assert invitation.email == bob.email
    stored = event_svc.get_event(str(event.id))
    assert [(i.email, i.status) for i in stored.invitations] == [(bob.email, "pending")]


def test_failing_error_callback_does_not_fail_the_write(monkeypatch, recorder, alice):
    calls = []

    def flaky(user_id):
        calls.append(user_id)
        if len(calls) > 1:
            raise StoreError("Failed to get events: boom")
        return []

    def broken_on_error(ex):
        raise RuntimeError("ui bug")

    monkeypatch.setattr(event_svc, "get_events_for_user", flaky)

    unsubscribe = live.subscribe_to_events_for_user(alice.uid, recorder, broken_on_error)
    try:
        event = event_svc.create_event("Still saved", alice.uid)
    finally:
        unsubscribe()

    assert event_svc.get_event(str(event.id)).name == "Still saved"
    assert recorder.snapshots == [[]]


def test_single_event_subscription(recorder, event, alice):
    other = event_svc.create_event("Other", alice.uid)
    unsubscribe = live.subscribe_to_event(str(event.id), recorder)
    try:
        assert recorder.last.id == event.id

        event_svc.update_event(str(other.id), name="Ignored")
        assert len(recorder.snapshots) == 1

        event_svc.update_event(str(event.id), name="Renamed")
        assert recorder.last.name == "Renamed"

        event_svc.delete_event(str(event.id))
        assert recorder.last is None
    finally:
        unsubscribe()


def test_wishlist_subscriptions(recorder, event, alice):
    per_event = Recorder()
    wishlist = wishlist_svc.create_wishlist("List", str(event.id), alice.uid)
    unsubscribe_one = live.subscribe_to_wishlist(str(wishlist.id), recorder)
    unsubscribe_all = live.subscribe_to_wishlists_for_event(str(event.id), per_event)
    try:
        item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")
        assert [i.item_id for i in recorder.last.items] == [item.item_id]

        second = wishlist_svc.create_wishlist("Second", str(event.id), alice.uid)
        assert {w.id for w in per_event.last} == {wishlist.id, second.id}
    finally:
        unsubscribe_one()
        unsubscribe_all()


def test_assignments_for_event_subscription(recorder, event_with_bob, wishlist, alice, bob):
    unsubscribe = live.subscribe_to_assignments_for_event(str(event_with_bob.id), recorder)
    try:
        assert recorder.last == []

        assignment = assignment_svc.create_assignment(
            str(event_with_bob.id), str(wishlist.id), bob.uid, alice.uid)
        assert [a.id for a in recorder.last] == [assignment.id]

        item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")
        wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, bob.uid)
        assert recorder.last[0].status == "purchased"

        assignment_svc.delete_assignment(str(assignment.id))
        assert recorder.last == []
    finally:
        unsubscribe()
