"""Tests for assignments and the purchase-state mirror."""

import pytest
from pymongo.errors import OperationFailure

from data.assignments import PENDING, PURCHASED, Assignment
import services.assignment_service as assignment_svc
import services.event_service as event_svc
import services.wishlist_service as wishlist_svc
from services.errors import ConflictError, NotFoundError, ValidationError


@pytest.fixture
def assignment(event_with_bob, wishlist, alice, bob):
    return assignment_svc.create_assignment(str(event_with_bob.id), str(wishlist.id), bob.uid, alice.uid)


def test_create_assignment(assignment, event_with_bob, wishlist, alice, bob, raw_document):
    raw = raw_document(Assignment, assignment.id)
    assert raw["eventId"] == str(event_with_bob.id)
    assert raw["wishlistId"] == str(wishlist.id)
    assert raw["assignedTo"] == bob.uid
    assert raw["assignedBy"] == alice.uid
    assert raw["status"] == PENDING
    assert "createdAt" in raw


def test_duplicate_assignment_conflicts(assignment, event_with_bob, wishlist, alice, bob):
    """The same wishlist cannot be assigned to the same person twice."""
    with pytest.raises(ConflictError):
        assignment_svc.create_assignment(str(event_with_bob.id), str(wishlist.id), bob.uid, alice.uid)

    assert Assignment.objects.count() == 1


def test_unique_index_catches_a_lost_check_race(monkeypatch, assignment, event_with_bob, wishlist, alice, bob):
    """Two creators pass the pre-check together; the second insert is still refused."""
    # Make the pre-check blind, as it would be for the slower of two racing callers.
    monkeypatch.setattr(Assignment, "objects", Assignment.objects.none())

    with pytest.raises(ConflictError):
        assignment_svc.create_assignment(str(event_with_bob.id), str(wishlist.id), bob.uid, alice.uid)

    monkeypatch.undo()
    assert Assignment.objects.count() == 1


def test_self_assignment_is_rejected(event, wishlist, alice):
    with pytest.raises(ValidationError):
        assignment_svc.create_assignment(str(event.id), str(wishlist.id), alice.uid, alice.uid)


def test_get_assignments(assignment, event_with_bob, wishlist, bob, alice):
    assert assignment_svc.get_assignment(str(assignment.id)).id == assignment.id
    assert [a.id for a in assignment_svc.get_assignments_for_event(str(event_with_bob.id))] == [assignment.id]
    assert [a.id for a in assignment_svc.get_assignments_for_user(bob.uid)] == [assignment.id]
    assert assignment_svc.get_assignments_for_user(alice.uid) == []
    assert assignment_svc.get_assignment_for_wishlist(str(wishlist.id)).id == assignment.id
    assert assignment_svc.get_assignment("5f0000000000000000000000") is None


def test_update_status_is_unguarded(assignment):
    assignment_svc.update_assignment_status(str(assignment.id), PURCHASED)
    assert assignment_svc.get_assignment(str(assignment.id)).status == PURCHASED

    assignment_svc.update_assignment_status(str(assignment.id), PENDING)
    assert assignment_svc.get_assignment(str(assignment.id)).status == PENDING


def test_update_status_rejects_unknown_status(assignment):
    with pytest.raises(ValidationError):
        assignment_svc.update_assignment_status(str(assignment.id), "lost")


def test_delete_assignment(assignment):
    assignment_svc.delete_assignment(str(assignment.id))

    assert assignment_svc.get_assignment(str(assignment.id)) is None
    with pytest.raises(NotFoundError):
        assignment_svc.delete_assignment(str(assignment.id))


def test_purchase_toggle_mirrors_assignment_status(assignment, wishlist, bob):
    """Buying and un-buying an item flips the assignment between purchased and pending."""
    item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")

    wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, bob.uid)
    assert assignment_svc.get_assignment(str(assignment.id)).status == PURCHASED

    wishlist_svc.unmark_item_as_purchased(str(wishlist.id), item.item_id)
    assert assignment_svc.get_assignment(str(assignment.id)).status == PENDING


def test_assignment_stays_purchased_while_any_item_is(assignment, wishlist, bob):
    book = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")
    mug = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Mug")
    wishlist_svc.mark_item_as_purchased(str(wishlist.id), book.item_id, bob.uid)
    wishlist_svc.mark_item_as_purchased(str(wishlist.id), mug.item_id, bob.uid)

    wishlist_svc.unmark_item_as_purchased(str(wishlist.id), book.item_id)

    assert assignment_svc.get_assignment(str(assignment.id)).status == PURCHASED


def test_purchase_without_assignment_is_fine(wishlist, bob):
    item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")

    stored = wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, bob.uid)

    assert stored.purchased_by == bob.uid


def test_mirror_failure_does_not_fail_purchase(monkeypatch, assignment, wishlist, bob):
    item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")

    def broken(*args, **kwargs):
        raise OperationFailure("assignments unavailable", code=2)

    monkeypatch.setattr(Assignment, "save", broken)

    wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, bob.uid)

    monkeypatch.undo()
    assert wishlist_svc.get_wishlist(str(wishlist.id)).find_item(item.item_id).is_purchased
    assert assignment_svc.get_assignment(str(assignment.id)).status == PENDING


def test_purchase_mirrors_onto_every_assignee(assignment, event_with_bob, wishlist, alice, bob, carol):
    event_id = str(event_with_bob.id)
    event_svc.invite_user_to_event(event_id, carol.email, alice.uid)
    event_svc.accept_invitation(event_id, carol.uid, carol.email)
    second = assignment_svc.create_assignment(event_id, str(wishlist.id), carol.uid, alice.uid)
    item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), "Book")

    wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, bob.uid)

    statuses = {a.assigned_to: a.status for a in assignment_svc.get_assignments_for_wishlist(str(wishlist.id))}
    assert statuses == {bob.uid: PURCHASED, carol.uid: PURCHASED}

    wishlist_svc.unmark_item_as_purchased(str(wishlist.id), item.item_id)

    assert assignment_svc.get_assignment(str(assignment.id)).status == PENDING
    assert assignment_svc.get_assignment(str(second.id)).status == PENDING


def test_sync_reports_only_changed_assignments(assignment, wishlist):
    assert assignment_svc.sync_status_with_purchases(str(wishlist.id), False) == []

    updated = assignment_svc.sync_status_with_purchases(str(wishlist.id), True)

    assert [a.id for a in updated] == [assignment.id]
