from typing import List, Optional

import logging

from mongoengine.errors import NotUniqueError

from data.assignments import PENDING, PURCHASED, STATUSES, Assignment
from services.documents import find_by_id, require
from services.errors import ConflictError, GiftPlannerError, ValidationError, store_operation

logger = logging.getLogger(__name__)

"""
Service layer for assignments (who buys from which wishlist).

Notes:
- One assignment per (event, wishlist, assignee). The query-then-insert check
  gives the friendly error; the unique index on the triple catches the case
  where two creators pass the check at the same time.
- Assignment status follows the wishlist's purchase state, see
  sync_status_with_purchases(). That mirror never fails the purchase itself.
"""

"""
Create a pending assignment of wishlist_id to assigned_to.

Raises:
    ValidationError: self-assignment, or a missing id.
    ConflictError: the same triple is already assigned.
"""
@store_operation("Failed to create assignment")
def create_assignment(event_id: str, wishlist_id: str,
                      assigned_to: str, assigned_by: str) -> Assignment:
    if not (event_id and wishlist_id and assigned_to and assigned_by):
        raise ValidationError("Event, wishlist, assignee and organizer are all required")
    if assigned_to == assigned_by:
        raise ValidationError("You cannot assign a wishlist to yourself")

    existing = Assignment.objects(event_id=event_id, wishlist_id=wishlist_id,
                                  assigned_to=assigned_to).first()
    if existing:
        raise ConflictError("Assignment already exists")

    assignment = Assignment()
    assignment.event_id = event_id
    assignment.wishlist_id = wishlist_id
    assignment.assigned_to = assigned_to
    assignment.assigned_by = assigned_by
    assignment.status = PENDING

    try:
        assignment.save()
    except NotUniqueError as ex:
        # Lost the race against a concurrent creator between check and insert.
        raise ConflictError("Assignment already exists") from ex

    logger.info("User %s assigned wishlist %s to %s", assigned_by, wishlist_id, assigned_to)
    return assignment


@store_operation("Failed to get assignment")
def get_assignment(assignment_id: str) -> Optional[Assignment]:
    return find_by_id(Assignment, assignment_id)


@store_operation("Failed to get assignments")
def get_assignments_for_event(event_id: str) -> List[Assignment]:
    return list(Assignment.objects(event_id=event_id))


@store_operation("Failed to get assignments")
def get_assignments_for_user(user_id: str) -> List[Assignment]:
    return list(Assignment.objects(assigned_to=user_id))

"""
The first assignment for a wishlist, if any. Use get_assignments_for_wishlist
when the wishlist may be assigned to several members.
"""
@store_operation("Failed to get assignment")
def get_assignment_for_wishlist(wishlist_id: str) -> Optional[Assignment]:
    return Assignment.objects(wishlist_id=wishlist_id).first()


@store_operation("Failed to get assignments")
def get_assignments_for_wishlist(wishlist_id: str) -> List[Assignment]:
    return list(Assignment.objects(wishlist_id=wishlist_id))

"""
Overwrite an assignment's status. Any transition between pending and
purchased is allowed.
"""
@store_operation("Failed to update assignment")
def update_assignment_status(assignment_id: str, status: str) -> Assignment:
    if status not in STATUSES:
        raise ValidationError(f"Unknown assignment status '{status}'")

    assignment = require(Assignment, assignment_id, "Assignment")
    assignment.status = status
    assignment.save()

    return assignment


@store_operation("Failed to delete assignment")
def delete_assignment(assignment_id: str):
    assignment = require(Assignment, assignment_id, "Assignment")
    assignment.delete()
    logger.info("Deleted assignment %s", assignment_id)

"""
Mirror a wishlist's purchase state onto its assignments (best-effort).

Several members may be assigned the same wishlist; every one of their
assignments follows the wishlist.

Parameters:
    wishlist_id: The wishlist whose items just changed purchase state.
    has_purchases: Whether any item of the wishlist is purchased now.

Returns:
    The assignments that were updated. Failures are logged, never raised,
    and do not stop the remaining assignments from being updated.
"""
def sync_status_with_purchases(wishlist_id: str, has_purchases: bool) -> List[Assignment]:
    target = PURCHASED if has_purchases else PENDING

    try:
        assignments = get_assignments_for_wishlist(wishlist_id)
    except GiftPlannerError:
        logger.exception("Could not load assignments of wishlist %s", wishlist_id)
        return []

    updated = []
    for assignment in assignments:
        if assignment.status == target:
            continue  # Already in step with the wishlist.
        try:
            updated.append(update_assignment_status(str(assignment.id), target))
        except GiftPlannerError:
            logger.exception("Could not mirror purchase state of wishlist %s to assignment %s",
                             wishlist_id, assignment.id)

    return updated
