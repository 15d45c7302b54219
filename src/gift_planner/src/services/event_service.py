from typing import List, NamedTuple, Optional

import datetime
import logging

from data.assignments import Assignment
from data.events import Event
from data.invitations import ACCEPTED, PENDING, REJECTED, Invitation
from data.wishlists import Wishlist
import services.user_service as user_service
from services.documents import find_by_id, normalize_email, read_modify_write, require
from services.errors import (
    AlreadyInvitedError,
    ConflictError,
    GiftPlannerError,
    NotFoundError,
    ValidationError,
    store_operation,
)

logger = logging.getLogger(__name__)

"""
Service layer for events: CRUD plus the membership and invitation state machine.

Notes:
- members and invitations are only ever written as whole arrays, through
  services.documents.read_modify_write, so a concurrent change to the same
  event makes the write retry instead of being silently overwritten.
- Invitation state per record: pending -> accepted | rejected. A fresh invite
  recycles an accepted/rejected record back to pending in place.
- The creator is always the first member and can never be removed.
"""


class EventWithInvitation(NamedTuple):
    """An event carrying a pending invitation, plus that record's position."""
    event: Event
    invitation_index: int

    @property
    def invitation(self) -> Invitation:
        return self.event.invitations[self.invitation_index]


def pending_invitation_index(event: Event, email: str) -> int:
    """Index of the pending invitation for email in event, or -1."""
    for idx, invitation in enumerate(event.invitations):
        if invitation.email == email and invitation.status == PENDING:
            return idx
    return -1


def _require_name(name: Optional[str]) -> str:
    if not name or not name.strip():
        raise ValidationError("Event name is required")
    return name.strip()


"""
Create and persist a new Event with the creator as its only member.

Returns:
    The newly created Event document.
"""
@store_operation("Failed to create event")
def create_event(name: str, created_by: str,
                 event_date: Optional[datetime.datetime] = None) -> Event:
    if not created_by:
        raise ValidationError("Event creator is required")

    event = Event()
    event.name = _require_name(name)
    event.created_by = created_by
    event.event_date = event_date
    event.members = [created_by]  # Creator is always the first member.
    event.invitations = []

    event.save()
    logger.info("User %s created event %s", created_by, event.id)

    return event


@store_operation("Failed to get event")
def get_event(event_id: str) -> Optional[Event]:
    return find_by_id(Event, event_id)

"""
All events the user is a member of (single array-containment query).
"""
@store_operation("Failed to get events")
def get_events_for_user(user_id: str) -> List[Event]:
    return list(Event.objects(members=user_id))

"""
Rename an event and/or move its date. Arguments left as None are not touched.
"""
@store_operation("Failed to update event")
def update_event(event_id: str, name: Optional[str] = None,
                 event_date: Optional[datetime.datetime] = None) -> Event:
    event = require(Event, event_id, "Event")

    if name is not None:
        event.name = _require_name(name)
    if event_date is not None:
        event.event_date = event_date

    event.save()
    return event

"""
Delete an event together with its wishlists and assignments.

Children are removed first, one by one, so change listeners see each
deletion. A child that fails to delete is logged and left orphaned; it does
not stop the event itself from being deleted.
"""
@store_operation("Failed to delete event")
def delete_event(event_id: str):
    event = require(Event, event_id, "Event")
    event_key = str(event.id)

    for child in list(Assignment.objects(event_id=event_key)) + list(Wishlist.objects(event_id=event_key)):
        try:
            child.delete()
        except Exception:
            logger.exception("Could not delete %s %s of event %s",
                             child.__class__.__name__, child.id, event_key)

    event.delete()
    logger.info("Deleted event %s", event_key)

"""
Invite an email address to an event.

Behavior:
- No record for the email: append a new pending invitation.
- A pending record exists: AlreadyInvitedError.
- Only accepted/rejected records exist: the first one is reset in place to
  pending, with the new inviter and timestamp.
"""
@store_operation("Failed to invite user")
def invite_user_to_event(event_id: str, email: str, invited_by: str) -> Invitation:
    email = normalize_email(email)
    if not email:
        raise ValidationError("Email is required")

    def mutate(event: Event) -> Invitation:
        if pending_invitation_index(event, email) != -1:
            raise AlreadyInvitedError("User already invited")

        invitation = Invitation(email=email, status=PENDING,
                                invited_by=invited_by, invited_at=datetime.datetime.now())

        invitations = list(event.invitations)  # Copy; the whole array is written back.
        for idx, existing in enumerate(invitations):
            if existing.email == email:
                invitations[idx] = invitation  # Same position; the array does not grow.
                break
        else:
            invitations.append(invitation)

        event.invitations = invitations
        return invitation

    invitation = read_modify_write(Event, event_id, "Event", mutate)
    logger.info("%s invited %s to event %s", invited_by, email, event_id)

    return invitation

"""
Accept the pending invitation for email on behalf of user_id.

The status flip and the new member are written in the same save, so the two
can never be observed apart.
"""
@store_operation("Failed to accept invitation")
def accept_invitation(event_id: str, user_id: str, email: str) -> Event:
    email = normalize_email(email)

    def mutate(event: Event) -> Event:
        idx = pending_invitation_index(event, email)
        if idx == -1:
            raise NotFoundError("Invitation not found or already processed")

        if event.is_member(user_id):
            raise ConflictError("User is already a member of this event")

        invitations = list(event.invitations)
        invitations[idx] = _with_status(invitations[idx], ACCEPTED)

        event.invitations = invitations
        event.members = list(event.members) + [user_id]
        return event

    event = read_modify_write(Event, event_id, "Event", mutate)
    logger.info("User %s accepted invitation to event %s", user_id, event_id)

    return event


@store_operation("Failed to reject invitation")
def reject_invitation(event_id: str, email: str) -> Event:
    email = normalize_email(email)

    def mutate(event: Event) -> Event:
        idx = pending_invitation_index(event, email)
        if idx == -1:
            raise NotFoundError("Invitation not found or already processed")

        invitations = list(event.invitations)
        invitations[idx] = _with_status(invitations[idx], REJECTED)

        event.invitations = invitations
        return event

    event = read_modify_write(Event, event_id, "Event", mutate)
    logger.info("%s rejected invitation to event %s", email, event_id)

    return event

"""
Remove a member from an event.

The creator cannot be removed. Alongside the membership change, the accepted
invitation matching the member's profile email is dropped so a later invite
starts from a clean record. That cleanup is best-effort: without a readable
profile the member is still removed and the stale record stays.
"""
@store_operation("Failed to remove member")
def remove_member_from_event(event_id: str, member_id: str) -> Event:
    email = _member_email(member_id)

    def mutate(event: Event) -> Event:
        if event.is_creator(member_id):
            raise ConflictError("The event creator cannot be removed")
        if not event.is_member(member_id):
            raise NotFoundError("User is not a member of this event")

        event.members = [m for m in event.members if m != member_id]
        # Drop the stale accepted record so a later invite appends a fresh one.
        if email:
            event.invitations = [
                inv for inv in event.invitations
                if not (inv.email == email and inv.status == ACCEPTED)
            ]
        return event

    event = read_modify_write(Event, event_id, "Event", mutate)
    logger.info("Removed user %s from event %s", member_id, event_id)

    return event

"""
Pull form of the pending-invitations projection.

The store cannot filter inside the invitations array, so every event is read
and matched client-side.
"""
@store_operation("Failed to get events with invitations")
def get_events_with_pending_invitations(email: str) -> List[EventWithInvitation]:
    return match_pending_invitations(Event.objects(), email)


def match_pending_invitations(events, email: str) -> List[EventWithInvitation]:
    email = normalize_email(email)
    matches = []
    for event in events:
        idx = pending_invitation_index(event, email)
        if idx != -1:
            matches.append(EventWithInvitation(event, idx))
    return matches


def _with_status(invitation: Invitation, status: str) -> Invitation:
    return Invitation(email=invitation.email, status=status,
                      invited_by=invitation.invited_by, invited_at=invitation.invited_at)


def _member_email(member_id: str) -> Optional[str]:
    try:
        profile = user_service.get_user_data(member_id)
    except GiftPlannerError as ex:
        logger.warning("Could not load profile of %s, skipping invitation cleanup: %s", member_id, ex)
        return None

    if profile is None:
        logger.warning("No profile for %s, skipping invitation cleanup", member_id)
        return None

    return normalize_email(profile.email)
