"""
Live query projections: snapshots pushed to subscribers whenever the store changes.

Every subscribe_* call returns an unsubscribe callable. The subscriber gets one
snapshot immediately, then a freshly derived snapshot after each save or
delete of a document in the watched collection. Change notifications come
from MongoEngine's post_save / post_delete signals (blinker), so they cover
every write this process makes through Document.save() / Document.delete().

Callers must unsubscribe on teardown: listeners are held strongly and stay
registered until then.

Errors while deriving a snapshot go to on_error when given. Without an error
callback the subscriber receives the empty default instead ([] for lists,
None for single documents), so a broken query never leaves it waiting.
A subscriber that raises while handling a change is logged; the write that
triggered it still returns normally.
"""
import logging
from typing import Callable, List, Optional

from mongoengine import signals

from data.assignments import Assignment
from data.events import Event
from data.wishlists import Wishlist
import services.assignment_service as assignment_service
import services.event_service as event_service
import services.wishlist_service as wishlist_service
from services.errors import GiftPlannerError

logger = logging.getLogger(__name__)

Unsubscribe = Callable[[], None]


class LiveQuery:
    """One listener re-deriving a projection when its collection changes."""

    def __init__(self, name, document, derive, callback, on_error=None, empty=None, relevant=None):
        self.name = name
        self.document = document
        self.derive = derive
        self.callback = callback
        self.on_error = on_error
        self.empty = empty
        # Optional filter on the changed document; None means "any change".
        self.relevant = relevant
        self.active = False
        self._receiver = self._on_change

    def start(self) -> Unsubscribe:
        signals.post_save.connect(self._receiver, sender=self.document, weak=False)
        signals.post_delete.connect(self._receiver, sender=self.document, weak=False)
        self.active = True
        logger.debug("Subscribed %s", self.name)

        self.refresh()
        return self.unsubscribe

    def unsubscribe(self):
        if not self.active:
            return
        signals.post_save.disconnect(self._receiver, sender=self.document)
        signals.post_delete.disconnect(self._receiver, sender=self.document)
        self.active = False
        logger.debug("Unsubscribed %s", self.name)

    def refresh(self):
        try:
            snapshot = self.derive()
        except GiftPlannerError as ex:
            logger.error("Error in live query %s: %s", self.name, ex)
            if self.on_error is not None:
                self.on_error(ex)
            else:
                self.callback(self._empty_snapshot())
            return

        self.callback(snapshot)

    def _on_change(self, sender, document=None, **kwargs):
        if not self.active:
            return
        if self.relevant is not None and document is not None and not self.relevant(document):
            return

        # Runs on the writer's call stack; the write is already persisted.
        try:
            self.refresh()
        except Exception:
            logger.exception("Subscriber of live query %s failed", self.name)

    def _empty_snapshot(self):
        return list(self.empty) if isinstance(self.empty, list) else self.empty


def _same_id(doc_id):
    return lambda document: str(document.pk) == str(doc_id)


def subscribe_to_event(event_id: str, callback: Callable[[Optional[Event]], None],
                       on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"event:{event_id}", Event,
                     lambda: event_service.get_event(event_id),
                     callback, on_error, empty=None,
                     relevant=_same_id(event_id)).start()


"""
Events the user is a member of.

Any event change re-runs the membership query; a filter on the changed
document would miss the user being removed from an event.
"""
def subscribe_to_events_for_user(user_id: str, callback: Callable[[List[Event]], None],
                                 on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"events-for-user:{user_id}", Event,
                     lambda: event_service.get_events_for_user(user_id),
                     callback, on_error, empty=[]).start()


"""
Events holding a pending invitation for email.

The store cannot query inside the invitations array, so every change to any
event re-scans the whole events collection. Cost is O(number of events) per
change.
"""
def subscribe_to_pending_invitations(
        email: str,
        callback: Callable[[List[event_service.EventWithInvitation]], None],
        on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"pending-invitations:{email}", Event,
                     lambda: event_service.get_events_with_pending_invitations(email),
                     callback, on_error, empty=[]).start()


def subscribe_to_wishlist(wishlist_id: str, callback: Callable[[Optional[Wishlist]], None],
                          on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"wishlist:{wishlist_id}", Wishlist,
                     lambda: wishlist_service.get_wishlist(wishlist_id),
                     callback, on_error, empty=None,
                     relevant=_same_id(wishlist_id)).start()


def subscribe_to_wishlists_for_event(event_id: str, callback: Callable[[List[Wishlist]], None],
                                     on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"wishlists-for-event:{event_id}", Wishlist,
                     lambda: wishlist_service.get_wishlists_for_event(event_id),
                     callback, on_error, empty=[],
                     relevant=lambda wishlist: wishlist.event_id == str(event_id)).start()


def subscribe_to_assignments_for_event(event_id: str, callback: Callable[[List[Assignment]], None],
                                       on_error: Optional[Callable[[Exception], None]] = None) -> Unsubscribe:
    return LiveQuery(f"assignments-for-event:{event_id}", Assignment,
                     lambda: assignment_service.get_assignments_for_event(event_id),
                     callback, on_error, empty=[],
                     relevant=lambda assignment: assignment.event_id == str(event_id)).start()
