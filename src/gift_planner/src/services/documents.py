"""
Shared lookup and write helpers for the service modules.

Embedded arrays (Event.members, Event.invitations, Wishlist.items) are always
changed with read_modify_write(): fetch the document, let the caller compute
and assign the new array, then save it back conditioned on the revision that
was read. If another writer got there first the save matches nothing, and the
whole cycle is re-run against the fresh document.
"""
import logging
from typing import Callable, Optional, Type, TypeVar

import bson
import mongoengine
from mongoengine.errors import SaveConditionError

from infrastructure.config import settings
from services.errors import ConcurrentModificationError, NotFoundError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=mongoengine.Document)
R = TypeVar('R')


def normalize_email(email: Optional[str]) -> str:
    return (email or '').strip().lower()


"""
Fetch a document by its string id.

Returns None when the id is absent, is not a valid ObjectId, or no document
has it. Documents keyed by their own string primary key (User) skip the
ObjectId check.
"""
def find_by_id(document: Type[T], doc_id) -> Optional[T]:
    if not doc_id:
        return None
    id_field = document._fields[document._meta['id_field']]
    if isinstance(id_field, mongoengine.ObjectIdField) and not bson.ObjectId.is_valid(str(doc_id)):
        return None
    return document.objects(pk=doc_id).first()


def require(document: Type[T], doc_id, label: str) -> T:
    found = find_by_id(document, doc_id)
    if found is None:
        raise NotFoundError(f"{label} not found")
    return found


def read_modify_write(document: Type[T], doc_id, label: str,
                      mutate: Callable[[T], R], max_attempts: Optional[int] = None) -> R:
    """
    Run one compare-and-swap read-modify-write cycle against a document.

    Args:
        document: Document class with an integer 'revision' field
        doc_id: Id of the document to change
        label: Entity name used in error messages ("Event", "Wishlist")
        mutate: Called with the freshly read document. Assigns the new field
            values (whole arrays) and returns the operation's result. It may
            raise a GiftPlannerError to abort without writing.
        max_attempts: Attempts before giving up; defaults to settings.MAX_WRITE_RETRIES

    Returns:
        Whatever mutate returned on the attempt that was persisted.
    """
    attempts = max_attempts or settings.MAX_WRITE_RETRIES

    for attempt in range(1, attempts + 1):
        doc = require(document, doc_id, label)
        result = mutate(doc)

        # Bump the counter so the next reader sees this write as a new version.
        read_revision = doc.revision or 0
        doc.revision = read_revision + 1
        # Documents written before revisions existed have no stored counter.
        condition = {'revision': read_revision} if read_revision else {'revision__in': [0, None]}

        try:
            doc.save(save_condition=condition)
            return result
        except SaveConditionError:
            logger.info("%s %s changed during update (attempt %d/%d), retrying",
                        label, doc_id, attempt, attempts)

    raise ConcurrentModificationError(
        f"{label} was modified concurrently; gave up after {attempts} attempts")
