from typing import Dict, List, Optional, Sequence

import datetime
import logging
import uuid

from data.assignments import Assignment
from data.events import Event
from data.wishlist_items import EDITABLE_FIELDS, WishlistItem
from data.wishlists import Wishlist
import services.assignment_service as assignment_service
from services.documents import find_by_id, read_modify_write, require
from services.errors import NotFoundError, ValidationError, store_operation

logger = logging.getLogger(__name__)

"""
Service layer for wishlists and their embedded items.

Notes:
- Every item operation is fetch -> compute the new items array -> write the
  whole array back, conditioned on the revision read (read_modify_write).
  Two members adding items at the same moment therefore both keep their item.
- Values that are None are never written. Incoming field maps are stripped of
  None before use, and items are rebuilt from their set fields on every write
  so legacy records carrying null keys are cleaned as a side effect.
- Marking/unmarking a purchase mirrors the wishlist's purchase state onto its
  assignment, best-effort.
"""


def clean_fields(fields: Dict, allowed: Sequence[str] = EDITABLE_FIELDS) -> Dict:
    """Drop None values and keys that are not item attributes."""
    return {k: v for k, v in fields.items() if k in allowed and v is not None}


def _rebuild(item: WishlistItem, **overrides) -> WishlistItem:
    fields = item.as_fields()
    fields.update(overrides)
    return WishlistItem(**{k: v for k, v in fields.items() if v is not None})


def _new_item_id() -> str:
    return uuid.uuid4().hex


"""
Create an empty wishlist inside an event.

Returns:
    The newly created Wishlist document.
"""
@store_operation("Failed to create wishlist")
def create_wishlist(name: str, event_id: str, created_by: str) -> Wishlist:
    if not name or not name.strip():
        raise ValidationError("Wishlist name is required")
    require(Event, event_id, "Event")

    wishlist = Wishlist()
    wishlist.name = name.strip()
    wishlist.event_id = str(event_id)
    wishlist.created_by = created_by
    wishlist.items = []

    wishlist.save()
    logger.info("User %s created wishlist %s in event %s", created_by, wishlist.id, event_id)

    return wishlist


@store_operation("Failed to get wishlist")
def get_wishlist(wishlist_id: str) -> Optional[Wishlist]:
    return find_by_id(Wishlist, wishlist_id)


@store_operation("Failed to get wishlists")
def get_wishlists_for_event(event_id: str) -> List[Wishlist]:
    return list(Wishlist.objects(event_id=str(event_id)))


@store_operation("Failed to update wishlist")
def update_wishlist(wishlist_id: str, name: Optional[str] = None) -> Wishlist:
    wishlist = require(Wishlist, wishlist_id, "Wishlist")

    if name is not None:
        if not name.strip():
            raise ValidationError("Wishlist name is required")
        wishlist.name = name.strip()

    wishlist.save()
    return wishlist

"""
Delete a wishlist and any assignment pointing at it.
"""
@store_operation("Failed to delete wishlist")
def delete_wishlist(wishlist_id: str):
    wishlist = require(Wishlist, wishlist_id, "Wishlist")

    for assignment in Assignment.objects(wishlist_id=str(wishlist.id)):
        assignment.delete()

    wishlist.delete()
    logger.info("Deleted wishlist %s", wishlist_id)

"""
Append a new item to a wishlist.

Parameters:
    wishlist_id: Target wishlist.
    name: Item name (required).
    **fields: Optional description, link, price, is_favorite. None values
        are dropped rather than stored.

Returns:
    The WishlistItem as persisted, with its generated item_id.
"""
@store_operation("Failed to add item")
def add_item_to_wishlist(wishlist_id: str, name: str, **fields) -> WishlistItem:
    if not name or not name.strip():
        raise ValidationError("Item name is required")

    cleaned = clean_fields(fields)
    cleaned['name'] = name.strip()

    def mutate(wishlist: Wishlist) -> WishlistItem:
        item = WishlistItem(item_id=_new_item_id(), **cleaned)
        # Existing items are rebuilt too, which strips any legacy null keys.
        wishlist.items = [_rebuild(existing) for existing in wishlist.items] + [item]
        return item

    item = read_modify_write(Wishlist, wishlist_id, "Wishlist", mutate)
    logger.info("Added item %s to wishlist %s", item.item_id, wishlist_id)

    return item

"""
Merge the given fields over an existing item. None values are ignored, so
this cannot clear an attribute; purchase state has its own operations.
"""
@store_operation("Failed to update item")
def update_wishlist_item(wishlist_id: str, item_id: str, **updates) -> WishlistItem:
    if 'name' in updates and updates['name'] is not None and not str(updates['name']).strip():
        raise ValidationError("Item name is required")

    _, item = _rewrite_item(wishlist_id, item_id, clean_fields(updates))
    return item


@store_operation("Failed to delete item")
def delete_wishlist_item(wishlist_id: str, item_id: str) -> Wishlist:
    def mutate(wishlist: Wishlist) -> Wishlist:
        if wishlist.find_item(item_id) is None:
            raise NotFoundError("Item not found")
        wishlist.items = [_rebuild(item) for item in wishlist.items if item.item_id != item_id]
        return wishlist

    wishlist = read_modify_write(Wishlist, wishlist_id, "Wishlist", mutate)
    logger.info("Deleted item %s from wishlist %s", item_id, wishlist_id)

    return wishlist

"""
Store the items in the order given by item_ids.

item_ids must name every current item exactly once; anything else is a
ValidationError and nothing is written.
"""
@store_operation("Failed to reorder items")
def reorder_wishlist_items(wishlist_id: str, item_ids: Sequence[str]) -> Wishlist:
    item_ids = list(item_ids)

    def mutate(wishlist: Wishlist) -> Wishlist:
        by_id = {item.item_id: item for item in wishlist.items}
        # Same length and same ids means a permutation, since ids are unique.
        if len(item_ids) != len(by_id) or set(item_ids) != set(by_id):
            raise ValidationError("New order must contain every item of the wishlist exactly once")

        wishlist.items = [_rebuild(by_id[item_id]) for item_id in item_ids]
        return wishlist

    return read_modify_write(Wishlist, wishlist_id, "Wishlist", mutate)

"""
Mark an item as bought by purchased_by, then mirror the wishlist's purchase
state onto its assignment.
"""
@store_operation("Failed to mark item as purchased")
def mark_item_as_purchased(wishlist_id: str, item_id: str, purchased_by: str) -> WishlistItem:
    if not purchased_by:
        raise ValidationError("Buyer is required")

    wishlist, item = _rewrite_item(wishlist_id, item_id, {
        'purchased_by': purchased_by,
        'purchased_at': datetime.datetime.now(),
    })
    assignment_service.sync_status_with_purchases(str(wishlist.id), wishlist.has_purchases)

    return item


@store_operation("Failed to unmark item")
def unmark_item_as_purchased(wishlist_id: str, item_id: str) -> WishlistItem:
    wishlist, item = _rewrite_item(wishlist_id, item_id, {'purchased_by': None, 'purchased_at': None})
    assignment_service.sync_status_with_purchases(str(wishlist.id), wishlist.has_purchases)

    return item


def _rewrite_item(wishlist_id: str, item_id: str, overrides: Dict):
    # A None in overrides removes that key from the item. Returns (wishlist, item).
    def mutate(wishlist: Wishlist):
        if wishlist.find_item(item_id) is None:
            raise NotFoundError("Item not found")

        items = []
        updated = None
        for item in wishlist.items:
            if item.item_id == item_id:
                updated = _rebuild(item, **overrides)
                items.append(updated)
            else:
                items.append(_rebuild(item))

        wishlist.items = items
        return wishlist, updated

    return read_modify_write(Wishlist, wishlist_id, "Wishlist", mutate)

