"""
MongoEngine model representing a wishlist inside an event.

Each Wishlist belongs to one Event (eventId, not enforced by the store) and
carries an ordered, embedded list of WishlistItem records. The order is the
one members chose and is stored exactly as given.
"""

import datetime
import mongoengine

from data.wishlist_items import WishlistItem

"""
Wishlist document stored in the 'wishlists' collection (db alias: 'core').

Fields:
        name: Display name of the wishlist (required).
        event_id: Id of the owning Event, as a string.
        created_by: User id of the creator.
        created_at: Creation timestamp.
        items: Embedded WishlistItem list. Always rewritten as a whole.
        revision: Compare-and-swap token for read-modify-write cycles on items.
"""
class Wishlist(mongoengine.Document):
    name = mongoengine.StringField(required=True)
    event_id = mongoengine.StringField(db_field='eventId', required=True)
    created_by = mongoengine.StringField(db_field='createdBy', required=True)
    created_at = mongoengine.DateTimeField(db_field='createdAt', default=datetime.datetime.now)

    items = mongoengine.EmbeddedDocumentListField(WishlistItem)

    revision = mongoengine.IntField(default=0)

    meta = {
        'db_alias': 'core',
        'collection': 'wishlists',
        'indexes': ['event_id'],
    }

    def find_item(self, item_id):
        for item in self.items:
            if item.item_id == item_id:
                return item
        return None

    @property
    def has_purchases(self) -> bool:
        return any(item.is_purchased for item in self.items)
