"""
MongoEngine EmbeddedDocument representing one entry of a wishlist.

Items are embedded inside their parent Wishlist (Wishlist.items) and have no
identity outside it. The item id is generated client-side and is only unique
within the one list.
"""
import mongoengine

# Optional attributes a caller may set or merge on an item. Anything else in
# an incoming field map is ignored by the wishlist service.
EDITABLE_FIELDS = ('name', 'description', 'link', 'price', 'is_favorite')

"""
A single wishlist entry.

    Fields:
        item_id: Client-generated id, stored under the key 'id'.
        name: What to buy (required).
        description, link, price, is_favorite: Optional details. When unset
                they are left out of the stored item entirely; MongoEngine does
                not serialize None-valued fields.
        purchased_by: User id of the buyer. Its presence is the one and only
                "purchased" flag.
        purchased_at: When the item was marked purchased. Set and cleared
                together with purchased_by.
"""
class WishlistItem(mongoengine.EmbeddedDocument):
    item_id = mongoengine.StringField(db_field='id', required=True)
    name = mongoengine.StringField(required=True)

    description = mongoengine.StringField()
    link = mongoengine.StringField()
    price = mongoengine.FloatField()
    is_favorite = mongoengine.BooleanField(db_field='isFavorite')

    purchased_by = mongoengine.StringField(db_field='purchasedBy')
    purchased_at = mongoengine.DateTimeField(db_field='purchasedAt')

    @property
    def is_purchased(self):
        return self.purchased_by is not None

    def as_fields(self) -> dict:
        """Return the item as a plain dict of its set attributes."""
        return {
            name: getattr(self, name)
            for name in self._fields_ordered
            if getattr(self, name) is not None
        }
