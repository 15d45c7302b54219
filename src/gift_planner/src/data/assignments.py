"""
MongoEngine Document linking one wishlist to the member who will buy from it.
"""
import datetime
import mongoengine

PENDING = 'pending'
PURCHASED = 'purchased'

STATUSES = (PENDING, PURCHASED)

"""
Assignment stored in the 'assignments' collection (db alias: 'core').

Fields:
    event_id: Event the assignment belongs to.
    wishlist_id: Wishlist the assignee buys from.
    assigned_to: User id of the buyer.
    assigned_by: User id of the organizer who made the assignment.
    created_at: Creation timestamp.
    status: pending or purchased, mirrored from the wishlist's purchase state.

Notes:
    - The unique compound index backs up the service's query-then-insert check,
      so two racing creators cannot both persist the same triple.
"""
class Assignment(mongoengine.Document):
    event_id = mongoengine.StringField(db_field='eventId', required=True)
    wishlist_id = mongoengine.StringField(db_field='wishlistId', required=True)
    assigned_to = mongoengine.StringField(db_field='assignedTo', required=True)
    assigned_by = mongoengine.StringField(db_field='assignedBy', required=True)
    created_at = mongoengine.DateTimeField(db_field='createdAt', default=datetime.datetime.now)
    status = mongoengine.StringField(required=True, choices=STATUSES, default=PENDING)

    meta = {
        'db_alias': 'core',
        'collection': 'assignments',
        'indexes': [
            {'fields': ['event_id', 'wishlist_id', 'assigned_to'], 'unique': True},
            'wishlist_id',
            'assigned_to',
        ],
    }
