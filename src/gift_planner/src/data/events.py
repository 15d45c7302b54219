"""
MongoEngine model representing a gift-exchange event.

An Event is the root aggregate of the app: it owns its membership list and an
embedded list of Invitation records. Wishlists and assignments point back at
an event through their eventId field.
"""

import datetime
import mongoengine

# Embedded document for a single invitation (email, status, invitedBy, invitedAt).
from data.invitations import Invitation

"""
Event document stored in the 'events' collection of the 'core' database alias.

Fields:
        name: Human-friendly name of the occasion (required).
        created_by: User id of the creator. The creator is always a member.
        created_at: When the event was created.
        event_date: Optional date of the occasion.
        members: User ids of members, in stored order, without duplicates.
        invitations: Embedded Invitation records.
        revision: Write counter used as the compare-and-swap token for
            read-modify-write cycles on members/invitations.
"""
class Event(mongoengine.Document):
    name = mongoengine.StringField(required=True)
    created_by = mongoengine.StringField(db_field='createdBy', required=True)
    created_at = mongoengine.DateTimeField(db_field='createdAt', default=datetime.datetime.now)
    event_date = mongoengine.DateTimeField(db_field='eventDate')

    # Membership is stored as a plain list of user ids so "events for user"
    # is a single array-containment query (members=<uid>).
    members = mongoengine.ListField(mongoengine.StringField())
    invitations = mongoengine.EmbeddedDocumentListField(Invitation)

    revision = mongoengine.IntField(default=0)

    meta = {
        'db_alias': 'core',
        'collection': 'events',
        'indexes': ['members'],
    }

    def is_member(self, user_id) -> bool:
        return user_id in self.members

    def is_creator(self, user_id) -> bool:
        return self.created_by == user_id
