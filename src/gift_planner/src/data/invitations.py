"""
MongoEngine EmbeddedDocument representing one invitation to an event.

Invitations live inside their Event (Event.invitations) and have no identity
of their own; a record is addressed by its email and its position in the list.
"""
import datetime
import mongoengine

PENDING = 'pending'
ACCEPTED = 'accepted'
REJECTED = 'rejected'

STATUSES = (PENDING, ACCEPTED, REJECTED)

"""
A single invitation record.

    Fields:
        email: Invitee email, normalized (stripped, lowercase).
        status: pending, accepted or rejected. Accepted and rejected records
                are recycled back to pending by a fresh invite.
        invited_by: User id of whoever issued (or last reissued) the invite.
        invited_at: When the invite was issued (or last reissued).
"""
class Invitation(mongoengine.EmbeddedDocument):
    email = mongoengine.StringField(required=True)
    status = mongoengine.StringField(required=True, choices=STATUSES, default=PENDING)
    invited_by = mongoengine.StringField(db_field='invitedBy', required=True)
    invited_at = mongoengine.DateTimeField(db_field='invitedAt', default=datetime.datetime.now)

    @property
    def is_pending(self):
        return self.status == PENDING
