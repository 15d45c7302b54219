"""
MongoEngine Document holding the denormalized profile copy of a signed-in user.

The identity provider owns the account itself; this collection only mirrors
the fields other parts of the app need (email for invitation matching,
display name for rendering member lists).
"""
import datetime
import mongoengine

"""
User profile stored in the 'users' collection (db alias: 'core').

Fields:
    uid: Identifier issued by the identity provider. Used as the primary key,
        so the profile for a principal is found with a direct id lookup.
    email: Email of the principal, stored normalized (stripped, lowercase).
    display_name: Human-friendly display name.
    created_at: When the profile copy was created.
"""
class User(mongoengine.Document):
    uid = mongoengine.StringField(primary_key=True)
    email = mongoengine.StringField(required=True)
    display_name = mongoengine.StringField(db_field='displayName', default='')
    created_at = mongoengine.DateTimeField(db_field='createdAt', default=datetime.datetime.now)

    meta = {
        'db_alias': 'core',
        'collection': 'users',
        'indexes': ['email'],
    }
