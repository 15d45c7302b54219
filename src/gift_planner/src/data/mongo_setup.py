import logging

import mongoengine

from infrastructure.config import Settings

logger = logging.getLogger(__name__)

# Every document class binds to this alias via meta = {'db_alias': 'core'}.
DB_ALIAS = 'core'

"""
Register the application's connection with MongoEngine.

- Registers a connection alias named 'core' for settings.MONGO_DB on settings.MONGO_HOST.
- Call this once during application startup, before any service call. Nothing
  in the services creates a connection on demand.
- mongo_client_class lets tests swap in mongomock.MongoClient.
- Creates the indexes the services rely on (the unique assignment triple).
"""
def global_init(settings: Settings, mongo_client_class=None):
    kwargs = {}
    if mongo_client_class is not None:
        kwargs['mongo_client_class'] = mongo_client_class

    mongoengine.connect(db=settings.MONGO_DB, alias=DB_ALIAS, host=settings.MONGO_HOST, **kwargs)
    logger.info("Registered store alias '%s' for database '%s'", DB_ALIAS, settings.MONGO_DB)

    # Imported here so the model modules can be loaded without a live connection.
    from data.assignments import Assignment
    from data.events import Event
    from data.wishlists import Wishlist

    for document in (Assignment, Event, Wishlist):
        document.ensure_indexes()

"""Drop the 'core' connection (used on shutdown and between test sessions)."""
def global_shutdown():
    mongoengine.disconnect(alias=DB_ALIAS)
