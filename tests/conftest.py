"""
Pytest configuration and fixtures for Gift Planner tests.

The 'core' alias is bound to an in-memory mongomock client for the whole
session; every collection is emptied after each test (indexes are kept).
"""

import mongomock
import pytest
from mongoengine.connection import get_db

import data.mongo_setup as mongo_setup
import services.event_service as event_svc
import services.user_service as user_svc
import services.wishlist_service as wishlist_svc
from infrastructure.config import Settings


class StoreTestSettings(Settings):
    MONGO_DB = "gift_planner_test"
    MONGO_HOST = "mongodb://localhost"
    LOG_LEVEL = "DEBUG"
    MAX_WRITE_RETRIES = 5


@pytest.fixture(scope="session", autouse=True)
def store():
    """Connect the store once for all tests."""
    mongo_setup.global_init(StoreTestSettings(), mongo_client_class=mongomock.MongoClient)
    yield
    mongo_setup.global_shutdown()


@pytest.fixture(autouse=True)
def clean_collections(store):
    yield
    db = get_db(mongo_setup.DB_ALIAS)
    for name in db.list_collection_names():
        db[name].delete_many({})


@pytest.fixture
def alice():
    """Event organizer."""
    return user_svc.create_user_profile("u1", "alice@x.com", "Alice")


@pytest.fixture
def bob():
    """Invitee from the walkthrough scenarios (b@x.com)."""
    return user_svc.create_user_profile("u2", "b@x.com", "Bob")


@pytest.fixture
def carol():
    return user_svc.create_user_profile("u3", "carol@x.com", "Carol")


@pytest.fixture
def event(alice):
    return event_svc.create_event("Secret Santa", alice.uid)


@pytest.fixture
def event_with_bob(event, alice, bob):
    """Event where bob has been invited and has accepted."""
    event_svc.invite_user_to_event(str(event.id), bob.email, alice.uid)
    return event_svc.accept_invitation(str(event.id), bob.uid, bob.email)


@pytest.fixture
def wishlist(event, alice):
    return wishlist_svc.create_wishlist("Alice's list", str(event.id), alice.uid)


@pytest.fixture
def raw_document():
    """Read the stored BSON document, bypassing MongoEngine's field mapping."""
    def read(document, doc_id):
        return document._get_collection().find_one({"_id": doc_id})
    return read
