"""
Typed failures raised by the service layer.

Every public service operation either returns a value or raises one of the
GiftPlannerError subclasses below with a human-readable message. Raw pymongo
and MongoEngine exceptions never leave the services; store_operation()
translates them at the boundary.
"""
import functools
import logging

import mongoengine.errors
from pymongo.errors import OperationFailure, PyMongoError

logger = logging.getLogger(__name__)

# MongoDB server codes for Unauthorized and AuthenticationFailed.
PERMISSION_DENIED_CODES = (13, 18)


class GiftPlannerError(Exception):
    """Base class for every failure surfaced to callers."""

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class NotFoundError(GiftPlannerError):
    """The entity or embedded record does not exist."""


class ConflictError(GiftPlannerError):
    """A uniqueness or state rule would be broken."""


class AlreadyInvitedError(ConflictError):
    pass


class ConcurrentModificationError(ConflictError):
    """The document kept changing underneath a read-modify-write cycle."""


class PermissionDeniedError(GiftPlannerError):
    """The store refused the operation for the current principal."""


class ValidationError(GiftPlannerError):
    """Caller input is missing or malformed."""


class StoreError(GiftPlannerError):
    """Any other failure talking to the document store."""


"""
Decorate a service operation so store failures surface as typed errors.

GiftPlannerError subclasses raised by the operation itself pass through
untouched. Values rejected by a MongoEngine field become ValidationError.
Other pymongo / MongoEngine failures become PermissionDeniedError (for
authorization codes) or StoreError. All are prefixed with failure_message.
"""
def store_operation(failure_message):
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except GiftPlannerError:
                raise
            except mongoengine.errors.ValidationError as ex:
                # A field type rejected the caller's value before anything was sent.
                logger.warning("%s: %s", failure_message, ex)
                raise ValidationError(f"{failure_message}: {ex}") from ex
            except OperationFailure as ex:
                logger.warning("%s: %s", failure_message, ex)
                if ex.code in PERMISSION_DENIED_CODES:
                    raise PermissionDeniedError(f"{failure_message}: permission denied") from ex
                raise StoreError(f"{failure_message}: {ex}") from ex
            except (PyMongoError,
                    mongoengine.errors.OperationError,
                    mongoengine.errors.InvalidQueryError) as ex:
                logger.warning("%s: %s", failure_message, ex)
                raise StoreError(f"{failure_message}: {ex}") from ex

        return wrapper

    return decorator
