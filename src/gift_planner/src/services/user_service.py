import logging
from typing import Optional

from data.users import User
from services.documents import find_by_id, normalize_email
from services.errors import PermissionDeniedError, ValidationError, store_operation

logger = logging.getLogger(__name__)

"""
Service helpers for the denormalized user profile collection.

Notes:
- Profiles are keyed by the identity provider's uid.
- Emails are stored normalized so invitation matching is a plain comparison.
"""

"""
Create (or overwrite) the profile copy for a freshly signed-up user.

Returns:
    The persisted User profile.
"""
@store_operation("Failed to create account")
def create_user_profile(uid: str, email: str, display_name: str) -> User:
    if not uid:
        raise ValidationError("User id is required")

    user = User()
    user.uid = uid
    user.email = normalize_email(email)
    user.display_name = display_name or ''

    user.save()  # Keyed by uid, so this replaces any previous copy.
    logger.info("Created profile for user %s", uid)

    return user

"""
Return the profile for uid, creating it on first sign-in if absent.

An existing profile is returned untouched; the identity provider's values
only seed a brand-new copy.
"""
@store_operation("Failed to sign in")
def ensure_user_profile(uid: str, email: Optional[str], display_name: Optional[str]) -> User:
    user = find_by_id(User, uid)
    if user:
        return user

    return create_user_profile(uid, email or '', display_name or '')

"""
Read the profile copy for uid.

Returns:
    The User, or None if it does not exist. A permission-denied read also
    yields None: a profile the caller may not see is treated as no profile.
"""
def get_user_data(uid: str) -> Optional[User]:
    try:
        return _load_profile(uid)
    except PermissionDeniedError:
        logger.warning("Permission denied reading profile %s; treating as missing", uid)
        return None


@store_operation("Failed to get user data")
def _load_profile(uid: str) -> Optional[User]:
    return find_by_id(User, uid)


@store_operation("Failed to find user")
def find_user_by_email(email: str) -> Optional[User]:
    return User.objects(email=normalize_email(email)).first()
