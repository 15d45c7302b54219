"""Process-wide session state for the console app.

Exposes:
- active_user: Optional[User] - the signed-in profile (or None before sign-in).
- pending_invitations: the latest snapshot pushed by the pending-invitations live query.
- reload_user(): Refresh active_user from persistence using its uid.

Only the console front-end reads this module; the services always take ids as
explicit arguments.
"""

import logging
from typing import List, Optional

from data.users import User
import services.user_service as user_svc

logger = logging.getLogger(__name__)

# The signed-in profile for this process/session.
active_user: Optional[User] = None

# Latest EventWithInvitation list for active_user's email.
pending_invitations: List = []

"""Refresh the global active_user from the database, if one is set.

    If the profile has since disappeared (or can no longer be read), the
    previous copy is kept so the session stays signed in.
"""
def reload_user():
    global active_user  # We rebind the module-level variable below.
    if not active_user:
        return

    fresh = user_svc.get_user_data(active_user.uid)
    if fresh is None:
        logger.warning("Profile %s could not be reloaded; keeping the signed-in copy", active_user.uid)
        return

    active_user = fresh
