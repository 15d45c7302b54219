"""
Application entry point for Gift Planner.

This module:
- Configures logging and registers the MongoEngine connection (data.mongo_setup.global_init).
- Prints a stylized application header.
- Signs the user in, creating their profile copy on first use.
- Keeps a live subscription to the user's pending invitations.
- Enters the main loop and dispatches to the events or wishlists command loop.
"""

import uuid

from colorama import Fore # Colored terminal text (foreground colors).

import program_events # Events, invitations, members and assignments.
import program_wishlists # Wishlists and their items.
import data.mongo_setup as mongo_setup # MongoEngine connection setup (alias 'core').
import infrastructure.state as state
from infrastructure.config import settings
from infrastructure.log_setup import configure_logging
from program_events import success_msg, error_msg
import services.live_queries as live
import services.user_service as user_svc

"""
Initialize the app and dispatch to the events/wishlists flows in a loop.

Steps:
1) Configure logging and connect the store, explicitly and once.
2) Print the header and sign the user in.
3) Subscribe to pending invitations so new ones are announced as they arrive.
4) Loop over mode selection until the user exits (Ctrl+C or 'x').
"""
def main():
    configure_logging(settings)
    mongo_setup.global_init(settings)

    print_header()

    unsubscribe = None
    try:
        sign_in()
        unsubscribe = live.subscribe_to_pending_invitations(
            state.active_user.email, on_invitations, on_invitations_error)

        while True:
            if find_user_intent() == 'wishlists':
                program_wishlists.run()
            else:
                program_events.run()
    except KeyboardInterrupt:
        return
    finally:
        # Listeners stay registered until explicitly removed.
        if unsubscribe:
            unsubscribe()
        mongo_setup.global_shutdown()


def print_header():
    gift = \
        """
              .-.  .-.
             (   \\/   )
        .-----\\      /-----.
        |      '.  .'      |
        |--------||--------|
        |        ||        |
        |        ||        |
        '--------''--------'
        """

    print(Fore.WHITE + '**************  GIFT PLANNER  **************')
    print(Fore.MAGENTA + gift)
    print(Fore.WHITE + '********************************************')
    print()
    print("Welcome to Gift Planner!")
    print()

"""
Sign the user in by email.

The console stands in for the identity provider: a known email reuses its
profile, a new one gets a fresh uid and a profile copy is created.
"""
def sign_in():
    print(' ****************** SIGN IN **************** ')

    while not state.active_user:
        email = input('What is your email? ').strip().lower()
        if not email:
            continue

        existing = user_svc.find_user_by_email(email)
        if existing:
            state.active_user = existing
        else:
            name = input('What is your name? ').strip()
            state.active_user = user_svc.ensure_user_profile(uuid.uuid4().hex, email, name)

    success_msg(f'Signed in as {state.active_user.display_name or state.active_user.email}.')
    print()

"""
Live query callback: announce invitations that were not there before.
"""
def on_invitations(invitations):
    previous = {pending.event.id for pending in state.pending_invitations}
    state.pending_invitations = invitations

    for pending in invitations:
        if pending.event.id not in previous:
            success_msg(f'You have been invited to "{pending.event.name}". Use [P] in events mode to respond.')


def on_invitations_error(ex):
    state.pending_invitations = []
    error_msg(f'Could not load invitations: {ex}')

"""
Ask which area the user wants to work in.

Returns:
    str: 'events' or 'wishlists'.
"""
def find_user_intent():
    count = len(state.pending_invitations)
    if count:
        print(f"You have {count} pending invitation{'s' if count > 1 else ''}.")

    print("[e] Events, invitations and assignments")
    print("[w] Wishlists and gifts")
    print()

    choice = input("Which would you like, [e]vents or [w]ishlists? ")

    # Anything other than 'w' lands on events, the usual starting point.
    if choice.strip().lower() == 'w':
        return 'wishlists'

    return 'events'


if __name__ == '__main__':
    main()
