from colorama import Fore
from dateutil import parser
from switchlang import switch

import infrastructure.state as state
import services.assignment_service as assignment_svc
import services.event_service as event_svc
import services.user_service as user_svc
import services.wishlist_service as wishlist_svc
from services.errors import GiftPlannerError


"""
Events CLI workflow.

This module provides the interactive command loop and actions for:
- Listing and creating events.
- Inviting people by email and answering the user's own pending invitations.
- Removing members.
- Assigning wishlists to members and reviewing assignments.

Conventions:
- Uses switchlang.switch for a case-like control flow pattern.
- Uses infrastructure.state.active_user as the acting identity.
- Delegates every read and write to the services; their typed errors are
  shown to the user and the loop carries on.
- success_msg / error_msg give colored feedback and are shared with
  program_wishlists.

Notes:
- Dates are parsed with dateutil.parser and treated as naive datetimes.
"""

"""
Entry point for the events workflow loop.
"""
def run():
    print(' ****************** Events **************** ')
    print()

    show_commands()

    while True:
        action = get_action()

        try:
            with switch(action) as s:
                s.case('l', list_events)
                s.case('c', create_event)
                s.case('i', invite_someone)
                s.case('p', answer_invitations)
                s.case('r', remove_member)
                s.case('a', assign_wishlist)
                s.case('v', view_assignments)
                s.case('u', unassign_wishlist)
                s.case('d', delete_event)
                s.case('m', lambda: 'change_mode')
                s.case(['x', 'bye', 'exit', 'exit()'], exit_app)
                s.case('?', show_commands)
                s.case('', lambda: None)
                s.default(unknown_command)
            result = s.result
        except GiftPlannerError as ex:
            error_msg(f'ERROR: {ex.message}')
            result = None

        if action:
            print()

        if result == 'change_mode':
            return


def show_commands():
    print('What action would you like to take:')
    print('[L]ist your events')
    print('[C]reate an event')
    print('[I]nvite someone to an event')
    print('Answer [p]ending invitations')
    print('[R]emove a member')
    print('[A]ssign a wishlist to a member')
    print('[V]iew assignments')
    print('[U]nassign a wishlist')
    print('[D]elete an event you created')
    print('Change [M]ode (events or wishlists)')
    print('e[X]it app')
    print('[?] Help (this info)')
    print()


def list_events(suppress_header=False):
    if not suppress_header:
        print(' ******************     Your events     **************** ')

    # Only events the user is a member of; pending invitations are not listed here.
    events = event_svc.get_events_for_user(state.active_user.uid)
    print(f"You are in {len(events)} events.")
    for idx, e in enumerate(events):
        when = e.event_date.date() if e.event_date else 'no date'
        print(f' {idx + 1}. {e.name} ({when}), {len(e.members)} members.')
        for inv in e.invitations:
            print(f'      * Invited: {inv.email} [{inv.status}]')

    return events


def create_event():
    print(' ****************** Create an event **************** ')

    name = input('What is the occasion called? ')
    if not name.strip():
        error_msg('Cancelled')
        return

    text = input('When is it [yyyy-mm-dd, blank for none]? ').strip()
    event_date = None
    if text:
        try:
            event_date = parser.parse(text)
        except (ValueError, OverflowError):
            error_msg(f'Could not read {text} as a date.')
            return

    event = event_svc.create_event(name, state.active_user.uid, event_date)
    success_msg(f'Created event {event.name} with id {event.id}.')


def invite_someone():
    print(' ****************** Invite someone **************** ')

    event = choose_event()
    if not event:
        return

    email = input('Email of the person to invite: ')
    if not email.strip():
        error_msg('Cancelled')
        return

    invitation = event_svc.invite_user_to_event(str(event.id), email, state.active_user.uid)
    success_msg(f'Invited {invitation.email} to {event.name}.')

"""
Walk through the signed-in user's pending invitations, accepting or rejecting each.
"""
def answer_invitations():
    print(' ****************** Pending invitations **************** ')

    # Invitations are matched by email, not uid.
    pending = event_svc.get_events_with_pending_invitations(state.active_user.email)
    if not pending:
        print('You have no pending invitations.')
        return

    for item in pending:
        inviter = user_svc.get_user_data(item.invitation.invited_by)
        by = inviter.display_name if inviter else item.invitation.invited_by
        answer = input(f'Join "{item.event.name}" (invited by {by})? [y]es, [n]o, [s]kip: ').strip().lower()

        if answer.startswith('y'):
            event_svc.accept_invitation(str(item.event.id), state.active_user.uid, state.active_user.email)
            success_msg(f'You joined {item.event.name}.')
        elif answer.startswith('n'):
            event_svc.reject_invitation(str(item.event.id), state.active_user.email)
            success_msg(f'Declined {item.event.name}.')


def remove_member():
    print(' ****************** Remove a member **************** ')

    event = choose_event()
    if not event:
        return

    # The creator can never be removed, so they are not offered.
    member_id = choose_member(event, exclude=event.created_by)
    if not member_id:
        return

    event_svc.remove_member_from_event(str(event.id), member_id)
    success_msg('Member removed.')


def assign_wishlist():
    print(' ****************** Assign a wishlist **************** ')

    event = choose_event()
    if not event:
        return

    # Only wishlists nobody is assigned to yet are offered.
    assigned = {a.wishlist_id for a in assignment_svc.get_assignments_for_event(str(event.id))}
    wishlists = [w for w in wishlist_svc.get_wishlists_for_event(str(event.id)) if str(w.id) not in assigned]
    if not wishlists:
        error_msg('Every wishlist in this event is already assigned.')
        return

    for idx, w in enumerate(wishlists):
        print(f' {idx + 1}. {w.name} ({len(w.items)} items)')
    wishlist = choose_from(wishlists, 'Wishlist number: ')
    if not wishlist:
        return

    # Organizers cannot assign a wishlist to themselves.
    member_id = choose_member(event, exclude=state.active_user.uid)
    if not member_id:
        return

    assignment_svc.create_assignment(str(event.id), str(wishlist.id), member_id, state.active_user.uid)
    success_msg(f'Assigned {wishlist.name}.')


def view_assignments():
    print(' ****************** Assignments **************** ')

    event = choose_event()
    if not event:
        return

    list_assignments(event)


def list_assignments(event):
    assignments = assignment_svc.get_assignments_for_event(str(event.id))
    print(f'{event.name} has {len(assignments)} assignments.')
    for idx, a in enumerate(assignments):
        wishlist = wishlist_svc.get_wishlist(a.wishlist_id)
        print(' {}. {} -> {} [{}]'.format(
            idx + 1,
            wishlist.name if wishlist else a.wishlist_id,
            display_name(a.assigned_to),
            a.status
        ))

    return assignments


def unassign_wishlist():
    print(' ****************** Unassign a wishlist **************** ')

    event = choose_event()
    if not event:
        return

    assignments = list_assignments(event)
    if not assignments:
        return

    assignment = choose_from(assignments, 'Assignment number: ')
    if not assignment:
        return

    assignment_svc.delete_assignment(str(assignment.id))
    success_msg('Assignment removed.')


def delete_event():
    print(' ****************** Delete an event **************** ')

    event = choose_event()
    if not event:
        return

    # Only the creator may delete an event.
    if not event.is_creator(state.active_user.uid):
        error_msg('Only the creator can delete an event.')
        return

    if input(f'Delete {event.name} and all its wishlists [y, n]? ').lower().startswith('y'):
        event_svc.delete_event(str(event.id))
        success_msg('Event deleted.')

"""
List the user's events and return the one picked (or None if cancelled).
"""
def choose_event():
    events = list_events(suppress_header=True)
    if not events:
        return None
    return choose_from(events, 'Event number: ')


def choose_member(event, exclude=None):
    members = [m for m in event.members if m != exclude]
    if not members:
        error_msg('No members to choose from.')
        return None

    for idx, member_id in enumerate(members):
        print(f' {idx + 1}. {display_name(member_id)}')
    return choose_from(members, 'Member number: ')


def choose_from(options, prompt):
    text = input(prompt).strip()
    if not text:
        error_msg('Cancelled')
        return None

    # 1-based for the user; anything out of range cancels.
    if not text.isdigit() or not 1 <= int(text) <= len(options):
        error_msg(f'{text} is not a valid choice.')
        return None

    return options[int(text) - 1]


def display_name(user_id):
    user = user_svc.get_user_data(user_id)
    if not user:
        return user_id
    return user.display_name or user.email


def exit_app():
    print()
    print('bye')
    raise KeyboardInterrupt()


def get_action():
    text = '> '
    if state.active_user:
        text = f'{state.active_user.display_name or state.active_user.email}> '

    action = input(Fore.YELLOW + text + Fore.WHITE)
    return action.strip().lower()


def unknown_command():
    print("Sorry we didn't understand that command.")


def success_msg(text):
    print(Fore.LIGHTGREEN_EX + text + Fore.WHITE)


def error_msg(text):
    print(Fore.LIGHTRED_EX + text + Fore.WHITE)
