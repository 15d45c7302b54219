from switchlang import switch

import program_events as events
from program_events import success_msg, error_msg, choose_event, choose_from
import infrastructure.state as state
import services.assignment_service as assignment_svc
import services.wishlist_service as wishlist_svc
from services.errors import GiftPlannerError

"""
Wishlists CLI workflow.

This module provides the interactive command loop and actions for:
- Listing and creating wishlists inside one of the user's events.
- Adding, favoriting, reordering and deleting items.
- Marking items purchased (and undoing it), which also updates the
  wishlist's assignment.

Conventions:
- Uses switchlang.switch for a case-like control flow.
- Reuses the prompt, selection and message helpers of program_events.
"""

"""
Entry point for the wishlists workflow loop.
"""
def run():
    print(' ****************** Wishlists **************** ')
    print()

    show_commands()

    while True:
        action = events.get_action()

        try:
            with switch(action) as s:
                s.case('l', list_wishlists)
                s.case('c', create_wishlist)
                s.case('a', add_item)
                s.case('f', toggle_favorite)
                s.case('t', move_item_to_top)
                s.case('d', delete_item)
                s.case('b', mark_bought)
                s.case('u', unmark_bought)
                s.case('y', view_your_assignments)
                s.case('m', lambda: 'change_mode')
                s.case('?', show_commands)
                s.case('', lambda: None)
                s.case(['x', 'bye', 'exit', 'exit()'], events.exit_app)
                s.default(events.unknown_command)
            result = s.result
        except GiftPlannerError as ex:
            error_msg(f'ERROR: {ex.message}')
            result = None

        # Pick up profile changes made elsewhere.
        state.reload_user()

        if action:
            print()

        if result == 'change_mode':
            return


def show_commands():
    print('What action would you like to take:')
    print('[L]ist wishlists of an event')
    print('[C]reate a wishlist')
    print('[A]dd an item')
    print('Toggle [f]avorite on an item')
    print('Move an item to the [t]op')
    print('[D]elete an item')
    print('Mark an item as [b]ought')
    print('[U]ndo a purchase')
    print('View [y]our assignments')
    print('[M]ain menu')
    print('e[X]it app')
    print('[?] Help (this info)')
    print()


def list_wishlists(event=None):
    if event is None:
        print(' ******************     Wishlists     **************** ')
        event = choose_event()
        if not event:
            return []

    wishlists = wishlist_svc.get_wishlists_for_event(str(event.id))
    print(f'{event.name} has {len(wishlists)} wishlists.')
    for idx, w in enumerate(wishlists):
        print(f' {idx + 1}. {w.name}')
        print_items(w)

    return wishlists


def print_items(wishlist):
    for n, item in enumerate(wishlist.items):
        flags = []
        if item.is_favorite:
            flags.append('favorite')
        if item.is_purchased:
            flags.append('bought by ' + events.display_name(item.purchased_by))
        price = f' ${item.price:.2f}' if item.price is not None else ''
        suffix = f" [{', '.join(flags)}]" if flags else ''
        print(f'      {n + 1}) {item.name}{price}{suffix}')


def create_wishlist():
    print(' ****************** Create a wishlist **************** ')

    event = choose_event()
    if not event:
        return

    name = input('Name of the wishlist: ')
    if not name.strip():
        error_msg('Cancelled')
        return

    wishlist = wishlist_svc.create_wishlist(name, str(event.id), state.active_user.uid)
    success_msg(f'Created wishlist {wishlist.name}.')

"""
Collect item details and append the item to a wishlist.

Blank optional answers are passed as None and therefore never stored.
"""
def add_item():
    print(' ****************** Add an item **************** ')

    wishlist = choose_wishlist()
    if not wishlist:
        return

    name = input('What would you like? ')
    if not name.strip():
        error_msg('Cancelled')
        return

    description = input('Description (optional): ').strip() or None
    link = input('Link (optional): ').strip() or None
    price_text = input('Price (optional): ').strip()

    price = None
    if price_text:
        try:
            price = float(price_text)
        except ValueError:
            error_msg(f'{price_text} is not a price; leaving it out.')

    item = wishlist_svc.add_item_to_wishlist(str(wishlist.id), name,
                                             description=description, link=link, price=price)
    success_msg(f'Added {item.name}.')


def toggle_favorite():
    wishlist, item = choose_item()
    if not item:
        return

    wishlist_svc.update_wishlist_item(str(wishlist.id), item.item_id, is_favorite=not item.is_favorite)
    success_msg(f'{item.name} is {"no longer" if item.is_favorite else "now"} a favorite.')


def move_item_to_top():
    wishlist, item = choose_item()
    if not item:
        return

    # Chosen item first, the rest keep their relative order.
    order = [item.item_id] + [i.item_id for i in wishlist.items if i.item_id != item.item_id]
    wishlist_svc.reorder_wishlist_items(str(wishlist.id), order)
    success_msg(f'{item.name} moved to the top.')


def delete_item():
    wishlist, item = choose_item()
    if not item:
        return

    wishlist_svc.delete_wishlist_item(str(wishlist.id), item.item_id)
    success_msg(f'Deleted {item.name}.')


def mark_bought():
    wishlist, item = choose_item()
    if not item:
        return

    # Only one buyer per item; undo the purchase first to change it.
    if item.is_purchased:
        error_msg(f'{item.name} was already bought by {events.display_name(item.purchased_by)}.')
        return

    wishlist_svc.mark_item_as_purchased(str(wishlist.id), item.item_id, state.active_user.uid)
    # The assignment for this wishlist is updated by the service as well.
    success_msg(f'Marked {item.name} as bought.')


def unmark_bought():
    wishlist, item = choose_item()
    if not item:
        return

    wishlist_svc.unmark_item_as_purchased(str(wishlist.id), item.item_id)
    success_msg(f'{item.name} is no longer marked as bought.')


def view_your_assignments():
    print(' ****************** Your assignments **************** ')

    assignments = assignment_svc.get_assignments_for_user(state.active_user.uid)
    print(f'You have {len(assignments)} wishlists to shop from.')
    for a in assignments:
        wishlist = wishlist_svc.get_wishlist(a.wishlist_id)
        if not wishlist:
            continue  # Wishlist was deleted after the assignment was made.
        print(f' * {wishlist.name} [{a.status}]')
        print_items(wishlist)


def choose_wishlist():
    event = choose_event()
    if not event:
        return None

    wishlists = list_wishlists(event)
    if not wishlists:
        return None
    return choose_from(wishlists, 'Wishlist number: ')


def choose_item():
    wishlist = choose_wishlist()
    if not wishlist:
        return None, None

    if not wishlist.items:
        error_msg('That wishlist has no items yet.')
        return wishlist, None

    # Items are shown 1-based in stored order, matching print_items.
    return wishlist, choose_from(list(wishlist.items), 'Item number: ')
