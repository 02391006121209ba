"""Saved delivery addresses"""
from django.db import transaction

from .models import SavedAddress


@transaction.atomic
def create_saved_address(user, address, phone, pincode, label='Home', state='', country='India', is_default=None):
    """Save an address for a user.

    The first address a user saves becomes the default. Saving a new default
    clears the flag on the previous one so each user has at most one.
    """
    has_addresses = SavedAddress.objects.filter(user=user).exists()
    if is_default is None:
        is_default = not has_addresses
    if is_default and has_addresses:
        SavedAddress.objects.filter(user=user, is_default=True).update(is_default=False)

    return SavedAddress.objects.create(
        user=user,
        label=label or 'Home',
        address=address,
        phone=phone,
        pincode=pincode,
        state=state or '',
        country=country or 'India',
        is_default=is_default,
    )
