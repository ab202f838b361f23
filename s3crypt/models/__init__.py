"""
Domain models for the S3 crypt browser.

These are immutable (frozen) dataclasses representing the core domain concepts.
"""

from s3crypt.models.auth import SIGNED_OUT, Account, Session
from s3crypt.models.navigation import NavigationState, Screen
from s3crypt.models.objects import (
    DecryptedKey,
    KeyListing,
    ObjectPage,
    RawKey,
    RawListing,
)

__all__ = [
    # Auth
    "Account",
    "Session",
    "SIGNED_OUT",
    # Objects
    "RawKey",
    "RawListing",
    "ObjectPage",
    "DecryptedKey",
    "KeyListing",
    # Navigation
    "NavigationState",
    "Screen",
]
