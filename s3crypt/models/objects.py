"""
Object listing domain models.
"""

from dataclasses import dataclass, field

FOLDER_SEPARATOR = "/"


@dataclass(frozen=True, kw_only=True)
class RawKey:
    """
    An object as returned by the remote listing, before decryption.

    Attributes:
        key: Encrypted object name.
        size: Size in bytes.
        last_modified: Last-modified timestamp, as sent by the server.
    """

    key: str
    size: int = 0
    last_modified: str = ""


@dataclass(frozen=True, kw_only=True)
class DecryptedKey:
    """
    An object with its decrypted display path.

    The encrypted name is kept so remote operations can still address it.
    A path ending in "/" marks a synthesized folder.
    """

    encrypted_key: str
    path: str
    size: int = 0
    last_modified: str = ""

    @property
    def is_folder(self) -> bool:
        """Check if this key marks a folder."""
        return self.path.endswith(FOLDER_SEPARATOR)

    @property
    def name(self) -> str:
        """Last non-empty path segment."""
        return self.path.rstrip(FOLDER_SEPARATOR).rsplit(FOLDER_SEPARATOR, 1)[-1]


@dataclass(frozen=True, kw_only=True)
class ObjectPage:
    """One page of a list-objects response."""

    keys: tuple[RawKey, ...] = ()
    is_truncated: bool = False
    next_continuation_token: str | None = None


@dataclass(frozen=True, kw_only=True)
class RawListing:
    """
    Encrypted listing of the account's bucket.

    Attributes:
        keys: Objects in server order.
        truncated: The bucket holds more objects than were listed.
    """

    keys: tuple[RawKey, ...] = ()
    truncated: bool = False


@dataclass(frozen=True, kw_only=True)
class KeyListing:
    """
    Decrypted listing, stamped with the key material used to decrypt it.

    Attributes:
        keys: Decrypted objects, in the same order as the raw listing.
        encryption_key: Key the names were decrypted with.
        salt: Salt the names were decrypted with.
        truncated: The bucket holds more objects than were listed.
    """

    keys: tuple[DecryptedKey, ...] = ()
    encryption_key: str = field(default="", repr=False)
    salt: str = field(default="", repr=False)
    truncated: bool = False

    def __len__(self) -> int:
        return len(self.keys)
