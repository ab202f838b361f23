"""
Events consumed by the browser state machine.

User actions and asynchronous results share one queue and are handled one
at a time, in arrival order.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path

from s3crypt.models.auth import Account
from s3crypt.models.objects import DecryptedKey, KeyListing, RawListing


class RequestKind(StrEnum):
    """Pipelines correlated with request tickets."""

    LISTING = "listing"
    OBJECT = "object"


class Action(StrEnum):
    """Step of a pipeline that can fail."""

    LIST = "list"
    DECRYPT_LISTING = "decrypt-listing"
    DOWNLOAD = "download"
    DECRYPT_FILE = "decrypt-file"
    DELETE = "delete"
    EXPORT = "export"


@dataclass(frozen=True, slots=True)
class Ticket:
    """
    Identifies one listing or download request.

    Attributes:
        kind: Pipeline the request belongs to.
        request_id: Monotonically increasing id.
        generation: Session generation the request was issued under.
    """

    kind: RequestKind
    request_id: int
    generation: int


# User actions


@dataclass(frozen=True)
class ClickedFolder:
    path: str


@dataclass(frozen=True)
class ClickedBack:
    pass


@dataclass(frozen=True)
class ClickedSelected:
    key: DecryptedKey


@dataclass(frozen=True)
class ClickedDropdown:
    item_id: str


@dataclass(frozen=True)
class ListBucket:
    pass


@dataclass(frozen=True)
class ClickedDownload:
    key: DecryptedKey


@dataclass(frozen=True)
class ClickedDelete:
    encrypted_key: str


@dataclass(frozen=True)
class ClickedRename:
    key: DecryptedKey


@dataclass(frozen=True)
class ClickedCopyLink:
    key: DecryptedKey


@dataclass(frozen=True)
class ClickedSignOut:
    pass


@dataclass(frozen=True)
class SubmittedSignIn:
    account: Account
    encryption_key: str
    salt: str

    def __repr__(self) -> str:
        return f"SubmittedSignIn(account={self.account!r})"


# Asynchronous results


@dataclass(frozen=True)
class GotBucketListing:
    ticket: Ticket
    listing: RawListing


@dataclass(frozen=True)
class GotDecryptedListing:
    ticket: Ticket
    listing: KeyListing


@dataclass(frozen=True)
class GotObject:
    ticket: Ticket
    data: bytes


@dataclass(frozen=True)
class GotDecryptedFile:
    ticket: Ticket
    content: str


@dataclass(frozen=True)
class Deleted:
    generation: int
    encrypted_key: str
    confirmation: str


@dataclass(frozen=True)
class Saved:
    generation: int
    path: Path


@dataclass(frozen=True)
class Failed:
    """
    A pipeline step failed.

    Ticketed steps carry their ticket; delete and export only carry the
    session generation.
    """

    action: Action
    error: Exception
    generation: int
    ticket: Ticket | None = None


Event = (
    ClickedFolder
    | ClickedBack
    | ClickedSelected
    | ClickedDropdown
    | ListBucket
    | ClickedDownload
    | ClickedDelete
    | ClickedRename
    | ClickedCopyLink
    | ClickedSignOut
    | SubmittedSignIn
    | GotBucketListing
    | GotDecryptedListing
    | GotObject
    | GotDecryptedFile
    | Deleted
    | Saved
    | Failed
)
