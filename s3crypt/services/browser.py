"""
Browser state machine.

Holds the session-scoped browsing state and applies exactly one event at a
time. Network and decrypt work runs in background tasks whose results come
back as events on the same queue, so no state is shared across tasks.
"""

import asyncio
import base64
from collections.abc import Callable, Coroutine
from dataclasses import dataclass, field
from typing import Any

import structlog

from s3crypt.exceptions import (
    DecryptError,
    ExportError,
    S3CryptError,
    ValidationError,
    describe_error,
)
from s3crypt.models.auth import SIGNED_OUT, Account, Session
from s3crypt.models.events import (
    Action,
    ClickedBack,
    ClickedCopyLink,
    ClickedDelete,
    ClickedDownload,
    ClickedDropdown,
    ClickedFolder,
    ClickedRename,
    ClickedSelected,
    ClickedSignOut,
    Deleted,
    Event,
    Failed,
    GotBucketListing,
    GotDecryptedFile,
    GotDecryptedListing,
    GotObject,
    ListBucket,
    RequestKind,
    Saved,
    SubmittedSignIn,
    Ticket,
)
from s3crypt.models.navigation import NavigationState, Screen
from s3crypt.models.objects import DecryptedKey, KeyListing, RawListing
from s3crypt.services.credential_store import CredentialStore
from s3crypt.services.decrypt_bridge import DecryptBridge
from s3crypt.services.exporter import FileExporter
from s3crypt.services.listing_service import ListingService
from s3crypt.services.tree_service import DirectoryView, build_view, synthesize_folders

logger = structlog.get_logger(__name__)

STATUS_LOADING = "loading"
STATUS_RECEIVED = "received"
STATUS_SIGNED_OUT = "Signed out"
STATUS_DOWNLOAD_BUSY = "A download is already in progress"
STATUS_NOT_SIGNED_IN = "Not signed in"
STATUS_LISTING_DISCARDED = "Listing discarded after a session change, refresh to reload"


@dataclass(kw_only=True)
class BrowserState:
    """
    Mutable browsing state for one session.

    Attributes:
        screen: Screen being shown.
        session: Active session.
        navigation: Current directory, open dropdown and selection.
        listing: Last decrypted listing, None until one arrives.
        folders: Folders synthesized from the listing.
        status: Last status or error message.
        loading: A listing request is in flight.
        download_name: Display name of the file being downloaded.
    """

    screen: Screen = Screen.SIGN_IN
    session: Session = SIGNED_OUT
    navigation: NavigationState = field(default_factory=NavigationState)
    listing: KeyListing | None = None
    folders: tuple[DecryptedKey, ...] = ()
    status: str = ""
    loading: bool = False
    download_name: str | None = None


class BrowserStateMachine:
    """
    Single-threaded event processor for the file browser.

    Events are posted to an internal queue and applied in arrival order by
    ``run()`` or ``process_pending()``. Requests snapshot the session when
    they are issued; their results are dropped if the session generation
    has changed or a newer request of the same kind was issued since.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        listing_service: ListingService,
        bridge: DecryptBridge,
        exporter: FileExporter,
    ) -> None:
        """
        Args:
            credentials: Session persistence.
            listing_service: Remote list/get/delete operations.
            bridge: Decrypt request correlation.
            exporter: Local save of decrypted files.
        """
        self._credentials = credentials
        self._listing_service = listing_service
        self._bridge = bridge
        self._exporter = exporter

        self._state = BrowserState()
        self._generation = 0
        self._queue: asyncio.Queue[Event] = asyncio.Queue()
        self._tasks: set[asyncio.Task[None]] = set()

        self._handlers: dict[type, Callable[[Any], None]] = {
            ClickedFolder: self._on_clicked_folder,
            ClickedBack: self._on_clicked_back,
            ClickedSelected: self._on_clicked_selected,
            ClickedDropdown: self._on_clicked_dropdown,
            ListBucket: self._on_list_bucket,
            ClickedDownload: self._on_clicked_download,
            ClickedDelete: self._on_clicked_delete,
            ClickedRename: self._on_placeholder,
            ClickedCopyLink: self._on_placeholder,
            ClickedSignOut: self._on_clicked_sign_out,
            SubmittedSignIn: self._on_submitted_sign_in,
            GotBucketListing: self._on_got_bucket_listing,
            GotDecryptedListing: self._on_got_decrypted_listing,
            GotObject: self._on_got_object,
            GotDecryptedFile: self._on_got_decrypted_file,
            Deleted: self._on_deleted,
            Saved: self._on_saved,
            Failed: self._on_failed,
        }

    @property
    def state(self) -> BrowserState:
        """Current state. Read-only by convention; mutate through events."""
        return self._state

    @property
    def generation(self) -> int:
        """Incremented on every sign-in and sign-out."""
        return self._generation

    @property
    def has_pending_work(self) -> bool:
        """Check if events are queued or background requests are running."""
        return not self._queue.empty() or bool(self._tasks)

    def view(self) -> DirectoryView:
        """Folders and files directly inside the current directory."""
        keys = self._state.listing.keys if self._state.listing is not None else ()
        return build_view(keys, self._state.folders, self._state.navigation.current_directory)

    def start(self) -> None:
        """Restore the persisted session and load the bucket if signed in."""
        session = self._credentials.restore()
        self._generation += 1
        self._bridge.reset()
        if session.is_signed_in:
            self._state = BrowserState(screen=Screen.BROWSER, session=session)
            self._request_listing()
        else:
            self._state = BrowserState()

    def post(self, event: Event) -> None:
        """Queue an event for processing."""
        self._queue.put_nowait(event)

    def handle(self, event: Event) -> None:
        """Apply one event to the state."""
        handler = self._handlers.get(type(event))
        if handler is None:
            msg = f"Unsupported event: {type(event).__name__}"
            raise TypeError(msg)
        handler(event)

    async def process_pending(self) -> None:
        """Apply events until the queue is empty and no request is running."""
        while self.has_pending_work:
            if self._queue.empty():
                await asyncio.wait(set(self._tasks), return_when=asyncio.FIRST_COMPLETED)
                continue
            self.handle(self._queue.get_nowait())

    async def run(self) -> None:
        """Apply events forever, in arrival order."""
        while True:
            self.handle(await self._queue.get())

    async def aclose(self) -> None:
        """Cancel running requests."""
        for task in list(self._tasks):
            task.cancel()
        await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks.clear()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and (error := task.exception()) is not None:
            logger.error("Background request crashed", exc_info=error)

    # Navigation

    def _on_clicked_folder(self, event: ClickedFolder) -> None:
        self._state.navigation = self._state.navigation.enter(event.path)

    def _on_clicked_back(self, event: ClickedBack) -> None:
        self._state.navigation = self._state.navigation.back()

    def _on_clicked_selected(self, event: ClickedSelected) -> None:
        self._state.navigation = self._state.navigation.toggle_selected(event.key)

    def _on_clicked_dropdown(self, event: ClickedDropdown) -> None:
        self._state.navigation = self._state.navigation.toggle_dropdown(event.item_id)

    def _on_placeholder(self, event: ClickedRename | ClickedCopyLink) -> None:
        logger.debug("Action not supported", action=type(event).__name__)

    # Session

    def _on_submitted_sign_in(self, event: SubmittedSignIn) -> None:
        try:
            session = self._credentials.sign_in(event.account, event.encryption_key, event.salt)
        except ValidationError as e:
            self._state.status = describe_error(e)
            return

        self._generation += 1
        self._bridge.reset()
        self._state = BrowserState(screen=Screen.BROWSER, session=session)
        self._request_listing()

    def _on_clicked_sign_out(self, event: ClickedSignOut) -> None:
        self._credentials.sign_out()
        self._generation += 1
        self._bridge.reset()
        self._state = BrowserState(status=STATUS_SIGNED_OUT)

    # Listing

    def _on_list_bucket(self, event: ListBucket) -> None:
        self._request_listing()

    def _request_listing(self) -> None:
        session = self._state.session
        if session.account is None:
            self._state.status = STATUS_NOT_SIGNED_IN
            return

        ticket = self._bridge.issue(RequestKind.LISTING, self._generation)
        self._state.loading = True
        self._state.status = STATUS_LOADING
        self._spawn(self._fetch_listing(ticket, session.account))

    async def _fetch_listing(self, ticket: Ticket, account: Account) -> None:
        try:
            raw = await self._listing_service.list_bucket(account)
        except S3CryptError as e:
            self.post(Failed(Action.LIST, e, ticket.generation, ticket))
            return
        self.post(GotBucketListing(ticket, raw))

    def _on_got_bucket_listing(self, event: GotBucketListing) -> None:
        if not self._bridge.is_current(event.ticket, self._generation):
            logger.debug("Dropping superseded listing", request_id=event.ticket.request_id)
            return
        session = self._state.session
        self._spawn(
            self._decrypt_listing(event.ticket, event.listing, session.encryption_key, session.salt)
        )

    async def _decrypt_listing(
        self, ticket: Ticket, raw: RawListing, encryption_key: str, salt: str
    ) -> None:
        try:
            listing = await self._bridge.decrypt_listing(ticket, raw, encryption_key, salt)
        except DecryptError as e:
            self.post(Failed(Action.DECRYPT_LISTING, e, ticket.generation, ticket))
            return
        self.post(GotDecryptedListing(ticket, listing))

    def _on_got_decrypted_listing(self, event: GotDecryptedListing) -> None:
        if not self._bridge.accept(event.ticket, self._generation):
            return
        session = self._state.session
        listing = event.listing
        if (listing.encryption_key, listing.salt) != (session.encryption_key, session.salt):
            logger.warning("Dropping listing decrypted with other key material")
            self._state.loading = False
            self._state.status = STATUS_LISTING_DISCARDED
            return

        self._state.listing = listing
        self._state.folders = synthesize_folders(listing.keys)
        self._state.loading = False
        self._state.status = STATUS_RECEIVED
        if listing.truncated:
            self._state.status = f"{STATUS_RECEIVED} (only the first {len(listing)} objects)"
        logger.info("Listing received", count=len(listing), folders=len(self._state.folders))

    # Download

    def _on_clicked_download(self, event: ClickedDownload) -> None:
        self._state.navigation = self._state.navigation.collapse()
        account = self._state.session.account
        if account is None:
            self._state.status = STATUS_NOT_SIGNED_IN
            return
        if self._bridge.is_outstanding(RequestKind.OBJECT):
            self._state.status = STATUS_DOWNLOAD_BUSY
            return

        ticket = self._bridge.issue(RequestKind.OBJECT, self._generation)
        self._state.download_name = event.key.name
        self._state.status = f"Downloading {event.key.name}"
        self._spawn(self._fetch_object(ticket, account, event.key.encrypted_key))

    async def _fetch_object(self, ticket: Ticket, account: Account, encrypted_key: str) -> None:
        try:
            data = await self._listing_service.get_object_bytes(account, encrypted_key)
        except S3CryptError as e:
            self.post(Failed(Action.DOWNLOAD, e, ticket.generation, ticket))
            return
        self.post(GotObject(ticket, data))

    def _on_got_object(self, event: GotObject) -> None:
        if not self._bridge.is_current(event.ticket, self._generation):
            return
        session = self._state.session
        payload = base64.b64encode(event.data).decode("ascii")
        self._spawn(
            self._decrypt_file(event.ticket, payload, session.encryption_key, session.salt)
        )

    async def _decrypt_file(
        self, ticket: Ticket, payload: str, encryption_key: str, salt: str
    ) -> None:
        try:
            content = await self._bridge.decrypt_payload(ticket, payload, encryption_key, salt)
        except DecryptError as e:
            self.post(Failed(Action.DECRYPT_FILE, e, ticket.generation, ticket))
            return
        self.post(GotDecryptedFile(ticket, content))

    def _on_got_decrypted_file(self, event: GotDecryptedFile) -> None:
        if not self._bridge.accept(event.ticket, self._generation):
            return
        name = self._state.download_name or "download"
        self._state.download_name = None
        self._spawn(self._export(self._generation, name, event.content))

    async def _export(self, generation: int, name: str, content: str) -> None:
        try:
            path = await asyncio.to_thread(self._exporter.export, name, content)
        except ExportError as e:
            self.post(Failed(Action.EXPORT, e, generation))
            return
        self.post(Saved(generation, path))

    def _on_saved(self, event: Saved) -> None:
        if event.generation != self._generation:
            return
        self._state.status = f"saved {event.path.name}"

    # Delete

    def _on_clicked_delete(self, event: ClickedDelete) -> None:
        self._state.navigation = self._state.navigation.collapse()
        account = self._state.session.account
        if account is None:
            self._state.status = STATUS_NOT_SIGNED_IN
            return
        self._spawn(self._delete(self._generation, account, event.encrypted_key))

    async def _delete(self, generation: int, account: Account, encrypted_key: str) -> None:
        try:
            confirmation = await self._listing_service.delete_object(account, encrypted_key)
        except S3CryptError as e:
            self.post(Failed(Action.DELETE, e, generation))
            return
        self.post(Deleted(generation, encrypted_key, confirmation))

    def _on_deleted(self, event: Deleted) -> None:
        if event.generation != self._generation:
            return
        logger.info("Object deleted")
        self._request_listing()

    # Failures

    def _on_failed(self, event: Failed) -> None:
        if event.ticket is not None:
            if not self._bridge.accept(event.ticket, self._generation):
                return
        elif event.generation != self._generation:
            return

        logger.warning(
            "Request failed", action=event.action, error_type=type(event.error).__name__
        )
        self._state.status = describe_error(event.error)
        if event.action in (Action.LIST, Action.DECRYPT_LISTING):
            self._state.loading = False
        elif event.action in (Action.DOWNLOAD, Action.DECRYPT_FILE):
            self._state.download_name = None
