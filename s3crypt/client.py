"""
S3 crypt browser facade.

This is the main entry point for users of the library. It wires the
S3 client, credential store, decrypt bridge and state machine together.
"""

import asyncio
from concurrent.futures import Executor
from typing import Self

import structlog
from aiobotocore.session import AioSession

from s3crypt.api.http_client import AsyncS3Client
from s3crypt.config import S3CryptConfig
from s3crypt.crypto.protocol import Decryptor
from s3crypt.models.auth import Account
from s3crypt.models.events import ClickedSignOut, Event, ListBucket, SubmittedSignIn
from s3crypt.services.browser import BrowserState, BrowserStateMachine
from s3crypt.services.credential_store import CredentialStore, JsonFileStorage, SessionStorage
from s3crypt.services.decrypt_bridge import DecryptBridge
from s3crypt.services.exporter import DirectoryExporter, FileExporter
from s3crypt.services.listing_service import ListingService
from s3crypt.services.tree_service import DirectoryView

logger = structlog.get_logger(__name__)


class S3CryptBrowser:
    """
    Async browser for an rclone-crypt encrypted S3 bucket.

    Example:
        ```python
        async with S3CryptBrowser(decryptor) as browser:
            browser.sign_in(account, "password", "salt")
            await browser.process_pending()

            for entry in browser.view().files:
                print(entry.display_name)
        ```

    Args:
        decryptor: Name and content decryption capability.
        config: Client configuration. Uses defaults if not provided.
        storage: Session storage. Defaults to a JSON file at ``config.session_path``.
        exporter: Local export of downloads. Defaults to ``config.download_dir``.
        executor: Executor the decryptor runs in. Defaults to a worker thread.
        session: Optional aiobotocore session the S3 clients are created from.
    """

    def __init__(
        self,
        decryptor: Decryptor,
        config: S3CryptConfig | None = None,
        *,
        storage: SessionStorage | None = None,
        exporter: FileExporter | None = None,
        executor: Executor | None = None,
        session: AioSession | None = None,
    ) -> None:
        self._config = config or S3CryptConfig()
        self._decryptor = decryptor
        self._storage = storage or JsonFileStorage(self._config.resolved_session_path())
        self._exporter = exporter or DirectoryExporter(self._config.resolved_download_dir())
        self._executor = executor
        self._session = session

        self._http: AsyncS3Client | None = None
        self._machine: BrowserStateMachine | None = None
        self._init_lock = asyncio.Lock()

    async def __aenter__(self) -> Self:
        """Enter async context and restore the persisted session."""
        await self._ensure_initialized()
        self.start()
        return self

    async def __aexit__(
        self, exc_type: type | None, exc_val: BaseException | None, exc_tb: object
    ) -> None:
        """Exit async context."""
        await self.close()

    async def _ensure_initialized(self) -> None:
        async with self._init_lock:
            if self._machine is not None:
                return

            self._http = AsyncS3Client(self._config, session=self._session)
            await self._http.__aenter__()

            self._machine = BrowserStateMachine(
                credentials=CredentialStore(self._storage),
                listing_service=ListingService(self._http, self._config),
                bridge=DecryptBridge(
                    self._decryptor,
                    executor=self._executor,
                    timeout=self._config.decrypt_timeout,
                ),
                exporter=self._exporter,
            )
            logger.debug("Browser initialized")

    async def close(self) -> None:
        """Cancel running requests and release the HTTP client."""
        async with self._init_lock:
            if self._machine is not None:
                await self._machine.aclose()
                self._machine = None
            if self._http is not None:
                await self._http.__aexit__(None, None, None)
                self._http = None
            logger.debug("Browser closed")

    @property
    def machine(self) -> BrowserStateMachine:
        """The underlying state machine."""
        if self._machine is None:
            raise RuntimeError("Browser not initialized. Use 'async with' first.")
        return self._machine

    @property
    def state(self) -> BrowserState:
        """Current browsing state."""
        return self.machine.state

    @property
    def is_signed_in(self) -> bool:
        """Check if a session is active."""
        return self._machine is not None and self._machine.state.session.is_signed_in

    def start(self) -> None:
        """Restore the persisted session and request the initial listing."""
        self.machine.start()

    def dispatch(self, event: Event) -> None:
        """Queue a user event."""
        self.machine.post(event)

    def sign_in(self, account: Account, encryption_key: str, salt: str) -> None:
        """Queue a sign-in; the outcome is visible in ``state`` once processed."""
        self.dispatch(SubmittedSignIn(account, encryption_key, salt))

    def sign_out(self) -> None:
        """Queue a sign-out."""
        self.dispatch(ClickedSignOut())

    def refresh(self) -> None:
        """Queue a new listing request."""
        self.dispatch(ListBucket())

    async def process_pending(self) -> None:
        """Process queued events and wait for running requests to settle."""
        await self.machine.process_pending()

    async def run(self) -> None:
        """Process events until cancelled."""
        await self.machine.run()

    def view(self) -> DirectoryView:
        """Folders and files in the current directory."""
        return self.machine.view()
