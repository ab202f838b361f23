"""
Decrypt bridge.

Sends name batches and file bodies to the decryptor off the event loop and
keeps track of which request of each kind is the latest one, so late or
superseded results can be recognised and dropped.
"""

import asyncio
import itertools
from collections.abc import Callable
from concurrent.futures import Executor
from typing import TypeVar

import structlog

from s3crypt.crypto.protocol import Decryptor
from s3crypt.exceptions import DecryptError
from s3crypt.models.events import RequestKind, Ticket
from s3crypt.models.objects import DecryptedKey, KeyListing, RawListing

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class DecryptBridge:
    """
    Correlates decrypt requests with their results.

    At most one request per kind is current: issuing a new ticket supersedes
    the previous one of the same kind.
    """

    def __init__(
        self,
        decryptor: Decryptor,
        *,
        executor: Executor | None = None,
        timeout: float | None = None,
    ) -> None:
        """
        Args:
            decryptor: Decryption capability.
            executor: Executor to run the decryptor in; a thread by default.
                Pass a process pool for out-of-process decryption.
            timeout: Seconds before a round-trip is reported as failed.
        """
        self._decryptor = decryptor
        self._executor = executor
        self._timeout = timeout
        self._ids = itertools.count(1)
        self._outstanding: dict[RequestKind, int] = {}

    def issue(self, kind: RequestKind, generation: int) -> Ticket:
        """Start a new request of a kind, superseding any outstanding one."""
        ticket = Ticket(kind=kind, request_id=next(self._ids), generation=generation)
        if (previous := self._outstanding.get(kind)) is not None:
            logger.debug("Superseding request", kind=kind, request_id=previous)
        self._outstanding[kind] = ticket.request_id
        return ticket

    def is_outstanding(self, kind: RequestKind) -> bool:
        """Check if a request of this kind is still awaiting its result."""
        return kind in self._outstanding

    def is_current(self, ticket: Ticket, generation: int) -> bool:
        """Check if a ticket is the latest of its kind and from this session."""
        return (
            ticket.generation == generation
            and self._outstanding.get(ticket.kind) == ticket.request_id
        )

    def accept(self, ticket: Ticket, generation: int) -> bool:
        """
        Claim the final result of a request.

        Returns:
            True if the ticket was current; it is then no longer outstanding.
        """
        if not self.is_current(ticket, generation):
            logger.debug(
                "Dropping stale result", kind=ticket.kind, request_id=ticket.request_id
            )
            return False
        del self._outstanding[ticket.kind]
        return True

    def reset(self) -> None:
        """Forget every outstanding request."""
        self._outstanding.clear()

    async def decrypt_listing(
        self,
        ticket: Ticket,
        raw: RawListing,
        encryption_key: str,
        salt: str,
    ) -> KeyListing:
        """
        Decrypt every name of a raw listing.

        The result is all-or-nothing: the listing is returned only when
        every name was decrypted.

        Args:
            ticket: Listing ticket.
            raw: Encrypted listing.
            encryption_key: Crypt password.
            salt: Crypt salt.

        Returns:
            Decrypted listing in input order, stamped with the key and salt.

        Raises:
            DecryptError: If the decryptor fails, times out, or returns a
                batch of the wrong size.
        """
        names = [key.key for key in raw.keys]
        paths = await self._run(
            ticket, self._decryptor.decrypt_names, names, encryption_key, salt
        )

        if not isinstance(paths, list | tuple) or len(paths) != len(names):
            msg = f"Expected {len(names)} decrypted names"
            raise DecryptError(msg, kind=ticket.kind)

        keys = tuple(
            DecryptedKey(
                encrypted_key=key.key,
                path=path,
                size=key.size,
                last_modified=key.last_modified,
            )
            for key, path in zip(raw.keys, paths, strict=True)
        )
        logger.debug("Listing decrypted", request_id=ticket.request_id, count=len(keys))
        return KeyListing(
            keys=keys, encryption_key=encryption_key, salt=salt, truncated=raw.truncated
        )

    async def decrypt_payload(
        self,
        ticket: Ticket,
        payload: str,
        encryption_key: str,
        salt: str,
    ) -> str:
        """
        Decrypt one base64-encoded file body.

        Raises:
            DecryptError: If the decryptor fails or times out.
        """
        content = await self._run(
            ticket, self._decryptor.decrypt_payload, payload, encryption_key, salt
        )
        if not isinstance(content, str):
            msg = "Decryptor returned no text"
            raise DecryptError(msg, kind=ticket.kind)
        logger.debug("Payload decrypted", request_id=ticket.request_id)
        return content

    async def _run(self, ticket: Ticket, func: Callable[..., T], *args: object) -> T:
        if self._executor is not None:
            call = asyncio.get_running_loop().run_in_executor(self._executor, func, *args)
        else:
            call = asyncio.to_thread(func, *args)

        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except TimeoutError as e:
            msg = f"No result after {self._timeout} seconds"
            raise DecryptError(msg, kind=ticket.kind) from e
        except DecryptError:
            raise
        except Exception as e:
            logger.warning(
                "Decryptor failed", kind=ticket.kind, error_type=type(e).__name__
            )
            msg = "Decryptor failed"
            raise DecryptError(msg, kind=ticket.kind) from e
