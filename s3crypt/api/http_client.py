"""
Async client for S3-compatible object storage.

Wraps one aiobotocore S3 client per account and maps botocore failures to
the RemoteError hierarchy. No retries are attempted here.
"""

import asyncio
from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

import aiohttp
import structlog
from aiobotocore.config import AioConfig
from aiobotocore.session import AioSession, get_session
from botocore import xform_name
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    HTTPClientError,
)
from botocore.exceptions import (
    ConnectionError as BotoConnectionError,
)

from s3crypt.config import S3CryptConfig
from s3crypt.exceptions import (
    AccessDeniedError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RemoteError,
    ServerError,
)
from s3crypt.models.auth import Account

logger = structlog.get_logger(__name__)

SENSITIVE_KEYS = frozenset(
    {
        "access-key",
        "secret-key",
        "access_key",
        "secret_key",
        "aws_access_key_id",
        "aws_secret_access_key",
        "encryptionKey",
        "encryption_key",
        "salt",
        "Authorization",
    }
)

NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NoSuchBucket", "NotFound"})
THROTTLING_CODES = frozenset({"SlowDown", "Throttling", "ThrottlingException", "TooManyRequests"})


def sanitize_for_log(data: dict[str, Any]) -> dict[str, Any]:
    """
    Remove sensitive fields from a dict before logging.

    Recursively sanitizes nested dictionaries and lists.

    Args:
        data: Dictionary that may contain sensitive values.

    Returns:
        Copy with sensitive values replaced by "***".
    """
    result = {}
    for key, value in data.items():
        if key in SENSITIVE_KEYS:
            result[key] = "***"
        elif isinstance(value, dict):
            result[key] = sanitize_for_log(value)
        elif isinstance(value, list):
            result[key] = [
                sanitize_for_log(item) if isinstance(item, dict) else item for item in value
            ]
        else:
            result[key] = value
    return result


def remote_error_from_client_error(error: ClientError, operation: str) -> RemoteError:
    """
    Convert a botocore ClientError into the matching RemoteError.

    The error code wins over the HTTP status where both identify the
    failure, since providers answer some errors with a generic status.
    """
    details = error.response.get("Error", {})
    code = details.get("Code") or None
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    message = details.get("Message") or code or "Request failed"

    if status == 404 or code in NOT_FOUND_CODES:
        return NotFoundError(message, code=code or "NoSuchKey", operation=operation)
    if status == 403:
        return AccessDeniedError(message, code=code or "AccessDenied", operation=operation)
    if status == 429 or code in THROTTLING_CODES:
        return RateLimitError(message, status=status or 429, operation=operation)
    if status is not None and status >= 500:
        return ServerError(message, code=code, status=status, operation=operation)
    return RemoteError(message, code=code, status=status, operation=operation)


class AsyncS3Client:
    """
    Async S3 client for one or more accounts.

    One aiobotocore client is opened per distinct endpoint and key pair
    and kept until ``close()``.
    """

    def __init__(
        self,
        config: S3CryptConfig,
        *,
        session: AioSession | None = None,
    ) -> None:
        """
        Args:
            config: Client configuration.
            session: Optional aiobotocore session, replaced by a fake in tests.
        """
        self._config = config
        self._session = session or get_session()
        self._stack: AsyncExitStack | None = None
        self._clients: dict[tuple[str, str, str, str], Any] = {}
        self._client_lock = asyncio.Lock()

    async def __aenter__(self) -> "AsyncS3Client":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    def _client_config(self) -> AioConfig:
        return AioConfig(
            connect_timeout=self._config.timeout,
            read_timeout=self._config.timeout,
            user_agent_extra=self._config.user_agent,
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"max_attempts": 0},
        )

    async def _ensure_client(self, account: Account) -> Any:
        identity = (
            account.endpoint_url,
            account.signing_region,
            account.access_key,
            account.secret_key,
        )
        async with self._client_lock:
            if (client := self._clients.get(identity)) is not None:
                return client
            if self._stack is None:
                self._stack = AsyncExitStack()
            client = await self._stack.enter_async_context(
                self._session.create_client(
                    "s3",
                    endpoint_url=account.endpoint_url,
                    region_name=account.signing_region,
                    aws_access_key_id=account.access_key,
                    aws_secret_access_key=account.secret_key,
                    config=self._client_config(),
                )
            )
            self._clients[identity] = client
            logger.debug("S3 client opened", endpoint=account.endpoint_url)
            return client

    async def close(self) -> None:
        """Close every open S3 client."""
        async with self._client_lock:
            if self._stack is None:
                logger.debug("Client not open.")
                return
            await self._stack.aclose()
            self._stack = None
            self._clients.clear()

    @staticmethod
    def _bucket(account: Account, operation: str) -> str:
        if account.bucket is None:
            msg = "No bucket configured for this account"
            raise NotFoundError(msg, code="NoSuchBucket", operation=operation)
        return account.bucket

    @staticmethod
    def _translate(error: Exception, operation: str) -> RemoteError:
        if isinstance(error, ClientError):
            remote = remote_error_from_client_error(error, operation)
            logger.debug(
                "S3 error response", status=remote.status, code=remote.code, operation=operation
            )
            return remote
        if isinstance(error, BotoConnectionError | HTTPClientError | aiohttp.ClientError):
            logger.warning("S3 request failed", operation=operation, error_type=type(error).__name__)
            return NetworkError(str(error) or type(error).__name__, operation=operation)
        if isinstance(error, TimeoutError):
            return NetworkError("Request timed out", operation=operation)
        # Parameter validation, response parsing and other client-side failures.
        logger.warning("S3 call failed", operation=operation, error_type=type(error).__name__)
        return RemoteError(f"Malformed request or response: {error}", operation=operation)

    async def call(self, account: Account, operation: str, **params: Any) -> dict[str, Any]:
        """
        Call one S3 operation against the account's first bucket.

        Args:
            account: Account to address and sign with.
            operation: S3 operation name (ListObjectsV2, GetObject, ...).
            **params: Operation parameters besides ``Bucket``.

        Returns:
            The parsed response.

        Raises:
            NetworkError: If the endpoint could not be reached.
            RemoteError: If the server answered with an error.
        """
        bucket = self._bucket(account, operation)
        client = await self._ensure_client(account)

        logger.debug("S3 request", bucket=bucket, operation=operation)
        try:
            return await getattr(client, xform_name(operation))(Bucket=bucket, **params)
        except (BotoCoreError, ClientError, aiohttp.ClientError, TimeoutError, ValueError) as e:
            raise self._translate(e, operation) from e

    async def paginate(
        self, account: Account, operation: str, **params: Any
    ) -> AsyncIterator[dict[str, Any]]:
        """
        Yield every page of a paginated S3 operation.

        Raises:
            NetworkError: If the endpoint could not be reached.
            RemoteError: If the server answered with an error.
        """
        bucket = self._bucket(account, operation)
        client = await self._ensure_client(account)
        paginator = client.get_paginator(xform_name(operation))

        logger.debug("S3 paginated request", bucket=bucket, operation=operation)
        try:
            async for page in paginator.paginate(Bucket=bucket, **params):
                yield page
        except (BotoCoreError, ClientError, aiohttp.ClientError, TimeoutError, ValueError) as e:
            raise self._translate(e, operation) from e

    async def read_body(self, response: dict[str, Any], operation: str) -> bytes:
        """Read a streaming response body in full."""
        try:
            async with response["Body"] as stream:
                return await stream.read()
        except (BotoCoreError, aiohttp.ClientError, TimeoutError) as e:
            raise self._translate(e, operation) from e
