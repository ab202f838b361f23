"""
Remote listing service.

Thin orchestration over list/get/delete against the account's first bucket.
"""

import structlog

from s3crypt.api.endpoints.objects import (
    delete_object,
    get_object,
    iter_object_pages,
    list_objects,
)
from s3crypt.api.http_client import AsyncS3Client
from s3crypt.config import S3CryptConfig
from s3crypt.models.auth import Account
from s3crypt.models.objects import RawKey, RawListing

logger = structlog.get_logger(__name__)


class ListingService:
    """
    Lists, fetches and deletes encrypted objects.

    By default a listing is a single page of at most ``list_max_keys``
    objects and is flagged as truncated when the bucket holds more. With
    ``list_all_pages`` the continuation tokens are followed to the end.
    """

    def __init__(self, http: AsyncS3Client, config: S3CryptConfig) -> None:
        """
        Args:
            http: Async S3 client.
            config: Client configuration.
        """
        self._http = http
        self._config = config

    async def list_bucket(self, account: Account) -> RawListing:
        """
        List the account's bucket.

        Args:
            account: Account to list.

        Returns:
            Raw listing in server order.

        Raises:
            RemoteError: If the request fails.
        """
        max_keys = self._config.list_max_keys
        keys: list[RawKey] = []
        if self._config.list_all_pages:
            async for page in iter_object_pages(self._http, account, page_size=max_keys):
                keys.extend(page.keys)
            truncated = False
        else:
            page = await list_objects(self._http, account, max_keys=max_keys)
            keys.extend(page.keys)
            truncated = page.is_truncated

        logger.debug("Bucket listed", count=len(keys), truncated=truncated)
        return RawListing(keys=tuple(keys), truncated=truncated)

    async def delete_object(self, account: Account, encrypted_key: str) -> str:
        """
        Delete one object by its encrypted name.

        Returns:
            Confirmation message.

        Raises:
            RemoteError: If the request fails.
        """
        logger.debug("Deleting object")
        return await delete_object(self._http, account, encrypted_key)

    async def get_object_bytes(self, account: Account, encrypted_key: str) -> bytes:
        """
        Fetch one object's full body.

        Raises:
            RemoteError: If the request fails.
        """
        data = await get_object(self._http, account, encrypted_key)
        logger.debug("Object fetched", size=len(data))
        return data
