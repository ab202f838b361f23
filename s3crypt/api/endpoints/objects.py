"""Object-level API endpoints (ListObjectsV2, GetObject, DeleteObject)."""

from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

from s3crypt.api.http_client import AsyncS3Client
from s3crypt.exceptions import RemoteError
from s3crypt.models.auth import Account
from s3crypt.models.objects import ObjectPage, RawKey


async def list_objects(
    http: AsyncS3Client,
    account: Account,
    *,
    max_keys: int = 100,
) -> ObjectPage:
    """
    List the first page of the account's bucket.

    Args:
        http: Configured async S3 client.
        account: Account to list.
        max_keys: Maximum number of keys in the page.

    Returns:
        The page of raw keys.
    """
    response = await http.call(account, "ListObjectsV2", MaxKeys=max_keys)
    return page_from_response(response)


async def iter_object_pages(
    http: AsyncS3Client,
    account: Account,
    *,
    page_size: int = 100,
) -> AsyncIterator[ObjectPage]:
    """Yield every page of the account's bucket, following continuation tokens."""
    async for response in http.paginate(
        account, "ListObjectsV2", PaginationConfig={"PageSize": page_size}
    ):
        yield page_from_response(response)


async def get_object(http: AsyncS3Client, account: Account, key: str) -> bytes:
    """Fetch an object's full body."""
    response = await http.call(account, "GetObject", Key=key)
    return await http.read_body(response, "GetObject")


async def delete_object(http: AsyncS3Client, account: Account, key: str) -> str:
    """Delete an object and return a confirmation message."""
    await http.call(account, "DeleteObject", Key=key)
    return f"Deleted {key}"


def _timestamp(value: Any) -> str:
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value or "")


def page_from_response(response: dict[str, Any]) -> ObjectPage:
    """
    Convert a ListObjectsV2 response into an ObjectPage.

    Raises:
        RemoteError: If an entry lacks its key or has a non-numeric size.
    """
    try:
        keys = tuple(
            RawKey(
                key=item["Key"],
                size=int(item.get("Size", 0)),
                last_modified=_timestamp(item.get("LastModified")),
            )
            for item in response.get("Contents", ())
        )
    except (KeyError, TypeError, ValueError) as e:
        msg = "Malformed list response"
        raise RemoteError(msg, operation="ListObjectsV2") from e

    return ObjectPage(
        keys=keys,
        is_truncated=bool(response.get("IsTruncated", False)),
        next_continuation_token=response.get("NextContinuationToken"),
    )
