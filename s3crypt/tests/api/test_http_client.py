"""Tests for AsyncS3Client."""

from collections.abc import Callable

import aiohttp
import pytest
from botocore.exceptions import EndpointConnectionError, ParamValidationError, ReadTimeoutError

from s3crypt.api.http_client import (
    AsyncS3Client,
    remote_error_from_client_error,
    sanitize_for_log,
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
from s3crypt.tests.constants import ACCESS_KEY, BUCKET, SECRET_KEY
from s3crypt.tests.utils.fake_s3 import FakeS3Client, FakeSession, client_error


@pytest.fixture
def s3() -> FakeS3Client:
    return FakeS3Client(BUCKET, {"abc": b"body"})


@pytest.fixture
def session(s3: FakeS3Client) -> FakeSession:
    return FakeSession(s3)


@pytest.fixture
def client(session: FakeSession) -> AsyncS3Client:
    return AsyncS3Client(S3CryptConfig(timeout=5.0), session=session)


def test_sanitize_for_log_masks_nested_secrets() -> None:
    data = {
        "account": {"access-key": "AK", "secret-key": "SK", "region": "eu"},
        "encryptionKey": "pw",
        "salt": "s",
        "items": [{"aws_secret_access_key": "sig"}, "plain"],
    }

    assert sanitize_for_log(data) == {
        "account": {"access-key": "***", "secret-key": "***", "region": "eu"},
        "encryptionKey": "***",
        "salt": "***",
        "items": [{"aws_secret_access_key": "***"}, "plain"],
    }


@pytest.mark.parametrize(
    ("status", "code", "expected"),
    [
        (404, "NoSuchKey", NotFoundError),
        (404, "NoSuchBucket", NotFoundError),
        (403, "SignatureDoesNotMatch", AccessDeniedError),
        (429, "TooManyRequests", RateLimitError),
        (503, "SlowDown", RateLimitError),
        (500, "InternalError", ServerError),
        (400, "InvalidArgument", RemoteError),
    ],
)
def test_client_errors_are_typed(status: int, code: str, expected: type) -> None:
    error = remote_error_from_client_error(
        client_error(code, "It went wrong", status, "GetObject"), "GetObject"
    )

    assert type(error) is expected
    assert error.status == status
    assert error.operation == "GetObject"
    assert error.message == "It went wrong"


def test_client_error_without_message_uses_code() -> None:
    error = remote_error_from_client_error(client_error("NoSuchKey", "", 404, "x"), "GetObject")

    assert error.message == "NoSuchKey"


@pytest.mark.asyncio
async def test_client_is_built_from_account(
    client: AsyncS3Client, session: FakeSession, make_account: Callable[..., Account]
) -> None:
    async with client:
        response = await client.call(make_account(), "GetObject", Key="abc")
        assert await client.read_body(response, "GetObject") == b"body"

    kwargs = session.create_client_calls[0]
    assert kwargs["service_name"] == "s3"
    assert kwargs["endpoint_url"] == "https://s3.eu-west-1.amazonaws.com"
    assert kwargs["region_name"] == "eu-west-1"
    assert kwargs["aws_access_key_id"] == ACCESS_KEY
    assert kwargs["aws_secret_access_key"] == SECRET_KEY
    config = kwargs["config"]
    assert config.signature_version == "s3v4"
    assert config.s3 == {"addressing_style": "path"}
    assert config.connect_timeout == 5.0
    assert S3CryptConfig().user_agent in config.user_agent_extra


@pytest.mark.asyncio
async def test_client_is_reused_per_account(
    client: AsyncS3Client, session: FakeSession, make_account: Callable[..., Account]
) -> None:
    async with client:
        await client.call(make_account(), "ListObjectsV2")
        await client.call(make_account(), "ListObjectsV2")
        await client.call(make_account(region="us-west-2"), "ListObjectsV2")

    assert len(session.create_client_calls) == 2


@pytest.mark.asyncio
async def test_call_passes_bucket_and_params(
    client: AsyncS3Client, s3: FakeS3Client, make_account: Callable[..., Account]
) -> None:
    async with client:
        await client.call(make_account(), "ListObjectsV2", MaxKeys=7)

    assert s3.calls == [("ListObjectsV2", {"Bucket": BUCKET, "MaxKeys": 7})]


@pytest.mark.asyncio
async def test_call_without_bucket_raises(
    client: AsyncS3Client, s3: FakeS3Client, make_account: Callable[..., Account]
) -> None:
    async with client:
        with pytest.raises(NotFoundError, match="No bucket configured"):
            await client.call(make_account(buckets=()), "ListObjectsV2")

    assert s3.calls == []


@pytest.mark.asyncio
async def test_client_error_is_translated(
    client: AsyncS3Client, make_account: Callable[..., Account]
) -> None:
    async with client:
        with pytest.raises(NotFoundError) as exc_info:
            await client.call(make_account(), "GetObject", Key="missing")

    assert exc_info.value.operation == "GetObject"
    assert exc_info.value.code == "NoSuchKey"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "failure",
    [
        EndpointConnectionError(endpoint_url="https://s3.eu-west-1.amazonaws.com"),
        ReadTimeoutError(endpoint_url="https://s3.eu-west-1.amazonaws.com"),
        aiohttp.ClientConnectionError("connection reset"),
    ],
)
async def test_connection_failures_raise_network_error(
    client: AsyncS3Client,
    s3: FakeS3Client,
    make_account: Callable[..., Account],
    failure: Exception,
) -> None:
    s3.failures["ListObjectsV2"] = failure

    async with client:
        with pytest.raises(NetworkError) as exc_info:
            await client.call(make_account(), "ListObjectsV2")

    assert exc_info.value.operation == "ListObjectsV2"


@pytest.mark.asyncio
async def test_client_side_failures_raise_remote_error(
    client: AsyncS3Client, s3: FakeS3Client, make_account: Callable[..., Account]
) -> None:
    s3.failures["ListObjectsV2"] = ParamValidationError(report="MaxKeys must be an integer")

    async with client:
        with pytest.raises(RemoteError, match="Malformed request or response"):
            await client.call(make_account(), "ListObjectsV2")


@pytest.mark.asyncio
async def test_paginate_follows_tokens(
    client: AsyncS3Client, s3: FakeS3Client, make_account: Callable[..., Account]
) -> None:
    s3.objects = {"a": b"", "b": b"", "c": b""}

    async with client:
        pages = [
            page
            async for page in client.paginate(
                make_account(), "ListObjectsV2", PaginationConfig={"PageSize": 2}
            )
        ]

    assert [[item["Key"] for item in page["Contents"]] for page in pages] == [["a", "b"], ["c"]]


@pytest.mark.asyncio
async def test_paginate_translates_errors(
    client: AsyncS3Client, make_account: Callable[..., Account]
) -> None:
    async with client:
        with pytest.raises(NotFoundError):
            async for _ in client.paginate(make_account(buckets=("other",)), "ListObjectsV2"):
                pass


@pytest.mark.asyncio
async def test_close_is_idempotent(
    client: AsyncS3Client, make_account: Callable[..., Account]
) -> None:
    await client.call(make_account(), "ListObjectsV2")

    await client.close()
    await client.close()

    assert client._clients == {}
