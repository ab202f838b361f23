from collections.abc import Callable

import pytest

from s3crypt.models.auth import Account, Session
from s3crypt.models.objects import DecryptedKey, RawKey
from s3crypt.tests.constants import ACCESS_KEY, BUCKET, ENCRYPTION_KEY, REGION, SALT, SECRET_KEY
from s3crypt.tests.utils.fake_decryptor import FakeDecryptor


@pytest.fixture
def make_account() -> Callable[..., Account]:
    def _make(
        access_key: str = ACCESS_KEY,
        secret_key: str = SECRET_KEY,
        buckets: tuple[str, ...] = (BUCKET,),
        region: str | None = REGION,
        is_digital_ocean: bool = False,
    ) -> Account:
        return Account(
            region=region,
            is_digital_ocean=is_digital_ocean,
            access_key=access_key,
            secret_key=secret_key,
            buckets=buckets,
        )

    return _make


@pytest.fixture
def make_session(make_account: Callable[..., Account]) -> Callable[..., Session]:
    def _make(encryption_key: str = ENCRYPTION_KEY, salt: str = SALT) -> Session:
        return Session(account=make_account(), encryption_key=encryption_key, salt=salt)

    return _make


@pytest.fixture
def make_key() -> Callable[..., DecryptedKey]:
    def _make(path: str, encrypted_key: str | None = None, size: int = 10) -> DecryptedKey:
        return DecryptedKey(
            encrypted_key=encrypted_key or f"enc:{path}",
            path=path,
            size=size,
            last_modified="2024-05-01T10:00:00.000Z",
        )

    return _make


@pytest.fixture
def make_raw_key() -> Callable[..., RawKey]:
    def _make(key: str, size: int = 10) -> RawKey:
        return RawKey(key=key, size=size, last_modified="2024-05-01T10:00:00.000Z")

    return _make


@pytest.fixture
def fake_decryptor() -> FakeDecryptor:
    return FakeDecryptor()
