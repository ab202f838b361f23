"""Tests for the S3CryptBrowser facade."""

import json
from collections.abc import Callable
from pathlib import Path

import pytest

from s3crypt.client import S3CryptBrowser
from s3crypt.config import S3CryptConfig
from s3crypt.models.auth import Account, Session
from s3crypt.models.navigation import Screen
from s3crypt.services.credential_store import MemoryStorage, session_to_json
from s3crypt.tests.constants import BUCKET, ENCRYPTION_KEY, SALT
from s3crypt.tests.utils.fake_decryptor import FakeDecryptor
from s3crypt.tests.utils.fake_s3 import FakeS3Client, FakeSession

OBJECTS = {"a%enc/b%enc": b"one", "d%enc": b"two"}
NAMES = {"a%enc/b%enc": "docs/report.txt", "d%enc": "readme.txt"}


@pytest.fixture
def s3() -> FakeS3Client:
    return FakeS3Client(BUCKET, OBJECTS)


@pytest.fixture
def make_browser(
    s3: FakeS3Client, tmp_path: Path
) -> Callable[..., S3CryptBrowser]:
    def _make(storage: MemoryStorage | None = None) -> S3CryptBrowser:
        return S3CryptBrowser(
            FakeDecryptor(names=NAMES),
            S3CryptConfig(download_dir=tmp_path),
            storage=storage or MemoryStorage(),
            session=FakeSession(s3),
        )

    return _make


def test_machine_requires_context(make_browser: Callable[..., S3CryptBrowser]) -> None:
    browser = make_browser()

    assert not browser.is_signed_in
    with pytest.raises(RuntimeError, match="not initialized"):
        _ = browser.state


@pytest.mark.asyncio
async def test_context_restores_session(
    make_browser: Callable[..., S3CryptBrowser], make_session: Callable[..., Session]
) -> None:
    storage = MemoryStorage(json.dumps(session_to_json(make_session())))

    async with make_browser(storage) as browser:
        assert browser.is_signed_in
        await browser.process_pending()

        view = browser.view()
        assert [e.display_name for e in view.folders] == ["docs"]
        assert [e.display_name for e in view.files] == ["readme.txt"]


@pytest.mark.asyncio
async def test_sign_in_refresh_and_sign_out(
    make_browser: Callable[..., S3CryptBrowser],
    make_account: Callable[..., Account],
    s3: FakeS3Client,
) -> None:
    storage = MemoryStorage()

    async with make_browser(storage) as browser:
        assert browser.state.screen == Screen.SIGN_IN

        browser.sign_in(make_account(), ENCRYPTION_KEY, SALT)
        await browser.process_pending()
        assert browser.state.screen == Screen.BROWSER
        assert len(browser.state.listing) == 2

        browser.refresh()
        await browser.process_pending()
        assert s3.operations() == ["ListObjectsV2", "ListObjectsV2"]

        browser.sign_out()
        await browser.process_pending()
        assert not browser.is_signed_in
        assert json.loads(storage.data) == {}


@pytest.mark.asyncio
async def test_close_is_idempotent(make_browser: Callable[..., S3CryptBrowser]) -> None:
    browser = make_browser()
    async with browser:
        pass
    await browser.close()

    assert not browser.is_signed_in
    with pytest.raises(RuntimeError):
        browser.view()
