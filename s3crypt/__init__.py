"""
S3 crypt browser.

Browse, download and delete objects in an S3-compatible bucket whose names
and contents are encrypted by an rclone "crypt" remote. The flat bucket
listing is presented as a folder tree.

Example:
    ```python
    from s3crypt import Account, S3CryptBrowser
    from s3crypt.models.events import ClickedFolder

    async with S3CryptBrowser(decryptor) as browser:
        browser.sign_in(Account(access_key="...", secret_key="...", buckets=("photos",)),
                        "password", "salt")
        await browser.process_pending()

        browser.dispatch(ClickedFolder("2024/"))
        await browser.process_pending()
        print([entry.display_name for entry in browser.view().files])
    ```
"""

from s3crypt.client import S3CryptBrowser
from s3crypt.config import S3CryptConfig
from s3crypt.crypto.protocol import Decryptor
from s3crypt.exceptions import (
    AccessDeniedError,
    DecryptError,
    ExportError,
    InvalidCredentialsError,
    NetworkError,
    NotFoundError,
    RateLimitError,
    RemoteError,
    S3CryptError,
    ServerError,
    ValidationError,
    describe_error,
)
from s3crypt.models.auth import Account, Session
from s3crypt.models.objects import DecryptedKey, KeyListing, RawKey

__version__ = "0.1.0"

__all__ = [
    # Main client
    "S3CryptBrowser",
    "S3CryptConfig",
    "Decryptor",
    # Models
    "Account",
    "Session",
    "RawKey",
    "DecryptedKey",
    "KeyListing",
    # Exceptions
    "S3CryptError",
    "ValidationError",
    "InvalidCredentialsError",
    "RemoteError",
    "NotFoundError",
    "AccessDeniedError",
    "RateLimitError",
    "ServerError",
    "NetworkError",
    "DecryptError",
    "ExportError",
    "describe_error",
]
