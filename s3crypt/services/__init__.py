"""
Business logic services for the S3 crypt browser.
"""

from s3crypt.services.browser import BrowserState, BrowserStateMachine
from s3crypt.services.credential_store import (
    CredentialStore,
    JsonFileStorage,
    MemoryStorage,
    SessionStorage,
)
from s3crypt.services.decrypt_bridge import DecryptBridge
from s3crypt.services.exporter import DirectoryExporter, FileExporter
from s3crypt.services.listing_service import ListingService

__all__ = [
    "BrowserState",
    "BrowserStateMachine",
    "CredentialStore",
    "DecryptBridge",
    "DirectoryExporter",
    "FileExporter",
    "JsonFileStorage",
    "ListingService",
    "MemoryStorage",
    "SessionStorage",
]
