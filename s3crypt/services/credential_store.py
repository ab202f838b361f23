"""
Credential store.

Owns the signed-in/signed-out session and persists it through an opaque
storage channel. Restoring never fails: anything unreadable degrades to the
signed-out session.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Protocol

import structlog

from s3crypt.api.http_client import sanitize_for_log
from s3crypt.exceptions import InvalidCredentialsError
from s3crypt.models.auth import SIGNED_OUT, Account, Session

logger = structlog.get_logger(__name__)


class SessionStorage(Protocol):
    """Save/load channel for the serialized session."""

    def load(self) -> str | None:
        """Return the stored document, or None if nothing was saved."""
        ...

    def save(self, data: str) -> None:
        """Replace the stored document."""
        ...


class JsonFileStorage:
    """Session storage backed by a single file, readable by the owner only."""

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> str | None:
        try:
            return self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def save(self, data: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self._path.parent, prefix=".session-")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(data)
            os.chmod(tmp_name, 0o600)
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise


class MemoryStorage:
    """In-memory session storage."""

    def __init__(self, data: str | None = None) -> None:
        self.data = data

    def load(self) -> str | None:
        return self.data

    def save(self, data: str) -> None:
        self.data = data


def session_to_json(session: Session) -> dict[str, Any]:
    """
    Serialize a session.

    Returns:
        {} when signed out, otherwise {"account", "encryptionKey", "salt"}.
    """
    if session.account is None:
        return {}
    return {
        "account": session.account.to_dict(),
        "encryptionKey": session.encryption_key,
        "salt": session.salt,
    }


def session_from_json(data: Any) -> Session:
    """
    Deserialize a session.

    Any payload that is not a complete signed-in session, including an empty
    object, yields the signed-out session.
    """
    if not isinstance(data, dict) or not data:
        return SIGNED_OUT
    try:
        account = Account.from_dict(data["account"])
        encryption_key = data["encryptionKey"]
        salt = data["salt"]
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        logger.debug("Discarding malformed session", error_type=type(e).__name__)
        return SIGNED_OUT

    if not (isinstance(encryption_key, str) and isinstance(salt, str)):
        logger.debug("Discarding malformed session", error_type="TypeError")
        return SIGNED_OUT
    if not encryption_key or not salt:
        logger.debug("Discarding session without key material")
        return SIGNED_OUT

    return Session(account=account, encryption_key=encryption_key, salt=salt)


def validate_sign_in(account: Account, encryption_key: str, salt: str) -> None:
    """
    Check that every required sign-in field is filled in.

    Raises:
        InvalidCredentialsError: Naming the first empty field.
    """
    required = (
        ("access_key", "Access key", account.access_key),
        ("secret_key", "Secret key", account.secret_key),
        ("bucket", "Bucket", account.bucket or ""),
        ("encryption_key", "Encryption key", encryption_key),
        ("salt", "Salt", salt),
    )
    for field, label, value in required:
        if not value.strip():
            msg = f"{label} is required"
            raise InvalidCredentialsError(msg, field=field)


class CredentialStore:
    """
    Persists the single global session.

    Every write replaces the stored session wholesale.
    """

    def __init__(self, storage: SessionStorage) -> None:
        """
        Args:
            storage: Channel the serialized session is saved to and loaded from.
        """
        self._storage = storage

    def restore(self) -> Session:
        """
        Read the persisted session.

        Returns:
            The stored session, or the signed-out session if nothing usable
            was stored.
        """
        try:
            raw = self._storage.load()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read session", error_type=type(e).__name__)
            return SIGNED_OUT
        if raw is None:
            return SIGNED_OUT

        try:
            data = json.loads(raw)
        except ValueError:
            logger.debug("Discarding unparsable session")
            return SIGNED_OUT

        session = session_from_json(data)
        if session.account is not None:
            logger.info("Session restored", account=sanitize_for_log(session.account.to_dict()))
        return session

    def sign_in(self, account: Account, encryption_key: str, salt: str) -> Session:
        """
        Validate and persist a signed-in session.

        Args:
            account: Storage account.
            encryption_key: Crypt password.
            salt: Crypt salt.

        Returns:
            The new session.

        Raises:
            InvalidCredentialsError: If a required field is empty; nothing
                is persisted in that case.
        """
        validate_sign_in(account, encryption_key, salt)
        session = Session(account=account, encryption_key=encryption_key, salt=salt)
        self._persist(session)
        logger.info("Signed in", bucket=account.bucket)
        return session

    def sign_out(self) -> Session:
        """Persist the signed-out session."""
        self._persist(SIGNED_OUT)
        logger.info("Signed out")
        return SIGNED_OUT

    def _persist(self, session: Session) -> None:
        try:
            self._storage.save(json.dumps(session_to_json(session)))
        except OSError as e:
            logger.warning("Failed to persist session", error_type=type(e).__name__)
