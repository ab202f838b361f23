"""
S3 crypt browser configuration.
"""

import os
from dataclasses import dataclass
from pathlib import Path

_MAX_KEYS_LIMIT = 1000


@dataclass(frozen=True, kw_only=True)
class S3CryptConfig:
    """
    Attributes:
        timeout: Request timeout in seconds.
        user_agent: User-Agent header value.
        list_max_keys: Maximum number of keys requested per listing page.
        list_all_pages: Follow continuation tokens until the listing is exhausted.
        decrypt_timeout: Upper bound for one decrypt round-trip, or None to wait forever.
        session_path: Persisted session file, or None for the default location.
        download_dir: Directory decrypted files are exported to, or None for the cwd.
    """

    timeout: float = 30.0
    user_agent: str = "s3crypt-python/0.1"
    list_max_keys: int = 100
    list_all_pages: bool = False
    decrypt_timeout: float | None = 120.0
    session_path: Path | None = None
    download_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)
        if not 0 < self.list_max_keys <= _MAX_KEYS_LIMIT:
            msg = f"list_max_keys must be between 1 and {_MAX_KEYS_LIMIT}"
            raise ValueError(msg)
        if self.decrypt_timeout is not None and self.decrypt_timeout <= 0:
            msg = "decrypt_timeout must be positive"
            raise ValueError(msg)

    def resolved_session_path(self) -> Path:
        """Location of the persisted session file."""
        if self.session_path is not None:
            return self.session_path
        base = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
        return Path(base) / "s3crypt" / "session.json"

    def resolved_download_dir(self) -> Path:
        """Directory decrypted downloads land in."""
        return self.download_dir if self.download_dir is not None else Path.cwd()
