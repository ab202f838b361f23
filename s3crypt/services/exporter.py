"""
Local export of decrypted files.
"""

from pathlib import Path, PurePosixPath
from typing import Protocol

import structlog

from s3crypt.exceptions import ExportError

logger = structlog.get_logger(__name__)


class FileExporter(Protocol):
    """Offers a decrypted file body to the user."""

    def export(self, name: str, content: str) -> Path:
        """
        Save content under a display name.

        Returns:
            Where the file was written.

        Raises:
            ExportError: If the file cannot be written.
        """
        ...


class DirectoryExporter:
    """Writes decrypted files as UTF-8 text into one directory."""

    def __init__(self, directory: Path) -> None:
        self._directory = directory

    def export(self, name: str, content: str) -> Path:
        filename = PurePosixPath(name).name
        if filename in ("", ".", ".."):
            msg = f"Invalid file name: {name!r}"
            raise ExportError(msg, name=name)

        destination = self._directory / filename
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
            destination.write_text(content, encoding="utf-8")
        except (OSError, UnicodeEncodeError) as e:
            msg = f"Could not write {filename}"
            raise ExportError(msg, name=name) from e

        logger.info("File saved", destination=str(destination))
        return destination
