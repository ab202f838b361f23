"""
Decryptor protocol definition.

Name and content decryption is provided by an external capability compatible
with rclone "crypt" remotes. This defines the interface the decrypt bridge
talks to, so implementations (in-process library, rclone subprocess, worker
pool) can be swapped without changing the rest of the codebase.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable


@runtime_checkable
class Decryptor(Protocol):
    """
    Abstract interface for crypt-remote decryption.

    Methods are synchronous and may be slow; the bridge always runs them off
    the event loop. Implementations used with a process pool must be picklable.
    """

    def decrypt_names(
        self,
        names: Sequence[str],
        encryption_key: str,
        salt: str,
    ) -> list[str]:
        """
        Decrypt a batch of encrypted object names.

        Each name is decrypted segment by segment; "/" separators are kept.

        Args:
            names: Encrypted object names.
            encryption_key: Crypt password.
            salt: Crypt salt (password2).

        Returns:
            Decrypted paths, one per input name, in input order.

        Raises:
            Exception: Any failure; the bridge reports it as a DecryptError.
        """
        ...

    def decrypt_payload(
        self,
        payload: str,
        encryption_key: str,
        salt: str,
    ) -> str:
        """
        Decrypt one file body.

        Args:
            payload: Base64-encoded ciphertext of the whole object.
            encryption_key: Crypt password.
            salt: Crypt salt (password2).

        Returns:
            Decrypted file content as text.

        Raises:
            Exception: Any failure; the bridge reports it as a DecryptError.
        """
        ...
