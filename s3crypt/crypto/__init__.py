"""
Decryption capability interface.

The decrypt algorithm itself lives outside this package; see Decryptor.
"""

from s3crypt.crypto.protocol import Decryptor

__all__ = ["Decryptor"]
