"""
Table-driven decryptor for tests.
"""

from collections.abc import Sequence


class FakeDecryptor:
    """Decrypts by table lookup; unknown names decrypt to themselves."""

    def __init__(
        self,
        names: dict[str, str] | None = None,
        payloads: dict[str, str] | None = None,
    ) -> None:
        self.names = names or {}
        self.payloads = payloads or {}
        self.name_calls: list[tuple[list[str], str, str]] = []
        self.payload_calls: list[tuple[str, str, str]] = []

    def decrypt_names(self, names: Sequence[str], encryption_key: str, salt: str) -> list[str]:
        self.name_calls.append((list(names), encryption_key, salt))
        return [self.names.get(name, name) for name in names]

    def decrypt_payload(self, payload: str, encryption_key: str, salt: str) -> str:
        self.payload_calls.append((payload, encryption_key, salt))
        return self.payloads[payload]
