"""
Account and session domain models.
"""

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Self

DEFAULT_PROVIDER = "s3"
DEFAULT_SIGNING_REGION = "us-east-1"
DEFAULT_DIGITAL_OCEAN_REGION = "nyc3"


@dataclass(frozen=True, kw_only=True)
class Account:
    """
    Credentials and addressing for one object storage account.

    Attributes:
        name: Provider tag.
        region: Optional region; None selects the provider's global endpoint.
        is_digital_ocean: Use DigitalOcean Spaces addressing instead of AWS.
        access_key: Access key ID.
        secret_key: Secret access key.
        buckets: Configured bucket names; only the first one is used.
    """

    name: str = DEFAULT_PROVIDER
    region: str | None = None
    is_digital_ocean: bool = False
    access_key: str
    secret_key: str = field(repr=False)
    buckets: tuple[str, ...] = ()

    @property
    def bucket(self) -> str | None:
        """The bucket all operations target."""
        return self.buckets[0] if self.buckets else None

    @property
    def endpoint_url(self) -> str:
        """Base URL of the provider endpoint."""
        if self.is_digital_ocean:
            return f"https://{self.region or DEFAULT_DIGITAL_OCEAN_REGION}.digitaloceanspaces.com"
        if self.region:
            return f"https://s3.{self.region}.amazonaws.com"
        return "https://s3.amazonaws.com"

    @property
    def signing_region(self) -> str:
        """Region used for request signatures."""
        if self.region:
            return self.region
        return DEFAULT_DIGITAL_OCEAN_REGION if self.is_digital_ocean else DEFAULT_SIGNING_REGION

    def replace(self, **changes: Any) -> Self:
        """Return a copy with the given fields replaced."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, object]:
        """Convert to the persisted JSON representation."""
        return {
            "name": self.name,
            "region": self.region,
            "is-digital-ocean": self.is_digital_ocean,
            "access-key": self.access_key,
            "secret-key": self.secret_key,
            "buckets": list(self.buckets),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        """
        Build an account from its persisted JSON representation.

        Raises:
            KeyError: If a required field is missing.
            TypeError: If a field has the wrong type.
        """
        region = data.get("region")
        buckets = data["buckets"]
        fields = (
            (data["name"], str),
            (data["is-digital-ocean"], bool),
            (data["access-key"], str),
            (data["secret-key"], str),
            (buckets, list),
        )
        if any(not isinstance(value, kind) for value, kind in fields) or not (
            region is None or isinstance(region, str)
        ):
            msg = "Malformed account"
            raise TypeError(msg)
        if not all(isinstance(b, str) for b in buckets):
            msg = "Malformed bucket list"
            raise TypeError(msg)

        return cls(
            name=data["name"],
            region=region,
            is_digital_ocean=data["is-digital-ocean"],
            access_key=data["access-key"],
            secret_key=data["secret-key"],
            buckets=tuple(buckets),
        )


@dataclass(frozen=True, kw_only=True)
class Session:
    """
    Signed-in or signed-out session.

    The account is present if and only if the user is signed in; the
    encryption key and salt are non-empty exactly when it is.
    """

    account: Account | None = None
    encryption_key: str = field(default="", repr=False)
    salt: str = field(default="", repr=False)

    @property
    def is_signed_in(self) -> bool:
        """Check if a user is signed in."""
        return self.account is not None


SIGNED_OUT = Session()
