from collections.abc import Callable

import pytest

from s3crypt.models.auth import SIGNED_OUT, Account, Session


def test_endpoint_for_aws_region(make_account: Callable[..., Account]) -> None:
    account = make_account(region="eu-west-1")

    assert account.endpoint_url == "https://s3.eu-west-1.amazonaws.com"
    assert account.signing_region == "eu-west-1"


def test_endpoint_for_aws_without_region(make_account: Callable[..., Account]) -> None:
    account = make_account(region=None)

    assert account.endpoint_url == "https://s3.amazonaws.com"
    assert account.signing_region == "us-east-1"


def test_endpoint_for_digital_ocean(make_account: Callable[..., Account]) -> None:
    account = make_account(region="ams3", is_digital_ocean=True)

    assert account.endpoint_url == "https://ams3.digitaloceanspaces.com"


def test_digital_ocean_defaults_to_nyc3(make_account: Callable[..., Account]) -> None:
    account = make_account(region=None, is_digital_ocean=True)

    assert account.endpoint_url == "https://nyc3.digitaloceanspaces.com"
    assert account.signing_region == "nyc3"


def test_only_first_bucket_is_used(make_account: Callable[..., Account]) -> None:
    assert make_account(buckets=("first", "second")).bucket == "first"
    assert make_account(buckets=()).bucket is None


def test_replace_returns_equal_by_value_copy(make_account: Callable[..., Account]) -> None:
    account = make_account()
    changed = account.replace(region="us-west-2")

    assert changed.region == "us-west-2"
    assert account.region != "us-west-2"
    assert changed.replace(region=account.region) == account


def test_secret_key_is_not_in_repr(make_account: Callable[..., Account]) -> None:
    account = make_account(secret_key="very-secret")

    assert "very-secret" not in repr(account)


def test_dict_round_trip(make_account: Callable[..., Account]) -> None:
    account = make_account(region=None)

    assert Account.from_dict(account.to_dict()) == account


def test_dict_uses_persisted_field_names(make_account: Callable[..., Account]) -> None:
    assert set(make_account().to_dict()) == {
        "name",
        "region",
        "is-digital-ocean",
        "access-key",
        "secret-key",
        "buckets",
    }


@pytest.mark.parametrize(
    "change",
    [
        {"buckets": "not-a-list"},
        {"buckets": [1, 2]},
        {"is-digital-ocean": "yes"},
        {"region": 5},
        {"access-key": None},
    ],
)
def test_from_dict_rejects_wrong_types(
    make_account: Callable[..., Account], change: dict
) -> None:
    data = {**make_account().to_dict(), **change}

    with pytest.raises(TypeError):
        Account.from_dict(data)


def test_from_dict_rejects_missing_fields(make_account: Callable[..., Account]) -> None:
    data = make_account().to_dict()
    del data["secret-key"]

    with pytest.raises(KeyError):
        Account.from_dict(data)


def test_signed_out_session_has_no_key_material() -> None:
    assert not SIGNED_OUT.is_signed_in
    assert SIGNED_OUT.encryption_key == ""
    assert SIGNED_OUT.salt == ""


def test_session_repr_hides_key_material(make_session: Callable[..., Session]) -> None:
    session = make_session(encryption_key="hunter2", salt="pepper")

    assert "hunter2" not in repr(session)
    assert "pepper" not in repr(session)
