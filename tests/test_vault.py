"""Tests for the credential vault: encryption at rest, owner isolation, partial updates."""

import pytest

from broker.models.credential import Credential
from broker.services.errors import InvalidServiceType, KeyMismatch, NotFound
from broker.services.vault import CredentialVault


def test_create_encrypts_payload(vault, users, db_session):
    alice, _ = users
    cred = vault.create(alice.id, "Home controller", "unifi", {"username": "u", "password": "p"})

    stored = db_session.get(Credential, cred.id)
    assert "password" not in stored.credential_data
    assert vault.resolve(cred.id, alice.id) == {"username": "u", "password": "p"}


def test_create_rejects_unknown_service_type(vault, users):
    alice, _ = users
    with pytest.raises(InvalidServiceType):
        vault.create(alice.id, "Bad", "ftp", {"password": "x"})


def test_list_is_owner_scoped_and_sorted_by_name(vault, users):
    alice, bob = users
    vault.create(alice.id, "zeta", "pihole", {"password": "1"})
    vault.create(alice.id, "alpha", "pihole", {"password": "2"})
    vault.create(bob.id, "bobs", "pihole", {"password": "3"})

    assert [c.name for c in vault.list(alice.id)] == ["alpha", "zeta"]
    assert [c.name for c in vault.list(bob.id)] == ["bobs"]


def test_resolve_other_users_credential_is_not_found(vault, users):
    alice, bob = users
    cred = vault.create(bob.id, "Bob's pihole", "pihole", {"password": "b"})

    with pytest.raises(NotFound) as foreign:
        vault.resolve(cred.id, alice.id)
    with pytest.raises(NotFound) as missing:
        vault.resolve(cred.id + 1000, alice.id)
    assert foreign.value.to_dict() == missing.value.to_dict()


@pytest.mark.parametrize("operation", ["get", "resolve", "delete", "check_format"])
def test_every_lookup_enforces_ownership(vault, users, operation):
    alice, bob = users
    cred = vault.create(bob.id, "Bob's", "unifi", {"username": "u", "password": "p"})
    with pytest.raises(NotFound):
        getattr(vault, operation)(cred.id, alice.id)


def test_update_other_users_credential_is_not_found(vault, users):
    alice, bob = users
    cred = vault.create(bob.id, "Bob's", "pihole", {"password": "b"})
    with pytest.raises(NotFound):
        vault.update(cred.id, alice.id, {"name": "stolen"})


def test_update_only_touches_supplied_fields(vault, users):
    alice, _ = users
    cred = vault.create(alice.id, "Before", "pihole", {"password": "old"}, description="keep me")
    envelope = cred.credential_data

    updated = vault.update(cred.id, alice.id, {"name": "After"})

    assert updated.name == "After"
    assert updated.description == "keep me"
    assert updated.credential_data == envelope
    assert vault.resolve(cred.id, alice.id) == {"password": "old"}


def test_update_reencrypts_changed_data(vault, users):
    alice, _ = users
    cred = vault.create(alice.id, "Pi", "pihole", {"password": "old"})
    envelope = cred.credential_data

    updated = vault.update(cred.id, alice.id, {"data": {"password": "new"}})

    assert updated.credential_data != envelope
    assert vault.resolve(cred.id, alice.id) == {"password": "new"}


def test_update_validates_service_type(vault, users):
    alice, _ = users
    cred = vault.create(alice.id, "Pi", "pihole", {"password": "x"})
    with pytest.raises(InvalidServiceType):
        vault.update(cred.id, alice.id, {"service_type": "telnet"})


def test_update_without_fields_is_rejected(vault, users):
    alice, _ = users
    cred = vault.create(alice.id, "Pi", "pihole", {"password": "x"})
    with pytest.raises(ValueError):
        vault.update(cred.id, alice.id, {"name": None})


def test_delete_removes_credential(vault, users):
    alice, _ = users
    cred = vault.create(alice.id, "Pi", "pihole", {"password": "x"})
    vault.delete(cred.id, alice.id)
    with pytest.raises(NotFound):
        vault.resolve(cred.id, alice.id)
    with pytest.raises(NotFound):
        vault.delete(cred.id, alice.id)


def test_undecryptable_payload_is_an_error_not_empty(vault, users, db_session):
    alice, _ = users
    cred = vault.create(alice.id, "Pi", "pihole", {"password": "x"})

    from broker.services.encryption import Cipher
    other = CredentialVault(vault.store, Cipher("rotated-secret"))
    with pytest.raises(KeyMismatch):
        other.resolve(cred.id, alice.id)


@pytest.mark.parametrize(
    "service_type, data, valid",
    [
        ("pihole", {"password": "x"}, True),
        ("pihole", {"token": "x"}, False),
        ("unifi", {"username": "u", "password": "p"}, True),
        ("unifi", {"username": "u"}, False),
        ("home_assistant", {"token": "t"}, True),
        ("snmp", {"community": ""}, False),
        ("custom", {"anything": 1}, True),
    ],
)
def test_check_format(vault, users, service_type, data, valid):
    alice, _ = users
    cred = vault.create(alice.id, "c", service_type, data)
    result_valid, message, result_type = vault.check_format(cred.id, alice.id)
    assert result_valid is valid
    assert result_type == service_type
    assert message
