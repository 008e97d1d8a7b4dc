"""Tests for credential field detection, hashing and verification."""

import pytest

from tablerest.engine.credentials import CredentialFieldPolicy
from tablerest.errors import InvalidStoredHashFormat


@pytest.fixture
def policy():
    return CredentialFieldPolicy(rounds=4)


class TestCredentialDetection:
    @pytest.mark.parametrize(
        "name", ["password", "Contrasena", "PASSW_HASH", "clave_acceso", "userPassword"]
    )
    def test_credential_names(self, policy, name):
        assert policy.is_credential_field(name)

    @pytest.mark.parametrize("name", ["email", "nombre", "pass", "id"])
    def test_other_names(self, policy, name):
        assert not policy.is_credential_field(name)

    def test_first_match_wins(self, policy):
        assert policy.find_credential_field(["email", "clave", "password"]) == "clave"

    def test_no_match(self, policy):
        assert policy.find_credential_field(["email", "nombre"]) is None


class TestHashing:
    def test_hash_has_bcrypt_prefix(self, policy):
        hashed = policy.hash_for_storage("secret")
        assert hashed.startswith("$2")
        assert "secret" not in hashed

    def test_hash_is_salted(self, policy):
        """Two hashes of the same secret differ but both verify."""
        first = policy.hash_for_storage("secret")
        second = policy.hash_for_storage("secret")
        assert first != second
        assert policy.verify("secret", first)
        assert policy.verify("secret", second)

    def test_wrong_password(self, policy):
        assert not policy.verify("other", policy.hash_for_storage("secret"))

    def test_unhashed_stored_value(self, policy):
        with pytest.raises(InvalidStoredHashFormat):
            policy.verify("secret", "secret")

    def test_empty_stored_value(self, policy):
        with pytest.raises(InvalidStoredHashFormat):
            policy.verify("secret", "")

    def test_malformed_hash_body(self, policy):
        with pytest.raises(InvalidStoredHashFormat):
            policy.verify("secret", "$2b$not-a-real-hash")
