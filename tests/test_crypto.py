"""Tests for the seed vault cipher."""

import pytest

from xmrsplit.crypto import (
    InvalidPasswordError,
    VaultCipher,
    decode_salt,
    derive_key_from_password,
    encode_salt,
)


class TestKeyDerivation:
    def test_same_password_and_salt_give_same_key(self):
        """PBKDF2 is deterministic for a fixed salt."""
        key1, salt = derive_key_from_password("hunter22")
        key2, _ = derive_key_from_password("hunter22", salt)
        assert key1 == key2

    def test_fresh_salt_each_time(self):
        _, salt1 = derive_key_from_password("hunter22")
        _, salt2 = derive_key_from_password("hunter22")
        assert salt1 != salt2

    def test_salt_encoding_round_trip(self):
        _, salt = derive_key_from_password("hunter22")
        assert decode_salt(encode_salt(salt)) == salt


class TestVaultCipher:
    """Tests for VaultCipher."""

    def test_reopen_with_password(self):
        """A cipher rebuilt from the password and stored salt decrypts the token."""
        cipher = VaultCipher.create("correct horse")
        token = cipher.encrypt('["seed one", "seed two"]')

        reopened = VaultCipher.from_password("correct horse", cipher.salt_b64)
        assert reopened.decrypt(token) == '["seed one", "seed two"]'

    def test_wrong_password_raises(self):
        cipher = VaultCipher.create("correct horse")
        token = cipher.encrypt("secret")

        wrong = VaultCipher.from_password("battery staple", cipher.salt_b64)
        with pytest.raises(InvalidPasswordError):
            wrong.decrypt(token)

    def test_password_check_token(self):
        """verify() accepts the right password and rejects others without raising."""
        cipher = VaultCipher.create("correct horse")
        check = cipher.password_check_token()

        assert VaultCipher.from_password("correct horse", cipher.salt_b64).verify(check)
        assert not VaultCipher.from_password("wrong horse", cipher.salt_b64).verify(check)

    def test_ciphertext_does_not_contain_plaintext(self):
        cipher = VaultCipher.create("correct horse")
        assert "abandon" not in cipher.encrypt("abandon ability able")
