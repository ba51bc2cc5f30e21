"""Cryptographic utilities for the wallet seed vault.

Uses Fernet (AES-128-CBC with HMAC) for symmetric encryption, keyed by
PBKDF2 over the user's password.
"""

import base64
import hashlib
import logging
import os
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 100_000
SALT_BYTES = 16

# Plaintext stored encrypted next to the vault to verify a password
PASSWORD_CHECK_PLAINTEXT = "valid"


class InvalidPasswordError(ValueError):
    """Raised when vault data cannot be decrypted with the given password."""


def derive_key_from_password(password: str, salt: Optional[bytes] = None) -> tuple[str, bytes]:
    """Derive a Fernet key from a password using PBKDF2.

    Args:
        password: User-provided password
        salt: Optional salt (generated if not provided)

    Returns:
        Tuple of (base64-encoded key, salt)
    """
    if salt is None:
        salt = os.urandom(SALT_BYTES)

    key = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode(),
        salt,
        PBKDF2_ITERATIONS,
        dklen=32,
    )

    # Fernet requires base64-encoded key
    fernet_key = base64.urlsafe_b64encode(key)
    return fernet_key.decode(), salt


def encode_salt(salt: bytes) -> str:
    return base64.b64encode(salt).decode()


def decode_salt(salt_b64: str) -> bytes:
    return base64.b64decode(salt_b64.encode())


class VaultCipher:
    """Encrypts and decrypts vault payloads with a password-derived key.

    Usage:
        cipher = VaultCipher.create("hunter22")
        token = cipher.encrypt("seed words ...")
        cipher = VaultCipher.from_password("hunter22", cipher.salt_b64)
        plaintext = cipher.decrypt(token)
    """

    def __init__(self, key: str, salt: bytes):
        self._fernet = Fernet(key.encode())
        self.salt = salt

    @classmethod
    def create(cls, password: str) -> "VaultCipher":
        """Build a cipher with a fresh random salt."""
        key, salt = derive_key_from_password(password)
        return cls(key, salt)

    @classmethod
    def from_password(cls, password: str, salt_b64: str) -> "VaultCipher":
        """Rebuild the cipher for an existing vault."""
        key, salt = derive_key_from_password(password, decode_salt(salt_b64))
        return cls(key, salt)

    @property
    def salt_b64(self) -> str:
        return encode_salt(self.salt)

    def encrypt(self, plaintext: str) -> str:
        """Encrypt a string.

        Returns:
            Base64-encoded Fernet token
        """
        return self._fernet.encrypt(plaintext.encode()).decode()

    def decrypt(self, token: str) -> str:
        """Decrypt a Fernet token.

        Raises:
            InvalidPasswordError: If the key does not match the token
        """
        try:
            return self._fernet.decrypt(token.encode()).decode()
        except InvalidToken:
            raise InvalidPasswordError("Decryption failed - invalid password")

    def password_check_token(self) -> str:
        """Encrypted marker used to verify the password later."""
        return self.encrypt(PASSWORD_CHECK_PLAINTEXT)

    def verify(self, check_token: str) -> bool:
        """Check the password against a stored check token."""
        try:
            return self.decrypt(check_token) == PASSWORD_CHECK_PLAINTEXT
        except InvalidPasswordError:
            logger.debug("Vault password check failed")
            return False
