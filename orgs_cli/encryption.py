"""Encryption of the stored API token.

The session token is the only secret the CLI keeps on disk; it is stored
Fernet-encrypted inside the JSON config file.
"""

import os
from pathlib import Path
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class EncryptionError(Exception):
    """Raised when encryption/decryption operations fail."""
    pass


class SecureConfig:
    """Encrypts and decrypts sensitive configuration values."""

    ENV_KEY = 'ORGS_ENCRYPTION_KEY'

    def __init__(self, key_file: Path, encryption_key: Optional[bytes] = None) -> None:
        """Initialize secure configuration manager.

        Args:
            key_file: Where the generated key is kept when no key is supplied.
            encryption_key: Optional Fernet key. Falls back to the
                          environment, then to the key file.

        Raises:
            EncryptionError: If the key is invalid or cannot be created.
        """
        self.key_file = key_file
        self.key = encryption_key or self._get_or_create_key()
        try:
            self.cipher = Fernet(self.key)
        except (ValueError, TypeError) as e:
            raise EncryptionError(f"Invalid encryption key: {e}")

    def _get_or_create_key(self) -> bytes:
        env_key = os.environ.get(self.ENV_KEY)
        if env_key:
            return env_key.encode()

        if self.key_file.exists():
            try:
                return self.key_file.read_bytes().strip()
            except OSError as e:
                raise EncryptionError(f"Failed to read encryption key file: {e}")

        try:
            key = Fernet.generate_key()
            self.key_file.parent.mkdir(parents=True, exist_ok=True)
            self.key_file.write_bytes(key)
            os.chmod(self.key_file, 0o600)
            return key
        except OSError as e:
            raise EncryptionError(f"Failed to generate encryption key: {e}")

    def encrypt_value(self, value: str) -> str:
        """Encrypt a string value.

        Returns:
            Fernet token as text

        Raises:
            EncryptionError: If encryption fails.
        """
        if not isinstance(value, str):
            raise EncryptionError("Value must be a string")
        return self.cipher.encrypt(value.encode('utf-8')).decode('utf-8')

    def decrypt_value(self, encrypted_value: str) -> str:
        """Decrypt a value produced by ``encrypt_value``.

        Raises:
            EncryptionError: If decryption fails.
        """
        if not isinstance(encrypted_value, str):
            raise EncryptionError("Encrypted value must be a string")
        try:
            return self.cipher.decrypt(encrypted_value.encode('utf-8')).decode('utf-8')
        except InvalidToken:
            raise EncryptionError("Failed to decrypt value: invalid token or wrong key")

    def is_encrypted(self, value: str) -> bool:
        try:
            self.decrypt_value(value)
            return True
        except EncryptionError:
            return False

    def encrypt_dict_values(self, data: dict, sensitive_keys: list) -> dict:
        """Encrypt sensitive values in a dictionary.

        Args:
            data: Configuration data
            sensitive_keys: Keys whose values should be encrypted

        Returns:
            Copy of ``data`` with sensitive values encrypted
        """
        result = data.copy()
        for key in sensitive_keys:
            if result.get(key) is not None and not self.is_encrypted(str(result[key])):
                result[key] = self.encrypt_value(str(result[key]))
        return result

    def decrypt_dict_values(self, data: dict, sensitive_keys: list) -> dict:
        """Decrypt sensitive values in a dictionary.

        Raises:
            EncryptionError: If a sensitive value cannot be decrypted.
        """
        result = data.copy()
        for key in sensitive_keys:
            if result.get(key) is not None:
                result[key] = self.decrypt_value(str(result[key]))
        return result
