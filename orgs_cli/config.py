"""Configuration management for the orgs CLI with validation."""

import json
import os
from pathlib import Path
from typing import Optional, Dict, Any, Self

from .encryption import SecureConfig, EncryptionError


class ConfigError(Exception):
    """Configuration-related errors."""
    pass


class ConfigValidationError(ConfigError):
    """Raised when configuration validation fails."""
    pass


class Config:
    """Manages CLI configuration with encryption and validation."""

    CONFIG_SCHEMA = {
        'url': {'type': str, 'required': False, 'validator': 'validate_url'},
        'token': {'type': str, 'required': False, 'validator': 'validate_token'},
        'timeout': {'type': int, 'required': False, 'min': 5, 'max': 300, 'default': 30},
        'retries': {'type': int, 'required': False, 'min': 0, 'max': 10, 'default': 3},
    }

    ENV_OVERRIDES = {
        'url': 'ORGS_URL',
        'token': 'ORGS_TOKEN',
    }

    def __init__(self: Self, config_dir: Optional[Path] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Directory holding config.json. Defaults to ~/.orgs
        """
        self.config_dir = Path(config_dir) if config_dir else Path.home() / ".orgs"
        self.config_file = self.config_dir / "config.json"
        self._sensitive_keys = ['token']
        self._secure_config: Optional[SecureConfig] = None

    @property
    def secure_config(self: Self) -> SecureConfig:
        if self._secure_config is None:
            self._ensure_directories()
            self._secure_config = SecureConfig(self.config_dir / ".encryption_key")
        return self._secure_config

    def _ensure_directories(self: Self) -> None:
        self.config_dir.mkdir(parents=True, exist_ok=True)
        os.chmod(self.config_dir, 0o700)

    def _validate_config_schema(self: Self, config: Dict[str, Any]) -> None:
        """Validate configuration against schema.

        Args:
            config: Configuration dictionary to validate.

        Raises:
            ConfigValidationError: If validation fails.
        """
        errors = []

        for key, schema in self.CONFIG_SCHEMA.items():
            value = config.get(key)

            if schema['required'] and value is None:
                errors.append(f"Required field '{key}' is missing")
                continue

            if value is None:
                continue

            # bool is a subclass of int
            if not isinstance(value, schema['type']) or isinstance(value, bool):
                errors.append(f"Field '{key}' must be of type {schema['type'].__name__}")
                continue

            if 'min' in schema and value < schema['min']:
                errors.append(f"Field '{key}' must be >= {schema['min']}")
            if 'max' in schema and value > schema['max']:
                errors.append(f"Field '{key}' must be <= {schema['max']}")

            if 'validator' in schema:
                validator = getattr(self, schema['validator'], None)
                if validator and not validator(value):
                    errors.append(f"Field '{key}' failed validation")

        if errors:
            raise ConfigValidationError(f"Configuration validation failed: {'; '.join(errors)}")

    def validate_url(self: Self, url: str) -> bool:
        return url.startswith(('http://', 'https://'))

    def validate_token(self: Self, token: str) -> bool:
        return len(token) >= 10

    def load(self: Self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration from file with optional validation.

        Environment overrides are applied after the file is read.

        Args:
            validate: Whether to validate the configuration schema.

        Returns:
            Dictionary containing configuration data.

        Raises:
            ConfigError: If loading fails.
        """
        config = self._load_stored()

        for key, env_var in self.ENV_OVERRIDES.items():
            if os.environ.get(env_var):
                config[key] = os.environ[env_var]

        for key, schema in self.CONFIG_SCHEMA.items():
            if key not in config and 'default' in schema:
                config[key] = schema['default']

        if validate:
            self._validate_config_schema(config)

        return config

    def save(self: Self, config: Dict[str, Any]) -> None:
        """Save configuration to file with encryption and validation.

        Raises:
            ConfigError: If validation or saving fails.
        """
        self._validate_config_schema(config)

        try:
            encrypted_config = self.secure_config.encrypt_dict_values(config, self._sensitive_keys)
        except EncryptionError as e:
            raise ConfigError(f"Failed to encrypt configuration: {e}")

        # Write to a temporary file first, then move into place
        temp_file = self.config_file.with_suffix('.tmp')
        try:
            with open(temp_file, 'w') as f:
                json.dump(encrypted_config, f, indent=2)
            os.chmod(temp_file, 0o600)
            temp_file.replace(self.config_file)
        except OSError as e:
            if temp_file.exists():
                temp_file.unlink()
            raise ConfigError(f"Failed to save configuration: {e}")

    def get(self: Self, key: str, default: Any = None) -> Any:
        """Get configuration value.

        Args:
            key: Configuration key to retrieve.
            default: Default value if key not found.

        Returns:
            Configuration value or default.
        """
        try:
            config = self.load(validate=False)
            return config.get(key, default)
        except ConfigError:
            return default

    def update(self: Self, **values: Any) -> Dict[str, Any]:
        """Set several configuration values at once.

        Values that are None are left unchanged.

        Returns:
            The previous values of the keys that changed.

        Raises:
            ConfigError: If validation fails.
        """
        config = self._load_stored()
        previous = {}
        for key, value in values.items():
            if value is None:
                continue
            if key not in self.CONFIG_SCHEMA:
                raise ConfigValidationError(f"Unknown configuration key '{key}'")
            previous[key] = config.get(key)
            config[key] = value
        self.save(config)
        return previous

    def _load_stored(self: Self) -> Dict[str, Any]:
        # Stored values only; environment overrides must not be persisted
        if not self.config_file.exists():
            return {}
        try:
            with open(self.config_file, 'r') as f:
                stored = json.load(f)
            return self.secure_config.decrypt_dict_values(stored, self._sensitive_keys)
        except (json.JSONDecodeError, IOError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")
        except EncryptionError as e:
            raise ConfigError(f"Failed to decrypt configuration: {e}")

    def get_url(self: Self) -> Optional[str]:
        return self.get('url')

    def get_token(self: Self) -> Optional[str]:
        return self.get('token')

    def is_configured(self: Self) -> bool:
        """Check if CLI is configured.

        Returns:
            True if both URL and token are configured, False otherwise.
        """
        return bool(self.get_url() and self.get_token())
