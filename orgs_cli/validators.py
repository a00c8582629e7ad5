"""Input validation for orgs CLI configuration values and command input."""

import re
from urllib.parse import urlparse


class ValidationError(Exception):
    """Raised when input validation fails."""
    pass


class InputValidator:
    """Validates and sanitizes user inputs."""

    PATTERNS = {
        'api_token': re.compile(r'^[a-zA-Z0-9\-_\.]+$'),
        'control_chars': re.compile(r'[\x00-\x1F\x7F]'),
    }

    MAX_LENGTHS = {
        'url': 2048,
        'api_token': 1024,
        'name': 128,
    }

    @classmethod
    def validate_url(cls, url: str) -> str:
        """Validate the API base URL.

        Args:
            url: URL to validate

        Returns:
            URL without a trailing slash

        Raises:
            ValidationError: If URL is invalid
        """
        if not url:
            raise ValidationError("URL cannot be empty")

        if len(url) > cls.MAX_LENGTHS['url']:
            raise ValidationError(f"URL cannot exceed {cls.MAX_LENGTHS['url']} characters")

        parsed = urlparse(url)
        if parsed.scheme not in ('http', 'https'):
            raise ValidationError("URL must start with http:// or https://")
        if not parsed.netloc:
            raise ValidationError(f"URL has no host: {url}")

        return url.rstrip('/')

    @classmethod
    def validate_api_token(cls, token: str) -> str:
        """Validate an API token.

        Raises:
            ValidationError: If token is invalid
        """
        if not token:
            raise ValidationError("API token cannot be empty")

        if len(token) < 10:
            raise ValidationError("API token appears to be invalid (too short)")

        if len(token) > cls.MAX_LENGTHS['api_token']:
            raise ValidationError(f"API token cannot exceed {cls.MAX_LENGTHS['api_token']} characters")

        if not cls.PATTERNS['api_token'].match(token):
            raise ValidationError("API token contains invalid characters")

        return token

    @classmethod
    def validate_timeout(cls, timeout: int) -> int:
        if timeout < 5 or timeout > 300:
            raise ValidationError("Timeout must be between 5 and 300 seconds")
        return timeout

    @classmethod
    def validate_name(cls, value: str, kind: str = "name") -> str:
        """Validate an org or team name.

        Names are matched exactly against the backend, so the value is
        returned unchanged.

        Raises:
            ValidationError: If the value is too long or has control characters
        """
        if len(value) > cls.MAX_LENGTHS['name']:
            raise ValidationError(f"{kind.capitalize()} name cannot exceed {cls.MAX_LENGTHS['name']} characters")
        if cls.PATTERNS['control_chars'].search(value):
            raise ValidationError(f"{kind.capitalize()} name contains control characters")
        return value
