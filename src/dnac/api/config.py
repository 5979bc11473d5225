"""Client configuration loaded from explicit arguments or the environment.

Environment Variables:
    - DNAC_URL: Controller base URL (e.g. https://dnac.example.com)
    - DNAC_USER: API username
    - DNAC_PASSWORD: API password
    - DNAC_TOKEN_FILE: Token cache file (default: dnac_token.json)
    - DNAC_VERIFY_SSL: Verify the controller certificate (default: true)
    - DNAC_TIMEOUT: Per-request timeout in seconds (default: 60)
"""
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .exceptions import ConfigurationError

DEFAULT_TOKEN_FILE = "dnac_token.json"
DEFAULT_REQUEST_TIMEOUT = 60.0

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(name: str, value: Optional[str], default: bool) -> bool:
    if value is None or value.strip() == "":
        return default
    lowered = value.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ConfigurationError(f"{name} must be a boolean, got {value!r}")


@dataclass(frozen=True)
class DNACConfig:
    """Connection settings for one controller.

    Attributes:
        base_url: Controller base URL without trailing slash
        username: Basic-auth username for the token endpoint
        password: Basic-auth password for the token endpoint
        token_file: Where the cached token is persisted
        verify_ssl: Verify the controller TLS certificate
        request_timeout: Total timeout per HTTP request in seconds
    """
    base_url: str
    username: str
    password: str
    token_file: str = DEFAULT_TOKEN_FILE
    verify_ssl: bool = True
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT

    def __post_init__(self):
        # frozen dataclass: normalize through object.__setattr__
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    def __repr__(self) -> str:
        return (
            f"DNACConfig(base_url={self.base_url!r}, username={self.username!r}, "
            f"token_file={self.token_file!r}, verify_ssl={self.verify_ssl})"
        )

    @classmethod
    def from_env(
        cls,
        base_url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        token_file: Optional[str] = None,
        verify_ssl: Optional[bool] = None,
    ) -> "DNACConfig":
        """Build a config, falling back to environment variables (and .env).

        Raises:
            ConfigurationError: If a required value is missing or malformed.
        """
        load_dotenv()

        base_url = base_url or os.getenv("DNAC_URL")
        username = username or os.getenv("DNAC_USER")
        password = password or os.getenv("DNAC_PASSWORD")

        missing = []
        if not base_url:
            missing.append("DNAC_URL")
        if not username:
            missing.append("DNAC_USER")
        if not password:
            missing.append("DNAC_PASSWORD")
        if missing:
            raise ConfigurationError(
                f"Missing required environment variables: {', '.join(missing)}",
                missing_keys=missing,
            )

        if verify_ssl is None:
            verify_ssl = _parse_bool("DNAC_VERIFY_SSL", os.getenv("DNAC_VERIFY_SSL"), True)

        raw_timeout = os.getenv("DNAC_TIMEOUT")
        try:
            request_timeout = float(raw_timeout) if raw_timeout else DEFAULT_REQUEST_TIMEOUT
        except ValueError as e:
            raise ConfigurationError(
                f"DNAC_TIMEOUT must be a number, got {raw_timeout!r}",
                cause=e,
            )

        return cls(
            base_url=base_url,
            username=username,
            password=password,
            token_file=token_file or os.getenv("DNAC_TOKEN_FILE") or DEFAULT_TOKEN_FILE,
            verify_ssl=verify_ssl,
            request_timeout=request_timeout,
        )
