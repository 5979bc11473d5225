"""Durable storage for the controller authentication token.

The file holds exactly `{"Token": "<jwt>", "exp": <unix seconds> | null}`.
This module only reads and writes that file; deciding whether the token is
still usable belongs to `auth.TokenManager`.
"""
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional, Union

from .exceptions import ConfigurationError, TokenLoadError

logger = logging.getLogger(__name__)


class TokenStore:
    """Load/save the cached token at a fixed path.

    A missing file is the normal first-run state and yields `None`.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    def load(self):
        """Load the cached token.

        Returns:
            Token, or None if the file does not exist.

        Raises:
            TokenLoadError: If the file exists but is not a valid token file.
        """
        from .auth import Token

        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.debug(f"Token file {self.path} not found")
            return None
        except OSError as e:
            raise TokenLoadError(f"Cannot read token file {self.path}: {e}", cause=e)

        try:
            data = json.loads(raw)
            secret = data["Token"]
            exp = data.get("exp")
        except (json.JSONDecodeError, KeyError, TypeError, AttributeError) as e:
            raise TokenLoadError(f"Malformed token file {self.path}", cause=e)

        if not isinstance(secret, str) or not secret:
            raise TokenLoadError(f"Malformed token file {self.path}: empty token")
        if exp is not None and not isinstance(exp, (int, float)):
            raise TokenLoadError(f"Malformed token file {self.path}: bad exp")

        return Token(secret=secret, expiry=int(exp) if exp is not None else None)

    def save(self, token) -> None:
        """Persist the token, replacing the file atomically."""
        payload = {"Token": token.secret, "exp": token.expiry}
        directory = self.path.parent

        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
        except OSError as e:
            raise ConfigurationError(f"Cannot write token file {self.path}: {e}", cause=e)

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(payload, f)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise ConfigurationError(f"Cannot write token file {self.path}: {e}", cause=e)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Token (id={token.token_id}) saved to {self.path}")


__all__ = ["TokenStore"]
