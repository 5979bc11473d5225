#!/usr/bin/env python3
"""Token Lifecycle Management for Catalyst Center (DNAC).

The controller hands out a signed JWT from a basic-auth POST. The client
caches that token on disk between runs and only asks for a new one when the
cached token is missing, unreadable, or close to expiry.

Features:
    - Cached token reuse across process restarts (via TokenStore)
    - Expiry recovered from the token's own `exp` claim
    - Refresh margin: a cached token is only reused with more than
      TOKEN_REFRESH_MARGIN_SECONDS of lifetime left
    - Single-flight refresh using asyncio.Lock
    - Fresh tokens are persisted before they are handed out

Security Notes:
    - The JWT signature is NOT verified. Only the `exp` claim is read, and it
      is trusted because the token arrived over the controller's TLS channel.
    - Token ID in log output is a SHA-256 prefix; the token itself is never logged.

Example:
    >>> manager = TokenManager(config)
    >>> token = await manager.establish()
    >>> secret = await manager.get_token()
"""
import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Optional

import aiohttp
import jwt

from .config import DNACConfig
from .exceptions import (
    DNACError,
    InvalidCredentialsError,
    TokenFetchError,
    TokenLoadError,
)
from .token_store import TokenStore

logger = logging.getLogger(__name__)

AUTH_PATH = "/dna/system/api/v1/auth/token"

# A cached token is only reused if it stays valid for more than 10 minutes.
TOKEN_REFRESH_MARGIN_SECONDS = 600


def parse_token_expiry(secret: str) -> int:
    """Read the `exp` claim from a JWT without verifying its signature.

    Args:
        secret: Encoded JWT string

    Returns:
        Expiry as Unix timestamp (seconds)

    Raises:
        TokenLoadError: If the token cannot be decoded or has no `exp` claim
    """
    try:
        claims = jwt.decode(secret, options={"verify_signature": False})
    except jwt.PyJWTError as e:
        raise TokenLoadError(f"Token is not a decodable JWT: {e}", cause=e)

    exp = claims.get("exp")
    if exp is None:
        raise TokenLoadError("Token missing 'exp' claim")
    if not isinstance(exp, (int, float)):
        raise TokenLoadError(f"Token 'exp' claim is not numeric: {exp!r}")
    return int(exp)


@dataclass(frozen=True)
class Token:
    """Authentication token with its parsed expiry.

    Tokens are never mutated; a refresh replaces the whole object.

    Attributes:
        secret: Encoded JWT sent in the X-Auth-Token header
        expiry: Unix timestamp from the `exp` claim (None until parsed)
    """
    secret: str
    expiry: Optional[int] = None

    @classmethod
    def from_secret(cls, secret: str) -> "Token":
        """Build a token and parse its expiry claim."""
        return cls(secret=secret, expiry=parse_token_expiry(secret))

    def parsed(self) -> "Token":
        """Return a copy with expiry re-derived from the claims."""
        return Token.from_secret(self.secret)

    @property
    def token_id(self) -> str:
        """Safe identifier for logging (SHA-256 hash, first 8 chars)."""
        return hashlib.sha256(self.secret.encode()).hexdigest()[:8]

    def is_valid(self, now: Optional[float] = None) -> bool:
        """True iff expiry is strictly in the future."""
        if self.expiry is None:
            return False
        now = time.time() if now is None else now
        return self.expiry > now

    def valid_for(self, now: Optional[float] = None) -> int:
        """Seconds of lifetime left (0 if expired or unparsed)."""
        if self.expiry is None:
            return 0
        now = time.time() if now is None else now
        return max(0, int(self.expiry - now))

    def is_usable(
        self,
        margin: float = TOKEN_REFRESH_MARGIN_SECONDS,
        now: Optional[float] = None,
    ) -> bool:
        """Valid and with more than `margin` seconds left."""
        return self.is_valid(now) and self.valid_for(now) > margin


class TokenManager:
    """Owns the session's single authoritative token.

    `establish()` runs once at session start; afterwards `get_token()` is
    what the transport calls on every request. Both serialize refreshes
    behind one asyncio.Lock so concurrent callers that notice an expiring
    token trigger exactly one authentication call.

    Attributes:
        config: Controller connection settings
        store: TokenStore used for the on-disk cache
        margin: Minimum remaining lifetime for a token to be reused
    """

    def __init__(
        self,
        config: DNACConfig,
        store: Optional[TokenStore] = None,
        margin: float = TOKEN_REFRESH_MARGIN_SECONDS,
    ):
        self.config = config
        self.store = store or TokenStore(config.token_file)
        self.margin = margin

        self._token: Optional[Token] = None
        self._lock = asyncio.Lock()

    @property
    def token(self) -> Optional[Token]:
        """The current token (None before establish())."""
        return self._token

    async def establish(self) -> Token:
        """Load a usable cached token or authenticate for a new one.

        Returns:
            The token now owned by this manager

        Raises:
            AuthenticationError: If no cached token is usable and the
                authentication call fails
        """
        async with self._lock:
            cached = self._load_cached()
            if cached is not None and cached.is_usable(self.margin):
                logger.info(
                    f"Loaded token (id={cached.token_id}) is still valid for "
                    f"{cached.valid_for()} sec and will be used"
                )
                self._token = cached
            else:
                if cached is not None:
                    logger.info("Loaded token is no longer valid, generate a new one")
                self._token = await self._fetch_token()
            return self._token

    def _load_cached(self) -> Optional[Token]:
        """Read and re-parse the cached token; any defect means "absent"."""
        try:
            loaded = self.store.load()
        except TokenLoadError as e:
            logger.warning(f"Ignoring unreadable token file: {e}")
            return None

        if loaded is None:
            logger.info("Token file not found, generate a new one")
            return None

        try:
            return loaded.parsed()
        except TokenLoadError as e:
            logger.warning(f"Ignoring cached token: {e}")
            return None

    async def get_token(self) -> str:
        """Get a usable token secret, refreshing under the lock if needed."""
        if self._token is not None and self._token.is_usable(self.margin):
            return self._token.secret

        async with self._lock:
            if self._token is not None and self._token.is_usable(self.margin):
                return self._token.secret

            self._token = await self._fetch_token()
            return self._token.secret

    async def refresh(self, stale_secret: Optional[str] = None) -> str:
        """Force a new token.

        If `stale_secret` is given and another caller already replaced that
        token while we waited for the lock, the newer token is returned
        instead of authenticating again.
        """
        async with self._lock:
            if (
                stale_secret is not None
                and self._token is not None
                and self._token.secret != stale_secret
            ):
                return self._token.secret

            self._token = await self._fetch_token()
            return self._token.secret

    def invalidate(self):
        """Drop the in-memory token. The next get_token() authenticates."""
        self._token = None

    async def _fetch_token(self) -> Token:
        """Call the authentication endpoint, parse and persist the token.

        This is the fallback of last resort: failures are raised at once.

        Raises:
            InvalidCredentialsError: On HTTP 401
            TokenFetchError: On any other failure to obtain a token
            TokenLoadError: If the returned token has no usable expiry
        """
        url = f"{self.config.base_url}{AUTH_PATH}"
        auth = aiohttp.BasicAuth(self.config.username, self.config.password)
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)

        logger.debug(f"Requesting new token from {url}")

        try:
            async with aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(ssl=self.config.verify_ssl),
            ) as session:
                async with session.post(url, auth=auth, timeout=timeout) as response:
                    if response.status == 401:
                        error_text = await response.text()
                        raise InvalidCredentialsError(
                            details={"response": error_text[:200]},
                        )

                    if response.status >= 400:
                        error_text = await response.text()
                        raise TokenFetchError(
                            f"Token endpoint returned HTTP {response.status}",
                            status_code=response.status,
                            details={"response": error_text[:200]},
                        )

                    data = await response.json(content_type=None)

        except DNACError:
            raise

        except asyncio.TimeoutError as e:
            raise TokenFetchError("Token request timed out", cause=e)

        except aiohttp.ClientError as e:
            raise TokenFetchError(f"Network error fetching token: {e}", cause=e)

        except ValueError as e:
            raise TokenFetchError("Token response is not valid JSON", cause=e)

        secret = data.get("Token") if isinstance(data, dict) else None
        if not secret:
            raise TokenFetchError(
                "Token response missing Token",
                status_code=200,
                details={"response_keys": list(data.keys()) if isinstance(data, dict) else []},
            )

        token = Token.from_secret(secret)
        self.store.save(token)
        logger.info(f"Token fetched (id={token.token_id}), valid for {token.valid_for()}s")
        return token

    @property
    def token_info(self) -> Optional[dict]:
        """Debug info about the current token (never the token itself)."""
        if not self._token:
            return None
        return {
            "token_id": self._token.token_id,
            "is_valid": self._token.is_valid(),
            "time_remaining_seconds": self._token.valid_for(),
        }


__all__ = [
    "AUTH_PATH",
    "TOKEN_REFRESH_MARGIN_SECONDS",
    "Token",
    "TokenManager",
    "parse_token_expiry",
]
