"""
Cached, thread-safe access to a valid token.

The TokenManager mints a token on first use, hands the same token to
every caller until it nears expiry, and guarantees that only one refresh
runs at a time; callers that arrive during a refresh wait for it and reuse
its result.
"""

import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Optional

from ..config.logger_module import log_info, log_warning
from .auth_signer import TokenSigner

if TYPE_CHECKING:
    from .auth_exchange import AccessTokenExchanger


# Share of a token's lifetime used as the margin when the configured one would not fit
SHORT_LIFETIME_MARGIN_RATIO = 0.5


@dataclass(frozen=True)
class Token:
    """A signed token and its validity window (epoch seconds)."""

    value: str
    issued_at: float
    expires_at: float

    def __repr__(self) -> str:
        return f"Token(issued_at={self.issued_at}, expires_at={self.expires_at})"

    @property
    def lifetime(self) -> float:
        return self.expires_at - self.issued_at

    def remaining(self, now: float) -> float:
        return self.expires_at - now

    def is_valid(self, now: float) -> bool:
        return self.issued_at < now < self.expires_at


class TokenManager:
    """
    Owns the signing key and the current token.

    A cached token is refreshed once `now >= expires_at - margin`, where the
    margin is the larger of `refresh_margin_seconds` and `refresh_ratio` of
    the token's lifetime. Tokens shorter than that margin (short-lived access
    tokens) are refreshed at half their lifetime instead.
    """

    def __init__(self,
                 signer: TokenSigner,
                 lifetime_seconds: int = 1800,
                 refresh_margin_seconds: float = 30.0,
                 refresh_ratio: float = 0.1,
                 clock: Callable[[], float] = time.time,
                 exchanger: Optional["AccessTokenExchanger"] = None,
                 origin: Optional[str] = None):
        """
        Args:
            signer: Signs new tokens
            lifetime_seconds: Lifetime requested for each signed token
            refresh_margin_seconds: Minimum time before expiry to refresh at
            refresh_ratio: Fraction of the lifetime before expiry to refresh at
            clock: Returns the current epoch time
            exchanger: When set, each signed token is exchanged for an access token
            origin: Optional origin claim for signed tokens
        """
        if lifetime_seconds <= 0:
            raise ValueError(f"lifetime_seconds must be positive, got {lifetime_seconds}")
        if lifetime_seconds > signer.max_lifetime_seconds:
            raise ValueError(
                f"lifetime_seconds ({lifetime_seconds}) exceeds the signer's maximum "
                f"({signer.max_lifetime_seconds})"
            )
        if not 0 <= refresh_margin_seconds < lifetime_seconds:
            raise ValueError(
                f"refresh_margin_seconds must be in [0, lifetime_seconds), got {refresh_margin_seconds}"
            )
        if not 0.0 <= refresh_ratio < 1.0:
            raise ValueError(f"refresh_ratio must be in [0, 1), got {refresh_ratio}")

        self.signer = signer
        self.lifetime_seconds = lifetime_seconds
        self.refresh_margin_seconds = refresh_margin_seconds
        self.refresh_ratio = refresh_ratio
        self.origin = origin
        self._clock = clock
        self._exchanger = exchanger
        self._lock = threading.Lock()
        self._token: Optional[Token] = None
        self._refresh_count = 0

    @property
    def refresh_count(self) -> int:
        """Number of tokens minted so far."""
        return self._refresh_count

    def refresh_margin(self, token: Token) -> float:
        margin = max(self.refresh_margin_seconds, self.refresh_ratio * token.lifetime)
        if margin >= token.lifetime:
            # The margin must leave part of the lifetime usable
            return token.lifetime * SHORT_LIFETIME_MARGIN_RATIO
        return margin

    def needs_refresh(self, token: Optional[Token], now: float) -> bool:
        if token is None:
            return True
        return now >= token.expires_at - self.refresh_margin(token)

    def get_token(self) -> Token:
        """
        Return a token that is not close to expiry, minting one if needed.

        Raises:
            SigningError: If a required refresh cannot sign a new token
            MapsClientError: If a required token exchange fails
        """
        token = self._token
        if not self.needs_refresh(token, self._clock()):
            return token

        with self._lock:
            # Another thread may have refreshed while we waited for the lock
            token = self._token
            if self.needs_refresh(token, self._clock()):
                token = self._mint()
                self._token = token
            return token

    def invalidate(self, token: Optional[Token] = None) -> None:
        """
        Drop the cached token so the next get_token() mints a new one.

        Args:
            token: The token that was rejected. If the cache already holds a
                different (newer) token, nothing is dropped.
        """
        with self._lock:
            if token is not None and self._token is not token:
                return
            if self._token is not None:
                log_info("Invalidating cached token")
            self._token = None

    def _mint(self) -> Token:
        now = self._clock()
        issued_at = int(now)
        expires_at = issued_at + self.lifetime_seconds
        value = self.signer.sign(issued_at, expires_at, origin=self.origin)
        token = Token(value=value, issued_at=issued_at, expires_at=expires_at)

        if self._exchanger is not None:
            token = self._exchanger.exchange(token)
            if token.lifetime <= self.refresh_margin_seconds:
                log_warning(
                    f"Access token lifetime {token.lifetime:.0f}s is within the {self.refresh_margin_seconds:.0f}s "
                    f"refresh margin; refreshing at half its lifetime instead"
                )

        self._refresh_count += 1
        log_info(
            f"Minted token #{self._refresh_count}, expires in "
            f"{token.remaining(now):.0f}s"
        )
        return token
