"""
Settings for the authenticated request pipeline.

Collects the key identifiers, token lifetimes, retry/backoff bounds and
transport timeout in one validated dataclass, loadable from the
environment.
"""

from dataclasses import dataclass
from typing import Optional

from ..config.config_module import ConfigError, get_bool, get_config, get_float, get_int
from .pipeline_transport import DEFAULT_BASE_URL


@dataclass
class PipelineConfig:
    """Configuration for token signing, retries and HTTP calls."""

    # Account identifiers and key material (PEM text or a path to a .p8 file)
    team_id: str = ""
    key_id: str = ""
    private_key: Optional[str] = None
    private_key_path: Optional[str] = None

    # Service endpoint
    base_url: str = DEFAULT_BASE_URL
    origin: Optional[str] = None

    # Token lifetimes in seconds
    token_lifetime_seconds: int = 1800
    max_token_lifetime_seconds: int = 3600
    token_refresh_margin_seconds: float = 30.0
    token_refresh_ratio: float = 0.1

    # Exchange each signed token for an access token at /v1/token
    exchange_tokens: bool = True

    # Retry and backoff
    max_attempts: int = 4
    backoff_base_seconds: float = 0.25
    backoff_max_seconds: float = 8.0
    backoff_multiplier: float = 2.0
    backoff_jitter: float = 0.5

    # Per-request timeout in seconds
    request_timeout_seconds: float = 10.0

    def __post_init__(self):
        """Validate configuration values."""
        if self.token_lifetime_seconds <= 0:
            raise ValueError(f"token_lifetime_seconds must be positive, got {self.token_lifetime_seconds}")

        if self.token_lifetime_seconds > self.max_token_lifetime_seconds:
            raise ValueError(
                f"token_lifetime_seconds ({self.token_lifetime_seconds}) exceeds "
                f"max_token_lifetime_seconds ({self.max_token_lifetime_seconds})"
            )

        if not 0 <= self.token_refresh_margin_seconds < self.token_lifetime_seconds:
            raise ValueError("token_refresh_margin_seconds must be shorter than the token lifetime")

        if not 0.0 <= self.token_refresh_ratio < 1.0:
            raise ValueError(f"token_refresh_ratio must be in [0, 1), got {self.token_refresh_ratio}")

        if not 1 <= self.max_attempts <= 10:
            raise ValueError(f"max_attempts must be between 1 and 10, got {self.max_attempts}")

        if self.backoff_base_seconds < 0 or self.backoff_max_seconds < self.backoff_base_seconds:
            raise ValueError("backoff_max_seconds must be >= backoff_base_seconds >= 0")

        if self.backoff_multiplier < 1.0:
            raise ValueError(f"backoff_multiplier must be >= 1.0, got {self.backoff_multiplier}")

        if not 0.0 <= self.backoff_jitter <= 1.0:
            raise ValueError(f"backoff_jitter must be between 0 and 1, got {self.backoff_jitter}")

        if self.request_timeout_seconds <= 0:
            raise ValueError(f"request_timeout_seconds must be positive, got {self.request_timeout_seconds}")

        if not self.base_url.startswith(("https://", "http://")):
            raise ValueError(f"base_url must be an http(s) URL, got {self.base_url!r}")

    @property
    def has_key_material(self) -> bool:
        return bool(self.private_key or self.private_key_path)

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """
        Build a config from MAPS_* environment variables.

        Unset variables keep their defaults.

        Raises:
            ConfigError: If a numeric or boolean variable cannot be parsed
                or the resulting values are invalid
        """
        defaults = cls()
        try:
            return cls(
                team_id=get_config("MAPS_TEAM_ID", ""),
                key_id=get_config("MAPS_KEY_ID", ""),
                private_key=get_config("MAPS_PRIVATE_KEY"),
                private_key_path=get_config("MAPS_PRIVATE_KEY_PATH"),
                base_url=get_config("MAPS_API_BASE_URL", defaults.base_url),
                origin=get_config("MAPS_ORIGIN"),
                token_lifetime_seconds=get_int("MAPS_TOKEN_LIFETIME_SECONDS", defaults.token_lifetime_seconds),
                max_token_lifetime_seconds=get_int("MAPS_MAX_TOKEN_LIFETIME_SECONDS", defaults.max_token_lifetime_seconds),
                token_refresh_margin_seconds=get_float(
                    "MAPS_TOKEN_REFRESH_MARGIN_SECONDS", defaults.token_refresh_margin_seconds
                ),
                token_refresh_ratio=get_float("MAPS_TOKEN_REFRESH_RATIO", defaults.token_refresh_ratio),
                exchange_tokens=get_bool("MAPS_EXCHANGE_TOKENS", defaults.exchange_tokens),
                max_attempts=get_int("MAPS_MAX_ATTEMPTS", defaults.max_attempts),
                backoff_base_seconds=get_float("MAPS_BACKOFF_BASE_SECONDS", defaults.backoff_base_seconds),
                backoff_max_seconds=get_float("MAPS_BACKOFF_MAX_SECONDS", defaults.backoff_max_seconds),
                backoff_multiplier=get_float("MAPS_BACKOFF_MULTIPLIER", defaults.backoff_multiplier),
                backoff_jitter=get_float("MAPS_BACKOFF_JITTER", defaults.backoff_jitter),
                request_timeout_seconds=get_float(
                    "MAPS_REQUEST_TIMEOUT_SECONDS", defaults.request_timeout_seconds
                ),
            )
        except ValueError as e:
            raise ConfigError(f"Invalid pipeline configuration: {e}")
