"""
Client library for the Maps Server API.

The core is the authenticated request pipeline: ES256 token signing and
caching, rate-limit aware retries with backoff, and classification of every
failure into one terminal error. Endpoint wrappers sit on top of it.
"""

from .auth import AccessTokenExchanger, SigningKey, Token, TokenManager, TokenSigner
from .maps import MapsClient
from .pipeline import (
    ApiError,
    AuthenticationError,
    BackoffPolicy,
    ClientError,
    DecodingError,
    HttpTransport,
    MapsClientError,
    NetworkError,
    PipelineConfig,
    RateLimitExceededError,
    RateLimitState,
    RequestDescriptor,
    RequestExecutor,
    ServerError,
    SigningError,
)

__all__ = [
    "MapsClient",
    "RequestExecutor",
    "RequestDescriptor",
    "HttpTransport",
    "BackoffPolicy",
    "RateLimitState",
    "PipelineConfig",
    "SigningKey",
    "TokenSigner",
    "Token",
    "TokenManager",
    "AccessTokenExchanger",
    "ApiError",
    "MapsClientError",
    "SigningError",
    "AuthenticationError",
    "RateLimitExceededError",
    "NetworkError",
    "ServerError",
    "ClientError",
    "DecodingError",
]

__version__ = "1.0.0"
