"""
Authenticated request pipeline for the Maps Server API.

This module provides:
- Classification of failed calls into a closed set of errors
- Rate-limit tracking and exponential backoff with jitter
- A requests-based HTTP transport with bearer authentication
- Decoding of success bodies and mapping of error bodies
- The RequestExecutor retry/re-authentication loop

Main classes:
- RequestExecutor: Runs one logical API call to completion
- HttpTransport: Sends single HTTP requests
- BackoffPolicy: Computes waits between attempts
- RateLimitState: Shared view of the service's quota headers
- ResponseDecoder / ErrorMapper: Body decoding
- PipelineConfig: Settings for the whole pipeline

Errors:
- SigningError, AuthenticationError, RateLimitExceededError, NetworkError,
  ServerError, ClientError, DecodingError (all MapsClientError)
"""

from .pipeline_backoff import BackoffPolicy, RateLimitSnapshot, RateLimitState
from .pipeline_config import PipelineConfig
from .pipeline_decoder import ApiError, ErrorMapper, ResponseDecoder
from .pipeline_errors import (
    AuthenticationError,
    ClientError,
    DecodingError,
    FailureKind,
    MapsClientError,
    NetworkError,
    RateLimitExceededError,
    ServerError,
    SigningError,
    TransportError,
)
from .pipeline_executor import RequestExecutor, RetryState
from .pipeline_transport import HttpTransport, RawResponse, RequestDescriptor

__all__ = [
    # Main classes
    "RequestExecutor",
    "RetryState",
    "HttpTransport",
    "RequestDescriptor",
    "RawResponse",
    "BackoffPolicy",
    "RateLimitState",
    "RateLimitSnapshot",
    "ResponseDecoder",
    "ErrorMapper",
    "ApiError",
    "PipelineConfig",

    # Errors
    "FailureKind",
    "MapsClientError",
    "SigningError",
    "AuthenticationError",
    "RateLimitExceededError",
    "NetworkError",
    "ServerError",
    "ClientError",
    "DecodingError",
    "TransportError",
]
