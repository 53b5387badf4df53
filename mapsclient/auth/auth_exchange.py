"""
Exchange of signed authorization tokens for access tokens.

The Maps Server API only accepts a signed token at its token endpoint,
which answers with a short-lived access token used for every other call.
"""

import time
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from ..config.logger_module import log_error, log_info
from ..pipeline.pipeline_decoder import ErrorMapper, ResponseDecoder
from ..pipeline.pipeline_errors import (
    AuthenticationError,
    ClientError,
    NetworkError,
    RateLimitExceededError,
    ServerError,
    TransportError,
)
from ..pipeline.pipeline_transport import HttpTransport, RequestDescriptor
from .auth_token_manager import Token


TOKEN_PATH = "/v1/token"


class TokenResponse(BaseModel):
    """Body of a successful token exchange."""

    model_config = ConfigDict(populate_by_name=True)

    access_token: str = Field(alias="accessToken", min_length=1)
    expires_in_seconds: int = Field(alias="expiresInSeconds", gt=0)


class AccessTokenExchanger:
    """Trades a signed token for an access token via the transport."""

    def __init__(self, transport: HttpTransport, clock: Callable[[], float] = time.time):
        self.transport = transport
        self._clock = clock
        self._decoder = ResponseDecoder()
        self._error_mapper = ErrorMapper()

    def exchange(self, auth_token: Token) -> Token:
        """
        Exchange `auth_token` for an access token.

        Raises:
            AuthenticationError: The service rejected the signed token
            RateLimitExceededError, ServerError, ClientError: Other non-200 answers
            NetworkError: No response was received
            DecodingError: The response body was not a token response
        """
        descriptor = RequestDescriptor.get(TOKEN_PATH, operation="token")
        requested_at = self._clock()

        try:
            raw = self.transport.execute(descriptor, auth_token.value)
        except TransportError as e:
            log_error(f"Token exchange failed: {e}")
            raise NetworkError(str(e), reason=e.reason, operation="token", attempts=1)

        if raw.status_code != 200:
            api_error = self._error_mapper.map_error(raw)
            context = dict(operation="token", status_code=raw.status_code,
                           api_error=api_error, body=raw.text, attempts=1)
            log_error(f"Token exchange rejected with HTTP {raw.status_code}: {api_error.message}")
            if raw.status_code in (401, 403):
                raise AuthenticationError("Signed token was rejected by the token endpoint", **context)
            if raw.status_code == 429:
                raise RateLimitExceededError(
                    "Token endpoint is rate limiting",
                    retry_after=self._error_mapper.retry_after(raw, requested_at),
                    **context,
                )
            if 500 <= raw.status_code < 600:
                raise ServerError("Token endpoint failed", **context)
            raise ClientError("Token exchange request was rejected", **context)

        response = self._decoder.decode(raw, TokenResponse, operation="token")
        log_info(f"Exchanged signed token for access token valid {response.expires_in_seconds}s")
        return Token(
            value=response.access_token,
            issued_at=requested_at,
            expires_at=requested_at + response.expires_in_seconds,
        )
