"""
Retry and re-authentication loop for one logical API call.

Each attempt fetches a token, honours any rate-limit wait, calls the
transport and classifies the outcome into success or one of the pipeline
errors. tenacity drives the loop: network failures, 5xx and 429 answers
are retried with backoff, a first 401/403 is retried once with a fresh
token, everything else ends the call.
"""

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional, Type

from pydantic import BaseModel
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from ..config.logger_module import log_error, log_info, log_warning
from .pipeline_backoff import BackoffPolicy, RateLimitState
from .pipeline_decoder import ErrorMapper, ResponseDecoder
from .pipeline_errors import (
    AuthenticationError,
    ClientError,
    FailureKind,
    MapsClientError,
    NetworkError,
    RateLimitExceededError,
    ServerError,
    TransportError,
)
from .pipeline_transport import HttpTransport, RawResponse, RequestDescriptor

if TYPE_CHECKING:
    from ..auth.auth_token_manager import TokenManager


DEFAULT_MAX_ATTEMPTS = 4


@dataclass
class RetryState:
    """Counters for a single execute() call."""

    attempt: int = 0
    total_wait: float = 0.0
    auth_failures: int = 0
    last_failure: Optional[FailureKind] = None


class RequestExecutor:
    """
    Runs RequestDescriptors through token, rate-limit, transport and decoding.

    The executor is safe to share between threads: every execute() call keeps
    its own RetryState, and the token manager and rate-limit state handle
    their own concurrency.
    """

    def __init__(self,
                 token_manager: "TokenManager",
                 transport: HttpTransport,
                 backoff_policy: Optional[BackoffPolicy] = None,
                 rate_limit_state: Optional[RateLimitState] = None,
                 decoder: Optional[ResponseDecoder] = None,
                 error_mapper: Optional[ErrorMapper] = None,
                 max_attempts: int = DEFAULT_MAX_ATTEMPTS,
                 sleep: Callable[[float], None] = time.sleep,
                 clock: Callable[[], float] = time.time):
        """
        Args:
            token_manager: Source of bearer tokens
            transport: Sends single requests
            backoff_policy: Computes waits (defaults to BackoffPolicy())
            rate_limit_state: Shared quota state (a private one if omitted)
            decoder: Decodes success bodies
            error_mapper: Maps error bodies to ApiError
            max_attempts: Transport calls allowed per execute(), first one included
            sleep: Blocking sleep used for every wait
            clock: Returns the current epoch time
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        self.token_manager = token_manager
        self.transport = transport
        self.backoff_policy = backoff_policy or BackoffPolicy()
        self.rate_limit_state = rate_limit_state if rate_limit_state is not None else RateLimitState()
        self.decoder = decoder or ResponseDecoder()
        self.error_mapper = error_mapper or ErrorMapper()
        self.max_attempts = max_attempts
        self._sleep = sleep
        self._clock = clock

    def execute(self, descriptor: RequestDescriptor, response_shape: Optional[Type[BaseModel]] = None) -> Any:
        """
        Perform one logical API call.

        Args:
            descriptor: What to call
            response_shape: pydantic model for the success body, or None for plain JSON

        Returns:
            The decoded success body

        Raises:
            SigningError: No token could be signed
            AuthenticationError: Credentials were rejected twice
            RateLimitExceededError: Still rate limited when attempts ran out
            NetworkError: Still failing to connect when attempts ran out
            ServerError: Still getting 5xx when attempts ran out
            ClientError: The request was rejected as malformed
            DecodingError: The success body did not match `response_shape`
        """
        state = RetryState()
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=lambda call_state: self._next_wait(call_state, state),
            retry=retry_if_exception(lambda error: self._is_retryable(error, state)),
            sleep=lambda seconds: self._pause(seconds, state),
            before_sleep=lambda call_state: self._log_retry(call_state, descriptor),
            reraise=True,
        )
        try:
            return retrying(self._attempt, descriptor, response_shape, state)
        except MapsClientError as e:
            log_error(f"{descriptor.operation} failed after {state.attempt} attempt(s): {e}")
            raise

    def _attempt(self, descriptor: RequestDescriptor, response_shape: Optional[Type[BaseModel]], state: RetryState) -> Any:
        state.attempt += 1
        try:
            token = self.token_manager.get_token()
        except MapsClientError as e:
            # A rejected token exchange counts against the call's single re-auth
            if isinstance(e, AuthenticationError):
                state.auth_failures += 1
            e.attempts = state.attempt
            raise

        wait = self.backoff_policy.should_wait(self.rate_limit_state.snapshot, self._clock())
        if wait > 0:
            log_warning(f"Quota exhausted, waiting {wait:.2f}s before {descriptor.operation}")
            state.total_wait += wait
            self._sleep(wait)

        try:
            raw = self.transport.execute(descriptor, token.value)
        except TransportError as e:
            raise NetworkError(
                str(e), reason=e.reason, operation=descriptor.operation, attempts=state.attempt,
            )

        now = self._clock()
        has_quota_headers = self.rate_limit_state.update_from_headers(raw.headers, now)

        if raw.is_success:
            if not has_quota_headers:
                self.rate_limit_state.mark_available()
            if state.attempt > 1:
                log_info(f"{descriptor.operation} succeeded on attempt {state.attempt}")
            return self.decoder.decode(raw, response_shape, operation=descriptor.operation)

        raise self._classify(raw, descriptor, state, token, now, has_quota_headers)

    def _classify(self,
                  raw: RawResponse,
                  descriptor: RequestDescriptor,
                  state: RetryState,
                  token,
                  now: float,
                  has_quota_headers: bool) -> MapsClientError:
        api_error = self.error_mapper.map_error(raw)
        context = dict(
            operation=descriptor.operation,
            status_code=raw.status_code,
            api_error=api_error,
            body=raw.text,
            attempts=state.attempt,
        )
        status = raw.status_code

        if status in (401, 403):
            state.auth_failures += 1
            if state.auth_failures == 1:
                log_warning(f"{descriptor.operation} got HTTP {status}, refreshing token")
                self.token_manager.invalidate(token)
            return AuthenticationError(f"Credentials rejected for {descriptor.operation}", **context)

        if status == 429:
            retry_after = self.error_mapper.retry_after(raw, now)
            if not has_quota_headers and retry_after is not None:
                # Let concurrent calls hold off until the server's retry time too
                self.rate_limit_state.mark_exhausted(now + retry_after, now)
            return RateLimitExceededError(
                f"Rate limited on {descriptor.operation}", retry_after=retry_after, **context,
            )

        if 500 <= status < 600:
            return ServerError(f"Server error on {descriptor.operation}", **context)

        return ClientError(f"Request rejected for {descriptor.operation}", **context)

    def _is_retryable(self, error: BaseException, state: RetryState) -> bool:
        if isinstance(error, AuthenticationError):
            return state.auth_failures == 1
        return isinstance(error, (NetworkError, ServerError, RateLimitExceededError))

    def _next_wait(self, call_state: RetryCallState, state: RetryState) -> float:
        error = call_state.outcome.exception()
        state.last_failure = error.kind
        return self.backoff_policy.next_backoff(
            call_state.attempt_number,
            error.kind,
            retry_after=getattr(error, "retry_after", None),
        )

    def _pause(self, seconds: float, state: RetryState) -> None:
        state.total_wait += seconds
        self._sleep(seconds)

    def _log_retry(self, call_state: RetryCallState, descriptor: RequestDescriptor) -> None:
        error = call_state.outcome.exception()
        delay = call_state.next_action.sleep if call_state.next_action else 0.0
        log_warning(
            f"{descriptor.operation} attempt {call_state.attempt_number}/{self.max_attempts} "
            f"failed ({error.kind.value}): {error.message}; retrying in {delay:.2f}s"
        )
