"""
HTTP transport for the request pipeline.

Sends one request with a bearer token over a requests.Session and hands
back the raw response. Status codes are not interpreted here and nothing
is retried; that is the executor's job.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

import requests

from ..config.logger_module import log_debug
from .pipeline_errors import TransportError


DEFAULT_BASE_URL = "https://maps-api.apple.com"
DEFAULT_USER_AGENT = "mapsclient/1.0"

ParamsInput = Union[Mapping[str, Any], Iterable[Tuple[str, Any]], None]


def _format_param(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (list, tuple)):
        return ",".join(_format_param(item) for item in value)
    return str(value)


@dataclass(frozen=True)
class RequestDescriptor:
    """
    One logical API call.

    Query parameters are normalized into an immutable tuple of
    (name, value) string pairs; parameters whose value is None are dropped
    and list values are joined with commas.
    """

    path: str
    params: Tuple[Tuple[str, str], ...] = ()
    method: str = "GET"
    body: Optional[Any] = None
    operation: Optional[str] = None

    def __post_init__(self):
        if not self.path.startswith("/"):
            raise ValueError(f"Request path must start with '/': {self.path!r}")

        raw = self.params
        items = raw.items() if isinstance(raw, Mapping) else (raw or ())
        normalized = tuple(
            (str(name), _format_param(value))
            for name, value in items
            if value is not None
        )
        object.__setattr__(self, "params", normalized)
        object.__setattr__(self, "method", self.method.upper())
        if self.operation is None:
            object.__setattr__(self, "operation", self.path.strip("/").split("/")[-1] or "root")

    @classmethod
    def get(cls, path: str, params: ParamsInput = None, operation: Optional[str] = None) -> "RequestDescriptor":
        return cls(path=path, params=params or (), operation=operation)


@dataclass(frozen=True)
class RawResponse:
    """Status, headers and body of one HTTP response."""

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300


class HttpTransport:
    """
    Executes single HTTP requests against the Maps Server API.

    Attaches the bearer token (and an Origin header when configured) and
    applies a per-request timeout. Failures that prevent a response from
    being received are raised as TransportError.
    """

    def __init__(self,
                 base_url: str = DEFAULT_BASE_URL,
                 timeout: float = 10.0,
                 session: Optional[requests.Session] = None,
                 origin: Optional[str] = None,
                 user_agent: str = DEFAULT_USER_AGENT):
        """
        Args:
            base_url: Scheme and host of the API server
            timeout: Per-request timeout in seconds
            session: Session to reuse (a new one is created if omitted)
            origin: Optional Origin header value
            user_agent: User-Agent header value
        """
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.origin = origin
        self._session = session or requests.Session()
        self._session.headers.update({
            "User-Agent": user_agent,
            "Accept": "application/json",
        })

    def build_url(self, descriptor: RequestDescriptor) -> str:
        return f"{self.base_url}{descriptor.path}"

    def execute(self, descriptor: RequestDescriptor, token: str) -> RawResponse:
        """
        Send one request.

        Args:
            descriptor: What to call
            token: Bearer token to attach

        Returns:
            The raw response, whatever its status code

        Raises:
            TransportError: If no response was received
        """
        headers: Dict[str, str] = {"Authorization": f"Bearer {token}"}
        if self.origin:
            headers["Origin"] = self.origin

        url = self.build_url(descriptor)
        log_debug(f"{descriptor.method} {url} ({descriptor.operation})")

        try:
            response = self._session.request(
                descriptor.method,
                url,
                params=list(descriptor.params),
                json=descriptor.body,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise TransportError(f"Timed out calling {descriptor.operation}: {e}", reason="timeout")
        except requests.exceptions.SSLError as e:
            raise TransportError(f"TLS failure calling {descriptor.operation}: {e}", reason="tls")
        except requests.exceptions.ConnectionError as e:
            raise TransportError(f"Could not connect for {descriptor.operation}: {e}", reason="connect")
        except requests.exceptions.RequestException as e:
            raise TransportError(f"Request failed for {descriptor.operation}: {e}", reason="request")

        log_debug(f"{descriptor.operation} -> HTTP {response.status_code}")
        return RawResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            body=response.content or b"",
        )

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "HttpTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
