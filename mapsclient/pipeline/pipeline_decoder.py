"""
Response decoding and error-body mapping.

Success bodies are validated against pydantic models; error bodies are
turned into ApiError values, using the service's error envelope when the
body follows it.
"""

import json
from dataclasses import dataclass
from typing import Any, Optional, Tuple, Type

from pydantic import BaseModel, ValidationError

from .pipeline_backoff import parse_retry_after
from .pipeline_errors import DecodingError
from .pipeline_transport import RawResponse


STATUS_KINDS = {
    400: "BAD_REQUEST",
    401: "UNAUTHORIZED",
    403: "FORBIDDEN",
    404: "NOT_FOUND",
    429: "RATE_LIMITED",
}

UNKNOWN_KIND = "UNKNOWN"


def status_kind(status_code: int) -> str:
    """Default machine-readable kind for an HTTP status."""
    if status_code in STATUS_KINDS:
        return STATUS_KINDS[status_code]
    if 500 <= status_code < 600:
        return "SERVER_ERROR"
    return "HTTP_ERROR"


@dataclass(frozen=True)
class ApiError:
    """Structured form of a failed response."""

    status_code: int
    kind: str
    message: str
    details: Tuple[str, ...] = ()
    body: str = ""


class ResponseDecoder:
    """Decodes success bodies into the caller's expected type."""

    def decode(self, raw: RawResponse, shape: Optional[Type[BaseModel]] = None, operation: Optional[str] = None) -> Any:
        """
        Decode a success body.

        Args:
            raw: The 2xx response
            shape: pydantic model to validate against, or None for plain JSON
            operation: Operation name for error messages

        Returns:
            A `shape` instance, the parsed JSON value, or None for an empty body

        Raises:
            DecodingError: If the body is not JSON or does not match `shape`
        """
        text = raw.text
        if shape is None:
            if not text.strip():
                return None
            try:
                return json.loads(text)
            except ValueError as e:
                raise DecodingError(
                    f"Response for {operation or 'request'} is not valid JSON: {e}",
                    operation=operation, status_code=raw.status_code, body=text,
                )

        try:
            return shape.model_validate_json(raw.body or b"{}")
        except ValidationError as e:
            raise DecodingError(
                f"Response for {operation or 'request'} does not match {shape.__name__}: "
                f"{e.error_count()} validation error(s)",
                operation=operation, status_code=raw.status_code, body=text,
            )


class ErrorMapper:
    """Maps error responses onto ApiError."""

    def map_error(self, raw: RawResponse) -> ApiError:
        text = raw.text
        payload = self._parse(text)

        envelope = None
        if isinstance(payload, dict):
            nested = payload.get("error")
            if isinstance(nested, dict) and isinstance(nested.get("message"), str):
                envelope = nested
            elif isinstance(payload.get("message"), str):
                envelope = payload

        if envelope is None:
            return ApiError(
                status_code=raw.status_code,
                kind=UNKNOWN_KIND,
                message=f"HTTP {raw.status_code}",
                body=text,
            )

        details = envelope.get("details") or ()
        if not isinstance(details, (list, tuple)):
            details = (details,)
        code = envelope.get("code") or envelope.get("errorCode")

        return ApiError(
            status_code=raw.status_code,
            kind=str(code) if code else status_kind(raw.status_code),
            message=envelope["message"],
            details=tuple(str(detail) for detail in details),
            body=text,
        )

    def retry_after(self, raw: RawResponse, now: float) -> Optional[float]:
        """Server-requested delay from the Retry-After header or a retryAfter body field."""
        for name, value in raw.headers.items():
            if str(name).lower() == "retry-after":
                parsed = parse_retry_after(value, now)
                if parsed is not None:
                    return parsed

        payload = self._parse(raw.text)
        if isinstance(payload, dict):
            value = payload.get("retryAfter")
            if isinstance(payload.get("error"), dict) and value is None:
                value = payload["error"].get("retryAfter")
            if isinstance(value, (int, float)) and not isinstance(value, bool) and value >= 0:
                return float(value)
        return None

    @staticmethod
    def _parse(text: str) -> Any:
        if not text.strip():
            return None
        try:
            return json.loads(text)
        except ValueError:
            return None
