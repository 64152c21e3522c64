"""Generic authenticated REST client for the CircleCI API."""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Generic, TypeVar

import requests
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel, TypeAdapter, ValidationError

from . import user_agent
from .errors import DecodingError, DomainError, EncodingError, RequestTimeoutError, TransportError

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

T = TypeVar("T")

TOKEN_HEADER = "Circle-Token"


@dataclass(frozen=True)
class RestResult(Generic[T]):
    """Outcome of a successful round trip: the HTTP status and the decoded body."""

    status_code: int
    value: T | None = None


@lru_cache(maxsize=64)
def _adapter(model: Any) -> TypeAdapter:
    return TypeAdapter(model)


def _encode_body(body: Any) -> bytes:
    """
    Serialize a request body to compact JSON terminated by a newline.

    Raises:
        EncodingError: If the body cannot be represented as JSON.
    """
    try:
        if isinstance(body, BaseModel):
            payload = body.model_dump(mode="json", exclude_none=True)
        else:
            payload = body
        return (json.dumps(payload, separators=(",", ":")) + "\n").encode("utf-8")
    except (TypeError, ValueError) as e:
        raise EncodingError(
            f"Could not encode request body of type {type(body).__name__}: {e}",
            context={"body_type": type(body).__name__},
            original_exception=e,
        ) from e


def _server_message(status_code: int, reason: str, body: str) -> str:
    """Extract the server-provided message from an error body, falling back to the status line."""
    try:
        data = json.loads(body)
    except ValueError:
        data = None

    if isinstance(data, dict) and isinstance(data.get("message"), str) and data["message"]:
        return data["message"]
    return f"{status_code} {reason or 'Error'}".strip()


class RestClient:
    """
    A client for the CircleCI REST API.

    Builds authenticated requests relative to ``base_url`` and ``api_path`` and
    decodes JSON responses into pydantic models. Configuration is fixed at
    construction, so one instance can be shared between threads.

    Args:
        base_url (str): Scheme and host, e.g. ``https://circleci.com``.
        api_path (str): Versioned prefix, e.g. ``api/v2``.
        token (str): Personal API token sent in the ``Circle-Token`` header.
        session (requests.Session, optional): Session used for connection pooling.
        timeout (float, optional): Default per-request deadline in seconds.
    """

    def __init__(
        self,
        base_url: str,
        api_path: str,
        token: str,
        session: requests.Session | None = None,
        timeout: float | None = 30.0,
    ):
        self.base_url = base_url
        self.api_path = api_path
        self.token = token
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config) -> "RestClient":
        """Build a client from a ``CciConfig``."""
        return cls(
            config.host,
            config.rest_endpoint,
            config.token,
            timeout=config.request_timeout_seconds,
        )

    def close(self):
        """Close the underlying session and release pooled connections."""
        logger.debug("Closing REST client session")
        self.session.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit with cleanup."""
        self.close()

    def url_for(self, path: str) -> str:
        """Join the base URL, API prefix and an already-escaped relative path."""
        parts = [self.base_url.rstrip("/"), self.api_path.strip("/"), path.lstrip("/")]
        return "/".join(part for part in parts if part)

    def _headers(self) -> dict[str, str]:
        return {
            "Accept-Type": "application/json",
            "Accept-Encoding": "gzip",
            "User-Agent": user_agent(),
            TOKEN_HEADER: self.token,
        }

    def new_request(self, method: str, path: str, body: Any = None) -> requests.PreparedRequest:
        """
        Build a fully-formed request.

        Args:
            method (str): The HTTP method (e.g., 'GET', 'POST').
            path (str): Path relative to the API prefix. Must already be escaped.
            body: Optional pydantic model or JSON-compatible value.

        Returns:
            requests.PreparedRequest: The request, ready for ``do_request``.

        Raises:
            EncodingError: If the body cannot be serialized.
        """
        headers = self._headers()
        data = None
        if body is not None:
            data = _encode_body(body)
            headers["Content-Type"] = "application/json"

        request = requests.Request(method.upper(), self.url_for(path), headers=headers, data=data)
        prepared = request.prepare()
        # Bodies may carry secret values, log the size only.
        logger.debug(f"Prepared {prepared.method} {prepared.url} ({len(data or b'')} body bytes)")
        return prepared

    def do_request(
        self,
        request: requests.PreparedRequest,
        model: Any = None,
        timeout: float | None = None,
    ) -> RestResult:
        """
        Execute a request and decode its JSON response.

        Args:
            request (requests.PreparedRequest): A request from ``new_request``.
            model: Optional type to decode a 2xx body into (pydantic model,
                ``list[Model]`` or anything ``TypeAdapter`` accepts).
            timeout (float, optional): Deadline for this call, overriding the client default.

        Returns:
            RestResult: The status code and decoded value (None without a model).

        Raises:
            RequestTimeoutError: If the deadline is exceeded.
            TransportError: For DNS, connection and other network failures.
            DomainError: For any non-2xx response.
            DecodingError: If a 2xx body does not match ``model``.
        """
        timeout = self.timeout if timeout is None else timeout

        with tracer.start_as_current_span("cci_rest_request") as span:
            span.set_attribute("http.method", request.method)
            span.set_attribute("http.url", request.url)

            logger.info(f"{request.method} {request.url}")
            try:
                # Proxies and CA bundles from the environment, as Session.request would apply.
                settings = self.session.merge_environment_settings(
                    request.url, {}, None, None, None
                )
                with self.session.send(request, timeout=timeout, **settings) as response:
                    status_code = response.status_code
                    reason = response.reason
                    raw_body = response.content
            except requests.exceptions.Timeout as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "timeout"))
                raise RequestTimeoutError(
                    f"Request timeout for {request.method} {request.url}",
                    timeout_seconds=timeout,
                    context={"method": request.method, "url": request.url},
                    original_exception=e,
                ) from e
            except requests.exceptions.RequestException as e:
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "transport"))
                raise TransportError(
                    f"Network error for {request.method} {request.url}: {e}",
                    context={
                        "method": request.method,
                        "url": request.url,
                        "error_type": type(e).__name__,
                    },
                    original_exception=e,
                ) from e

            span.set_attribute("http.status_code", status_code)
            body_text = raw_body.decode("utf-8", errors="replace")

            if not 200 <= status_code < 300:
                message = _server_message(status_code, reason, body_text)
                logger.error(
                    f"HTTP Error: {status_code} for {request.method} {request.url} - "
                    f"Response Body: {body_text[:500]}"
                )
                span.set_status(Status(StatusCode.ERROR, message))
                raise DomainError(
                    message,
                    status_code=status_code,
                    body=body_text,
                    context={"method": request.method, "url": request.url},
                )

            if model is None:
                return RestResult(status_code=status_code)

            try:
                value = _adapter(model).validate_json(raw_body)
            except ValidationError as e:
                logger.error(f"Failed to decode response from {request.url}: {e}")
                span.record_exception(e)
                span.set_status(Status(StatusCode.ERROR, "decoding"))
                raise DecodingError(
                    f"Could not decode response from {request.method} {request.url}: {e}",
                    body=body_text,
                    context={"method": request.method, "url": request.url, "status_code": status_code},
                    original_exception=e,
                ) from e

            return RestResult(status_code=status_code, value=value)
