"""HTTP client for calling protected APIs with a bearer token.

Supports the standard methods (GET, POST, PUT, PATCH, DELETE). A JSON
request body is sent only for POST, PUT and PATCH; it is silently dropped
for GET and DELETE.

Redirects are followed. httpx strips the ``Authorization`` header when a
redirect leaves the original host.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional, Protocol

import httpx

from api_tester.deadline import Deadline, DeadlineExceeded
from api_tester.models import HttpMethod

log = logging.getLogger(__name__)


class ApiRequestError(Exception):
    """Raised when the HTTP exchange did not complete."""


@dataclass(frozen=True)
class ApiResponse:
    """A completed HTTP exchange."""

    status_code: int
    headers: dict[str, list[str]] = field(default_factory=dict)
    body: bytes = b""

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Decode the body as JSON.

        Raises:
            ValueError: If the body is empty or not valid JSON.
        """
        if not self.body:
            raise ValueError("empty response body")
        return json.loads(self.body)


class ApiInvoker(Protocol):
    """Anything that can perform one authenticated HTTP request."""

    def call(
        self,
        method: HttpMethod,
        url: str,
        token: str,
        request_body: Optional[dict[str, Any]],
        deadline: Deadline,
    ) -> ApiResponse:
        """Send the request and return the drained response.

        Raises:
            ApiRequestError: On malformed URLs, transport errors, body
                serialization errors or when the deadline passes.
        """
        ...


def send_and_drain(
    http_client: httpx.Client,
    request: httpx.Request,
    deadline: Deadline,
    follow_redirects: bool = False,
) -> tuple[httpx.Response, bytes]:
    """Send ``request`` and read the whole response body.

    The deadline is checked after every chunk and the next read may only
    wait for the time left. The response is always closed.
    """
    response = http_client.send(request, stream=True, follow_redirects=follow_redirects)
    try:
        chunks = []
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            deadline.bound(response.request)
        deadline.check()
    finally:
        response.close()
    return response, b"".join(chunks)


def encode_body(request_body: dict[str, Any]) -> bytes:
    """Serialize a request body as JSON.

    Raises:
        ApiRequestError: If the body is not JSON serializable.
    """
    try:
        return json.dumps(request_body, allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise ApiRequestError(f"failed to marshal request body: {e}") from e


class HttpApiInvoker:
    """httpx based ``ApiInvoker``.

    Args:
        http_client: Optional httpx client to use. When omitted the
            invoker creates and owns one.
    """

    def __init__(self, http_client: Optional[httpx.Client] = None):
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client()

    def call(
        self,
        method: HttpMethod,
        url: str,
        token: str,
        request_body: Optional[dict[str, Any]],
        deadline: Deadline,
    ) -> ApiResponse:
        headers = {"Authorization": f"Bearer {token}"}
        content = None

        if request_body is not None and method.allows_body:
            content = encode_body(request_body)
            headers["Content-Type"] = "application/json"

        try:
            target = httpx.URL(url)
            if target.scheme not in ("http", "https") or not target.host:
                raise httpx.UnsupportedProtocol(
                    f"URL must be absolute http or https: {url!r}"
                )
            request = self._http_client.build_request(
                method.value,
                target,
                headers=headers,
                content=content,
                timeout=deadline.timeout(),
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol, ValueError) as e:
            raise ApiRequestError(f"failed to create request: {e}") from e
        except DeadlineExceeded as e:
            raise ApiRequestError(f"request timed out: {e}") from e

        log.debug("%s %s", method.value, url)

        try:
            response, body = deadline.run(
                send_and_drain,
                self._http_client,
                request,
                deadline,
                follow_redirects=True,
            )
        except httpx.TimeoutException as e:
            raise ApiRequestError(
                f"request timed out: deadline of {deadline.seconds:g}s exceeded"
            ) from e
        except DeadlineExceeded as e:
            raise ApiRequestError(f"request timed out: {e}") from e
        except httpx.HTTPError as e:
            raise ApiRequestError(f"failed to execute request: {e}") from e

        log.debug("%s %s -> %d", method.value, url, response.status_code)

        response_headers: dict[str, list[str]] = {}
        for name, value in response.headers.multi_items():
            response_headers.setdefault(name, []).append(value)

        return ApiResponse(
            status_code=response.status_code,
            headers=response_headers,
            body=body,
        )

    def close(self) -> None:
        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "HttpApiInvoker":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
