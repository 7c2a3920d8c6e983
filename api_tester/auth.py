"""Bearer token acquisition from Microsoft Entra ID.

Implements the OAuth 2.0 client credentials grant used for service to
service authentication. Each call performs one token request; tokens are
never cached.
"""

import json
import logging
from typing import Optional, Protocol

import httpx

from api_tester.client import send_and_drain
from api_tester.deadline import Deadline, DeadlineExceeded

log = logging.getLogger(__name__)

DEFAULT_AUTHORITY = "https://login.microsoftonline.com"


class TokenAcquisitionError(Exception):
    """Raised when a bearer token could not be obtained."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code


class TokenAcquirer(Protocol):
    """Anything that can exchange client credentials for a bearer token."""

    def acquire_token(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scope: str,
        deadline: Deadline,
    ) -> str:
        """Return a non-empty bearer token.

        Raises:
            TokenAcquisitionError: If any parameter is empty, the identity
                provider rejects the credentials, the network fails or the
                deadline passes.
        """
        ...


class EntraIdTokenAcquirer:
    """Client credentials token acquirer for Microsoft Entra ID.

    Args:
        authority: Identity provider base URL. The tenant ID is appended
            to form the token endpoint.
        http_client: Optional httpx client to use. When omitted the
            acquirer creates and owns one.
    """

    def __init__(
        self,
        authority: str = DEFAULT_AUTHORITY,
        http_client: Optional[httpx.Client] = None,
    ):
        self.authority = authority.rstrip("/")
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.Client()

    def token_url(self, tenant_id: str) -> str:
        return f"{self.authority}/{tenant_id}/oauth2/v2.0/token"

    def acquire_token(
        self,
        client_id: str,
        client_secret: str,
        tenant_id: str,
        scope: str,
        deadline: Deadline,
    ) -> str:
        """Request a token for ``scope`` using the client credentials grant."""
        missing = [
            name
            for name, value in (
                ("client_id", client_id),
                ("client_secret", client_secret),
                ("tenant_id", tenant_id),
                ("scope", scope),
            )
            if not value
        ]
        if missing:
            raise TokenAcquisitionError(
                f"failed to create credential: missing {', '.join(missing)}"
            )

        url = self.token_url(tenant_id)
        log.debug("Requesting token from %s for client %s", url, client_id)

        try:
            request = self._http_client.build_request(
                "POST",
                url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": client_id,
                    "client_secret": client_secret,
                    "scope": scope,
                },
                headers={"Accept": "application/json"},
                timeout=deadline.timeout(),
            )
            response, body = deadline.run(
                send_and_drain, self._http_client, request, deadline
            )
        except (httpx.TimeoutException, DeadlineExceeded) as e:
            raise TokenAcquisitionError(
                f"failed to acquire token: deadline of {deadline.seconds:g}s exceeded"
            ) from e
        except httpx.HTTPError as e:
            raise TokenAcquisitionError(f"failed to acquire token: {e}") from e

        token_data = self._parse_body(body)

        if response.is_error:
            description = (
                token_data.get("error_description")
                or token_data.get("error")
                or f"HTTP {response.status_code}"
            )
            raise TokenAcquisitionError(
                f"failed to acquire token: {description}",
                error_code=token_data.get("error"),
            )

        token = token_data.get("access_token")
        if not token or not isinstance(token, str):
            raise TokenAcquisitionError("received empty token")

        log.debug("Token acquired for client %s", client_id)
        return token

    @staticmethod
    def _parse_body(body: bytes) -> dict:
        try:
            data = json.loads(body)
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}

    def close(self) -> None:
        if self._owns_client:
            self._http_client.close()

    def __enter__(self) -> "EntraIdTokenAcquirer":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
