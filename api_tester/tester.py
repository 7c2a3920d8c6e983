"""Three-stage check of a single endpoint.

1. Authenticate: acquire a bearer token with the endpoint's credentials.
2. Invoke: call the endpoint once with that token.
3. Classify: a 2xx status code passes, anything else fails.

The first failing stage ends the test. Nothing is retried.
"""

import logging
import time
from typing import Optional

from api_tester.auth import TokenAcquirer
from api_tester.client import ApiInvoker
from api_tester.config import RunSettings
from api_tester.deadline import CancelToken, Deadline
from api_tester.models import EndpointDefinition, TestOutcome
from api_tester.reporters.base import Reporter

log = logging.getLogger(__name__)


class EndpointTester:
    """Runs the authentication, connectivity and response checks.

    The acquirer and invoker are shared across all endpoints of a run; the
    tester keeps no state between calls to ``test``.

    Args:
        token_acquirer: Source of bearer tokens.
        api_invoker: Performs the HTTP request.
        settings: Per-stage timeouts and verbosity.
        reporter: Receives stage progress when ``settings.verbose`` is set.
        cancel_token: Run-level cancellation, checked by every deadline.
    """

    __test__ = False

    def __init__(
        self,
        token_acquirer: TokenAcquirer,
        api_invoker: ApiInvoker,
        settings: RunSettings = RunSettings(),
        reporter: Optional[Reporter] = None,
        cancel_token: Optional[CancelToken] = None,
    ):
        self.token_acquirer = token_acquirer
        self.api_invoker = api_invoker
        self.settings = settings
        self.reporter = reporter
        self.cancel_token = cancel_token

    def _progress(self, endpoint: EndpointDefinition, message: str) -> None:
        if self.settings.verbose and self.reporter:
            self.reporter.on_stage(endpoint, message)

    def test(self, endpoint: EndpointDefinition) -> TestOutcome:
        """Test one endpoint and return its outcome.

        Raises:
            RunCancelled: If the run is cancelled while the test is in
                flight. No outcome is produced in that case.
        """
        start_time = time.monotonic()

        def outcome(**fields) -> TestOutcome:
            return TestOutcome(
                endpoint_name=endpoint.name,
                duration_seconds=time.monotonic() - start_time,
                **fields,
            )

        # Stage 1: authenticate
        self._progress(endpoint, "Authenticating...")
        try:
            token = self.token_acquirer.acquire_token(
                endpoint.client_id,
                endpoint.client_secret,
                endpoint.tenant_id,
                endpoint.scope,
                Deadline(self.settings.auth_timeout, self.cancel_token),
            )
            if not token:
                raise ValueError("received empty token")
        except Exception as e:
            log.info("Authentication failed for %s: %s", endpoint.name, e)
            return outcome(error_message=f"Authentication failed: {e}")

        self._progress(endpoint, "Authentication successful")

        # Stage 2: invoke
        self._progress(endpoint, "Making API request...")
        try:
            response = self.api_invoker.call(
                endpoint.method,
                endpoint.url,
                token,
                endpoint.request_body if endpoint.carries_body else None,
                Deadline(self.settings.request_timeout, self.cancel_token),
            )
        except Exception as e:
            log.info("Request failed for %s: %s", endpoint.name, e)
            return outcome(auth_succeeded=True, error_message=f"Request failed: {e}")

        self._progress(endpoint, f"Request completed (Status: {response.status_code})")

        # Stage 3: classify
        if response.is_success:
            return outcome(
                auth_succeeded=True,
                connect_succeeded=True,
                response_succeeded=True,
                status_code=response.status_code,
            )

        if response.body:
            self._progress(endpoint, f"Response body: {response.text}")

        return outcome(
            auth_succeeded=True,
            connect_succeeded=True,
            status_code=response.status_code,
            error_message=f"Unexpected status code: {response.status_code}",
        )
