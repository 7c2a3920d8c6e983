"""Data models for the API tester."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Sequence


class HttpMethod(Enum):
    """HTTP methods an endpoint may be tested with."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def allows_body(self) -> bool:
        """Whether a configured request body is sent with this method."""
        return self in (HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH)


class Stage(Enum):
    """The three checks performed against every endpoint, in order."""

    AUTHENTICATION = "authentication"
    CONNECTIVITY = "connectivity"
    RESPONSE = "response"


@dataclass(frozen=True)
class EndpointDefinition:
    """Validated description of one API endpoint to test."""

    name: str
    url: str
    method: HttpMethod
    client_id: str
    client_secret: str = field(repr=False)
    tenant_id: str
    scope: str
    request_body: Optional[dict[str, Any]] = None

    @property
    def carries_body(self) -> bool:
        """True when the request body is attached to the outgoing call.

        GET and DELETE never carry a body, even when one is configured.
        """
        return self.request_body is not None and self.method.allows_body


@dataclass(frozen=True)
class TestOutcome:
    """Result of testing a single endpoint.

    The stage flags form a strict prefix: a later stage can only have
    succeeded if every earlier one did.
    """

    __test__ = False

    endpoint_name: str
    auth_succeeded: bool = False
    connect_succeeded: bool = False
    response_succeeded: bool = False
    status_code: int = 0
    error_message: str = ""
    duration_seconds: float = 0.0

    def __post_init__(self) -> None:
        if self.connect_succeeded and not self.auth_succeeded:
            raise ValueError("connect_succeeded requires auth_succeeded")
        if self.response_succeeded and not self.connect_succeeded:
            raise ValueError("response_succeeded requires connect_succeeded")

    @property
    def overall_succeeded(self) -> bool:
        return self.auth_succeeded and self.connect_succeeded and self.response_succeeded

    @property
    def failed_stage(self) -> Optional[Stage]:
        """The earliest stage that failed, or None if all passed."""
        if not self.auth_succeeded:
            return Stage.AUTHENTICATION
        if not self.connect_succeeded:
            return Stage.CONNECTIVITY
        if not self.response_succeeded:
            return Stage.RESPONSE
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.endpoint_name,
            "success": self.overall_succeeded,
            "auth_success": self.auth_succeeded,
            "connect_success": self.connect_succeeded,
            "response_success": self.response_succeeded,
            "status_code": self.status_code,
            "error_message": self.error_message,
            "duration_seconds": self.duration_seconds,
        }


@dataclass(frozen=True)
class RunSummary:
    """Aggregate pass/fail counts for a run.

    Every failed endpoint is counted in exactly one failure bucket: the
    earliest stage that failed.
    """

    total: int = 0
    passed: int = 0
    failed: int = 0
    auth_failures: int = 0
    connect_failures: int = 0
    response_failures: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Sequence[TestOutcome]) -> "RunSummary":
        """Build a summary with a single pass over the outcomes."""
        passed = auth_failures = connect_failures = response_failures = 0

        for outcome in outcomes:
            stage = outcome.failed_stage
            if stage is None:
                passed += 1
            elif stage is Stage.AUTHENTICATION:
                auth_failures += 1
            elif stage is Stage.CONNECTIVITY:
                connect_failures += 1
            else:
                response_failures += 1

        total = len(outcomes)
        return cls(
            total=total,
            passed=passed,
            failed=total - passed,
            auth_failures=auth_failures,
            connect_failures=connect_failures,
            response_failures=response_failures,
        )

    @property
    def pass_rate(self) -> float:
        """Percentage of endpoints that passed (0.0 for an empty run)."""
        if self.total == 0:
            return 0.0
        return self.passed / self.total * 100

    @property
    def fail_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return self.failed / self.total * 100

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "auth_failures": self.auth_failures,
            "connect_failures": self.connect_failures,
            "response_failures": self.response_failures,
        }
