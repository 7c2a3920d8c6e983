"""Run orchestrator.

Tests every configured endpoint in declaration order, one at a time. A
failing endpoint never stops the run; every endpoint gets an outcome unless
the run itself is cancelled.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

from api_tester.deadline import CancelToken
from api_tester.models import EndpointDefinition, RunSummary, TestOutcome
from api_tester.reporters.base import Reporter
from api_tester.tester import EndpointTester

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunResult:
    """Outcomes of a completed run, in endpoint order."""

    outcomes: Sequence[TestOutcome]
    summary: RunSummary
    total_duration: float
    timestamp: str = field(default_factory=lambda: time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()))

    @property
    def has_failures(self) -> bool:
        return self.summary.failed > 0

    @property
    def exit_code(self) -> int:
        return 1 if self.has_failures else 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp,
            "total_duration_seconds": self.total_duration,
            "endpoints": [outcome.to_dict() for outcome in self.outcomes],
            "summary": self.summary.to_dict(),
        }


class EndpointRunner:
    """Drives the endpoint tester over all configured endpoints.

    Args:
        endpoints: Validated endpoint definitions, at least one.
        tester: Tester used for every endpoint.
        reporter: Optional reporter for progress callbacks.
        cancel_token: Checked before each endpoint is started.
    """

    def __init__(
        self,
        endpoints: Sequence[EndpointDefinition],
        tester: EndpointTester,
        reporter: Optional[Reporter] = None,
        cancel_token: Optional[CancelToken] = None,
    ):
        if not endpoints:
            raise ValueError("at least one endpoint is required")
        self.endpoints = list(endpoints)
        self.tester = tester
        self.reporter = reporter
        self.cancel_token = cancel_token

    def run(self) -> RunResult:
        """Test all endpoints and summarise the results.

        Raises:
            RunCancelled: If the run is cancelled. No summary is produced.
        """
        start_time = time.monotonic()
        outcomes: list[TestOutcome] = []
        total = len(self.endpoints)

        if self.reporter:
            self.reporter.on_run_start(self.endpoints)

        for index, endpoint in enumerate(self.endpoints, start=1):
            if self.cancel_token:
                self.cancel_token.raise_if_cancelled()

            log.info("Testing endpoint %d/%d: %s", index, total, endpoint.name)
            if self.reporter:
                self.reporter.on_endpoint_start(index, total, endpoint)

            outcome = self.tester.test(endpoint)
            outcomes.append(outcome)

            log.info(
                "Endpoint %s %s in %.2fs",
                endpoint.name,
                "passed" if outcome.overall_succeeded else "failed",
                outcome.duration_seconds,
            )
            if self.reporter:
                self.reporter.on_endpoint_complete(endpoint, outcome)

        result = RunResult(
            outcomes=outcomes,
            summary=RunSummary.from_outcomes(outcomes),
            total_duration=time.monotonic() - start_time,
        )

        if self.reporter:
            self.reporter.on_run_complete(result)

        return result
