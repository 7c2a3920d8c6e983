"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from api_tester.models import EndpointDefinition, TestOutcome
    from api_tester.runner import RunResult


class Reporter(ABC):
    """Abstract base class for test result reporters."""

    @abstractmethod
    def on_run_start(self, endpoints: Sequence["EndpointDefinition"]) -> None:
        """Called once before the first endpoint is tested."""
        pass

    @abstractmethod
    def on_endpoint_start(self, index: int, total: int, endpoint: "EndpointDefinition") -> None:
        """Called when testing begins for an endpoint."""
        pass

    @abstractmethod
    def on_stage(self, endpoint: "EndpointDefinition", message: str) -> None:
        """Called with stage progress messages in verbose mode."""
        pass

    @abstractmethod
    def on_endpoint_complete(self, endpoint: "EndpointDefinition", outcome: "TestOutcome") -> None:
        """Called when testing completes for an endpoint."""
        pass

    @abstractmethod
    def on_run_complete(self, result: "RunResult") -> None:
        """Called when all testing is complete."""
        pass

