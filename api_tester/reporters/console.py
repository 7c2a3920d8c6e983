"""Console reporter using Rich library for formatted CLI output.

Shows, for each endpoint, its URL and method, a PASS/FAIL line with the
duration and, on failure, which of the three checks failed. Ends with a
summary block of totals and failure buckets.
"""

from typing import TYPE_CHECKING, Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule

from api_tester.models import EndpointDefinition, TestOutcome
from api_tester.reporters.base import Reporter

if TYPE_CHECKING:
    from api_tester.runner import RunResult


def format_duration(seconds: float) -> str:
    """Human readable duration, e.g. ``850ms`` or ``1.25s``."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    return f"{seconds:.2f}s"


class ConsoleReporter(Reporter):
    """Rich-based console reporter for CLI output.

    Args:
        quiet: If True, suppress per-endpoint output (only show summary)
        console: Console to print to, defaults to stdout
    """

    def __init__(self, quiet: bool = False, console: Optional[Console] = None):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)
        self.quiet = quiet

    def on_run_start(self, endpoints: Sequence[EndpointDefinition]) -> None:
        self.console.print(f"Loaded configuration with {len(endpoints)} endpoint(s)")
        self.console.print(Rule(style="cyan", characters="="))

    def on_endpoint_start(self, index: int, total: int, endpoint: EndpointDefinition) -> None:
        if self.quiet:
            return

        self.console.print()
        self.console.print(f"[bold cyan][{index}/{total}] Testing: {escape(endpoint.name)}[/bold cyan]")
        self.console.print(f"    URL: {escape(endpoint.url)}")
        self.console.print(f"    Method: {endpoint.method.value}")

    def on_stage(self, endpoint: EndpointDefinition, message: str) -> None:
        if self.quiet:
            return

        self.console.print(f"    [dim]-> {escape(message)}[/dim]")

    def on_endpoint_complete(self, endpoint: EndpointDefinition, outcome: TestOutcome) -> None:
        """Displays the pass/fail line and, on failure, the stage breakdown."""
        if self.quiet:
            return

        duration = format_duration(outcome.duration_seconds)

        if outcome.overall_succeeded:
            self.console.print(f"    [green][PASS][/green] All checks passed (Duration: {duration})")
            return

        self.console.print(
            f"    [red][FAIL][/red] {escape(outcome.error_message)} (Duration: {duration})"
        )
        self.console.print(f"      * Authentication: {self._mark(outcome.auth_succeeded)}")
        if not outcome.auth_succeeded:
            return

        self.console.print(f"      * Connectivity: {self._mark(outcome.connect_succeeded)}")
        if outcome.connect_succeeded:
            self.console.print(
                f"      * Response Status: {self._mark(outcome.response_succeeded)} "
                f"(Status Code: {outcome.status_code})"
            )

    @staticmethod
    def _mark(passed: bool) -> str:
        return "[green]PASSED[/green]" if passed else "[red]FAILED[/red]"

    def on_run_complete(self, result: "RunResult") -> None:
        """Displays the run summary block."""
        summary = result.summary

        self.console.print()
        self.console.print(Rule("[bold]SUMMARY[/bold]", style="magenta", characters="-"))
        self.console.print(f"Total Endpoints:           {summary.total}")
        self.console.print(
            f"Passed:                    [green]{summary.passed}[/green] ({summary.pass_rate:.1f}%)"
        )
        self.console.print(
            f"Failed:                    [red]{summary.failed}[/red] ({summary.fail_rate:.1f}%)"
        )
        self.console.print()
        self.console.print(f"  * Authentication Failures:  {summary.auth_failures}")
        self.console.print(f"  * Connectivity Failures:    {summary.connect_failures}")
        self.console.print(f"  * Response Failures:        {summary.response_failures}")
        self.console.print(Rule(style="magenta", characters="="))
