"""Tests for runner.py module.

Tests the orchestrator that tests every endpoint and summarises the run.
"""

from unittest.mock import Mock

import pytest

from api_tester.deadline import CancelToken, RunCancelled
from api_tester.models import EndpointDefinition, HttpMethod, RunSummary, TestOutcome
from api_tester.runner import EndpointRunner, RunResult


def make_endpoint(name: str) -> EndpointDefinition:
    return EndpointDefinition(
        name=name,
        url=f"https://api.example.com/{name}",
        method=HttpMethod.GET,
        client_id="id",
        client_secret="secret",
        tenant_id="tenant",
        scope="scope",
    )


def passed(name: str, status_code: int = 200) -> TestOutcome:
    return TestOutcome(
        endpoint_name=name,
        auth_succeeded=True,
        connect_succeeded=True,
        response_succeeded=True,
        status_code=status_code,
    )


def response_failed(name: str, status_code: int) -> TestOutcome:
    return TestOutcome(
        endpoint_name=name,
        auth_succeeded=True,
        connect_succeeded=True,
        status_code=status_code,
        error_message=f"Unexpected status code: {status_code}",
    )


def scripted_tester(outcomes: dict[str, TestOutcome]) -> Mock:
    tester = Mock()
    tester.test.side_effect = lambda endpoint: outcomes[endpoint.name]
    return tester


class TestRunResult:
    """Tests for RunResult dataclass."""

    def test_exit_code_zero_when_all_pass(self):
        outcomes = [passed("a"), passed("b")]
        result = RunResult(
            outcomes=outcomes,
            summary=RunSummary.from_outcomes(outcomes),
            total_duration=1.0,
        )

        assert result.has_failures is False
        assert result.exit_code == 0

    def test_exit_code_one_when_any_fails(self):
        outcomes = [passed("a"), TestOutcome(endpoint_name="b")]
        result = RunResult(
            outcomes=outcomes,
            summary=RunSummary.from_outcomes(outcomes),
            total_duration=1.0,
        )

        assert result.has_failures is True
        assert result.exit_code == 1

    def test_to_dict(self):
        outcomes = [passed("a"), response_failed("b", 404)]
        result = RunResult(
            outcomes=outcomes,
            summary=RunSummary.from_outcomes(outcomes),
            total_duration=2.5,
        )

        data = result.to_dict()

        assert data["total_duration_seconds"] == 2.5
        assert [e["name"] for e in data["endpoints"]] == ["a", "b"]
        assert data["summary"]["response_failures"] == 1
        assert "timestamp" in data


class TestEndpointRunner:
    """Tests for EndpointRunner."""

    def test_requires_endpoints(self):
        with pytest.raises(ValueError):
            EndpointRunner([], Mock())

    def test_mixed_results_summary(self):
        """Two endpoints, the first answers 404 and the second 201."""
        tester = scripted_tester({
            "first": response_failed("first", 404),
            "second": passed("second", 201),
        })
        runner = EndpointRunner([make_endpoint("first"), make_endpoint("second")], tester)

        result = runner.run()

        assert result.summary == RunSummary(
            total=2, passed=1, failed=1, response_failures=1
        )
        assert result.exit_code == 1

    def test_failure_does_not_stop_run(self):
        """Every endpoint gets an outcome even after earlier failures."""
        names = ["one", "two", "three", "four"]
        tester = scripted_tester({
            "one": passed("one"),
            "two": TestOutcome(endpoint_name="two", error_message="Authentication failed: x"),
            "three": TestOutcome(endpoint_name="three", auth_succeeded=True,
                                 error_message="Request failed: y"),
            "four": passed("four"),
        })
        runner = EndpointRunner([make_endpoint(n) for n in names], tester)

        result = runner.run()

        assert [o.endpoint_name for o in result.outcomes] == names
        assert tester.test.call_count == 4
        assert result.summary.auth_failures == 1
        assert result.summary.connect_failures == 1
        assert result.summary.passed == 2

    def test_declared_order_preserved(self):
        names = ["zeta", "alpha", "mike"]
        tester = scripted_tester({n: passed(n) for n in names})

        result = EndpointRunner([make_endpoint(n) for n in names], tester).run()

        tested = [c.args[0].name for c in tester.test.call_args_list]
        assert tested == names
        assert [o.endpoint_name for o in result.outcomes] == names

    def test_reporter_callbacks(self):
        endpoints = [make_endpoint("a"), make_endpoint("b")]
        tester = scripted_tester({"a": passed("a"), "b": passed("b")})
        reporter = Mock()

        result = EndpointRunner(endpoints, tester, reporter=reporter).run()

        reporter.on_run_start.assert_called_once_with(endpoints)
        assert [c.args[:2] for c in reporter.on_endpoint_start.call_args_list] == [(1, 2), (2, 2)]
        assert reporter.on_endpoint_complete.call_count == 2
        reporter.on_run_complete.assert_called_once_with(result)

    def test_cancelled_before_next_endpoint(self):
        """Cancellation stops the run and no summary is produced."""
        token = CancelToken()
        reporter = Mock()

        def run_and_cancel(endpoint):
            token.cancel()
            return passed(endpoint.name)

        tester = Mock()
        tester.test.side_effect = run_and_cancel
        runner = EndpointRunner(
            [make_endpoint("a"), make_endpoint("b")], tester, reporter=reporter, cancel_token=token
        )

        with pytest.raises(RunCancelled):
            runner.run()

        assert tester.test.call_count == 1
        reporter.on_run_complete.assert_not_called()

    def test_cancelled_mid_endpoint(self):
        """An endpoint aborted mid-flight produces no outcome."""
        tester = Mock()
        tester.test.side_effect = RunCancelled("signal")
        reporter = Mock()

        with pytest.raises(RunCancelled):
            EndpointRunner([make_endpoint("a")], tester, reporter=reporter).run()

        reporter.on_endpoint_complete.assert_not_called()
        reporter.on_run_complete.assert_not_called()
