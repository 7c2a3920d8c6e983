"""Tests for data models."""

import pytest

from api_tester.models import (
    EndpointDefinition,
    HttpMethod,
    RunSummary,
    Stage,
    TestOutcome,
)


def make_endpoint(method=HttpMethod.GET, request_body=None) -> EndpointDefinition:
    return EndpointDefinition(
        name="Users API",
        url="https://api.example.com/users",
        method=method,
        client_id="client-id",
        client_secret="super-secret",
        tenant_id="tenant-id",
        scope="api://users/.default",
        request_body=request_body,
    )


class TestHttpMethod:
    """Tests for HttpMethod enum."""

    def test_method_values(self):
        """Enum values should match the HTTP method names."""
        assert [m.value for m in HttpMethod] == ["GET", "POST", "PUT", "PATCH", "DELETE"]

    @pytest.mark.parametrize("method", [HttpMethod.POST, HttpMethod.PUT, HttpMethod.PATCH])
    def test_body_methods(self, method):
        assert method.allows_body is True

    @pytest.mark.parametrize("method", [HttpMethod.GET, HttpMethod.DELETE])
    def test_bodyless_methods(self, method):
        assert method.allows_body is False


class TestEndpointDefinition:
    """Tests for EndpointDefinition dataclass."""

    def test_secret_not_in_repr(self):
        """The client secret must never show up in repr output."""
        endpoint = make_endpoint()
        assert "super-secret" not in repr(endpoint)
        assert "client-id" in repr(endpoint)

    def test_is_immutable(self):
        endpoint = make_endpoint()
        with pytest.raises(AttributeError):
            endpoint.url = "https://other.example.com"

    def test_post_with_body_carries_body(self):
        endpoint = make_endpoint(HttpMethod.POST, {"key": "value"})
        assert endpoint.carries_body is True

    def test_get_with_body_does_not_carry_body(self):
        """GET silently ignores a configured body."""
        endpoint = make_endpoint(HttpMethod.GET, {"key": "value"})
        assert endpoint.carries_body is False

    def test_delete_with_body_does_not_carry_body(self):
        endpoint = make_endpoint(HttpMethod.DELETE, {"key": "value"})
        assert endpoint.carries_body is False

    def test_post_without_body(self):
        endpoint = make_endpoint(HttpMethod.POST, None)
        assert endpoint.carries_body is False

    def test_empty_body_is_still_a_body(self):
        """An empty object is a configured body, unlike null."""
        endpoint = make_endpoint(HttpMethod.PATCH, {})
        assert endpoint.carries_body is True


class TestTestOutcome:
    """Tests for TestOutcome dataclass."""

    def test_defaults_are_all_failed(self):
        outcome = TestOutcome(endpoint_name="api")
        assert outcome.auth_succeeded is False
        assert outcome.connect_succeeded is False
        assert outcome.response_succeeded is False
        assert outcome.status_code == 0
        assert outcome.error_message == ""
        assert outcome.overall_succeeded is False

    def test_overall_success(self):
        outcome = TestOutcome(
            endpoint_name="api",
            auth_succeeded=True,
            connect_succeeded=True,
            response_succeeded=True,
            status_code=200,
        )
        assert outcome.overall_succeeded is True
        assert outcome.failed_stage is None

    def test_connect_without_auth_rejected(self):
        """connect_succeeded implies auth_succeeded."""
        with pytest.raises(ValueError):
            TestOutcome(endpoint_name="api", connect_succeeded=True)

    def test_response_without_connect_rejected(self):
        """response_succeeded implies connect_succeeded."""
        with pytest.raises(ValueError):
            TestOutcome(endpoint_name="api", auth_succeeded=True, response_succeeded=True)

    def test_failed_stage_authentication(self):
        outcome = TestOutcome(endpoint_name="api", error_message="Authentication failed: x")
        assert outcome.failed_stage is Stage.AUTHENTICATION

    def test_failed_stage_connectivity(self):
        outcome = TestOutcome(endpoint_name="api", auth_succeeded=True)
        assert outcome.failed_stage is Stage.CONNECTIVITY

    def test_failed_stage_response(self):
        outcome = TestOutcome(
            endpoint_name="api",
            auth_succeeded=True,
            connect_succeeded=True,
            status_code=500,
        )
        assert outcome.failed_stage is Stage.RESPONSE

    def test_to_dict(self):
        outcome = TestOutcome(
            endpoint_name="api",
            auth_succeeded=True,
            connect_succeeded=True,
            status_code=404,
            error_message="Unexpected status code: 404",
            duration_seconds=0.5,
        )
        data = outcome.to_dict()

        assert data["name"] == "api"
        assert data["success"] is False
        assert data["status_code"] == 404
        assert data["error_message"] == "Unexpected status code: 404"


class TestRunSummary:
    """Tests for RunSummary aggregation."""

    def test_empty_outcomes(self):
        summary = RunSummary.from_outcomes([])
        assert summary.total == 0
        assert summary.pass_rate == 0.0
        assert summary.fail_rate == 0.0

    def test_each_failure_counted_in_one_bucket(self):
        """Every failed outcome lands in exactly one bucket."""
        outcomes = [
            TestOutcome(endpoint_name="ok", auth_succeeded=True, connect_succeeded=True,
                        response_succeeded=True, status_code=200),
            TestOutcome(endpoint_name="auth"),
            TestOutcome(endpoint_name="connect", auth_succeeded=True),
            TestOutcome(endpoint_name="response", auth_succeeded=True,
                        connect_succeeded=True, status_code=503),
            TestOutcome(endpoint_name="response2", auth_succeeded=True,
                        connect_succeeded=True, status_code=401),
        ]

        summary = RunSummary.from_outcomes(outcomes)

        assert summary.total == 5
        assert summary.passed == 1
        assert summary.failed == 4
        assert summary.auth_failures == 1
        assert summary.connect_failures == 1
        assert summary.response_failures == 2
        assert (
            summary.auth_failures + summary.connect_failures + summary.response_failures
            == summary.failed
        )

    def test_rates(self):
        outcomes = [
            TestOutcome(endpoint_name="a", auth_succeeded=True, connect_succeeded=True,
                        response_succeeded=True, status_code=200),
            TestOutcome(endpoint_name="b"),
            TestOutcome(endpoint_name="c"),
            TestOutcome(endpoint_name="d"),
        ]
        summary = RunSummary.from_outcomes(outcomes)

        assert summary.pass_rate == 25.0
        assert summary.fail_rate == 75.0

    def test_to_dict(self):
        summary = RunSummary(total=2, passed=1, failed=1, response_failures=1)
        assert summary.to_dict() == {
            "total": 2,
            "passed": 1,
            "failed": 1,
            "auth_failures": 0,
            "connect_failures": 0,
            "response_failures": 1,
        }
