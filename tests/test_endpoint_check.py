"""Tests for the HTTP smoke-test tool against a scripted HTTP client."""

import pytest

from parkpay.adapters.retry_tenacity import TenacityRetryAdapter
from parkpay.core.config import RetryPolicy
from parkpay.core.exceptions import GatewayTimeoutError
from parkpay.core.interfaces.http_client import HttpClientPort
from parkpay import endpoint_check
from parkpay.endpoint_check import DEFAULT_CHECKS, EndpointCheck, run_checks


async def no_sleep(seconds):
    return None


class ScriptedClient(HttpClientPort):
    """Answers from a url -> list of responses/exceptions script."""

    def __init__(self, script):
        self.script = script
        self.requests = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False

    def _next(self, method, url, json=None):
        self.requests.append((method, url, json))
        outcome = self.script[url].pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    async def get(self, url, timeout=None):
        return self._next("GET", url)

    async def post(self, url, json, timeout=None, headers=None):
        return self._next("POST", url, json)

    async def close(self):
        pass


def response(status, body=None):
    return {"status": status, "headers": {}, "body": body}


@pytest.fixture
def retry():
    return TenacityRetryAdapter(RetryPolicy(max_retries=2, initial_delay=1.0), sleep=no_sleep)


@pytest.mark.asyncio
async def test_statuses_are_compared_with_expectations(retry):
    checks = [
        EndpointCheck("Liveness", "GET", "/api/health"),
        EndpointCheck("Declined", "POST", "/api/parking-payment", body={"nonce": "n"}, expected_status=400),
        EndpointCheck("Plans", "GET", "/api/plans"),
    ]
    client = ScriptedClient(
        {
            "http://localhost:3000/api/health": [response(200, {"status": "healthy"})],
            "http://localhost:3000/api/parking-payment": [response(400, {"success": False})],
            "http://localhost:3000/api/plans": [response(500, {"success": False})],
        }
    )

    results = await run_checks(client, "http://localhost:3000", checks, retry=retry)

    assert [r.passed for r in results] == [True, True, False]
    assert client.requests[1] == ("POST", "http://localhost:3000/api/parking-payment", {"nonce": "n"})


@pytest.mark.asyncio
async def test_get_transport_failures_are_retried_then_reported(retry):
    url = "http://localhost:3000/api/plans"
    client = ScriptedClient(
        {url: [GatewayTimeoutError("The request timed out."), GatewayTimeoutError("The request timed out.")]}
    )

    results = await run_checks(client, "http://localhost:3000/", [EndpointCheck("Plans", "GET", "/api/plans")], retry=retry)

    assert len(client.requests) == 2
    assert results[0].passed is False
    assert results[0].error == "The request timed out."


@pytest.mark.asyncio
async def test_transient_failure_recovers(retry):
    url = "http://localhost:3000/"
    client = ScriptedClient({url: [GatewayTimeoutError("timed out"), response(200, {"status": "online"})]})

    results = await run_checks(client, "http://localhost:3000", [EndpointCheck("Home", "GET", "/")], retry=retry)

    assert results[0].passed is True
    assert results[0].body == {"status": "online"}


def test_default_checks_cover_decline_and_unknown_route():
    expected = {check.path: check.expected_status for check in DEFAULT_CHECKS if check.expected_status != 200}
    assert expected == {"/api/parking-payment": 400, "/api/does-not-exist": 404}


@pytest.mark.asyncio
async def test_post_is_sent_once_when_it_times_out(retry):
    url = "http://localhost:3000/api/parking-payment"
    client = ScriptedClient(
        {url: [GatewayTimeoutError("The request timed out."), response(200, {"success": True})]}
    )
    check = EndpointCheck("Parking payment", "POST", "/api/parking-payment", body={"nonce": "fake-valid-nonce"})

    results = await run_checks(client, "http://localhost:3000", [check], retry=retry)

    assert [method for method, _, _ in client.requests] == ["POST"]
    assert results[0].passed is False
    assert results[0].error == "The request timed out."


@pytest.mark.asyncio
async def test_cli_timeout_becomes_attempt_deadline(monkeypatch):
    captured = {}

    async def fake_run_checks(client, base_url, checks, retry=None):
        captured["retry"] = retry
        return []

    monkeypatch.setattr(endpoint_check, "run_checks", fake_run_checks)
    monkeypatch.setattr(endpoint_check, "print_report", lambda results: None)

    assert await endpoint_check._main("http://localhost:3000", 120.0) == 0
    assert captured["retry"].attempt_timeout == 120.0
