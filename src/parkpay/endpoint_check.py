"""Smoke-test a running parkpay backend over HTTP.

Sends a short sequence of requests using the gateway sandbox's test nonces
and prints a summary. A check passes when the HTTP status matches what the
sandbox is expected to answer (the declined nonce must be refused).

Usage::

    python -m parkpay.endpoint_check
    python -m parkpay.endpoint_check --base-url http://10.0.2.2:3000
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from rich import print

from parkpay.adapters.aiohttp_client_adapter import AioHttpClientAdapter
from parkpay.adapters.retry_tenacity import TenacityRetryAdapter
from parkpay.core.config import RetryPolicy
from parkpay.core.exceptions import GatewayError
from parkpay.core.interfaces.http_client import HttpClientPort
from parkpay.utils import join_url_parts


@dataclass
class EndpointCheck:
    name: str
    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    expected_status: int = 200


@dataclass
class CheckResult:
    check: EndpointCheck
    status: Optional[int] = None
    body: Any = None
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.error is None and self.status == self.check.expected_status


GET_RETRY_POLICY = RetryPolicy(max_retries=2, initial_delay=1.0)
SINGLE_ATTEMPT = RetryPolicy(max_retries=1, initial_delay=0)

DEFAULT_CHECKS: List[EndpointCheck] = [
    EndpointCheck("Health check", "GET", "/"),
    EndpointCheck("Liveness", "GET", "/api/health"),
    EndpointCheck("Client token", "POST", "/api/token", body={}),
    EndpointCheck("Plans", "GET", "/api/plans"),
    EndpointCheck(
        "Parking payment (fake-valid-nonce)",
        "POST",
        "/api/parking-payment",
        body={
            "nonce": "fake-valid-nonce",
            "amount": 5.50,
            "userId": "test-user-789",
            "entryId": "entry-123",
        },
    ),
    EndpointCheck(
        "Parking payment declined (fake-processor-declined-visa-nonce)",
        "POST",
        "/api/parking-payment",
        body={
            "nonce": "fake-processor-declined-visa-nonce",
            "amount": 2001.00,
            "userId": "test-declined",
        },
        expected_status=400,
    ),
    EndpointCheck("Unknown route", "GET", "/api/does-not-exist", expected_status=404),
]


async def run_checks(
    client: HttpClientPort,
    base_url: str,
    checks: List[EndpointCheck],
    retry: TenacityRetryAdapter | None = None,
) -> List[CheckResult]:
    """Run each check sequentially.

    Connection problems on GET checks are retried with the adapter policy.
    Any other method is sent exactly once: a POST that timed out on our side
    may still have been processed (a parking payment settles), so repeating it
    could charge twice. HTTP error statuses are results, never retried.
    """
    retry = retry or TenacityRetryAdapter(GET_RETRY_POLICY)
    results: List[CheckResult] = []
    for check in checks:
        url = join_url_parts(base_url, check.path)

        async def send(check: EndpointCheck = check, url: str = url):
            if check.method == "POST":
                return await client.post(url, json=check.body)
            return await client.get(url)

        try:
            response = await retry.execute(
                send, policy=None if check.method == "GET" else SINGLE_ATTEMPT
            )
        except GatewayError as exc:
            results.append(CheckResult(check, error=exc.message))
            continue
        results.append(CheckResult(check, status=response["status"], body=response["body"]))
    return results


def print_report(results: List[CheckResult]) -> None:
    for result in results:
        colour = "green" if result.passed else "red"
        outcome = result.error or f"HTTP {result.status} (expected {result.check.expected_status})"
        print(f"[{colour}]{'PASS' if result.passed else 'FAIL'}[/{colour}] {result.check.name}: {outcome}")
        if not result.passed and result.body is not None:
            print(result.body)

    passed = sum(1 for r in results if r.passed)
    print()
    print(f"[bold]Passed:[/bold] {passed}  [bold]Failed:[/bold] {len(results) - passed}  [bold]Total:[/bold] {len(results)}")


async def _main(base_url: str, timeout: float) -> int:
    async with AioHttpClientAdapter(total_timeout=timeout) as client:
        retry = TenacityRetryAdapter(GET_RETRY_POLICY, attempt_timeout=timeout)
        results = await run_checks(client, base_url, DEFAULT_CHECKS, retry=retry)
    print_report(results)
    return 0 if all(r.passed for r in results) else 1


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--base-url", default="http://localhost:3000")
    parser.add_argument("--timeout", type=float, default=120.0, help="per-request timeout in seconds")
    args = parser.parse_args(argv)
    return asyncio.run(_main(args.base_url, args.timeout))


if __name__ == "__main__":
    sys.exit(main())
