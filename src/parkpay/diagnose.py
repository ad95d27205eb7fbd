"""Check connectivity with the Braintree gateway using the configured credentials.

Generates one client token (no retries) and reports how long it took, or
prints troubleshooting hints depending on the kind of failure.

Usage::

    python -m parkpay.diagnose
"""

from __future__ import annotations

import asyncio
import sys
import time

from rich import print

from parkpay.adapters.braintree_gateway_adapter import BraintreeGatewayAdapter
from parkpay.core.exceptions import ErrorKind, GatewayError
from parkpay.core.interfaces.payment_gateway import PaymentGatewayPort
from parkpay.core.settings import ParkpaySettings, app_settings

TIMEOUT_HINTS = [
    "Check the internet connection (can you open https://sandbox.braintreegateway.com ?)",
    "Allow outbound HTTPS for this Python process in the firewall/antivirus",
    "Disable VPNs or configure the corporate proxy",
    "Check https://status.braintreepayments.com for gateway incidents",
]

CREDENTIAL_HINTS = [
    "Verify merchant id, public key and private key",
    "Check that BRAINTREE_ENVIRONMENT matches the credentials (sandbox vs production)",
    "Regenerate the API keys in the Braintree control panel if they were revoked",
]


def report_credentials(settings: ParkpaySettings) -> bool:
    print("[bold]1. Credentials[/bold]")
    missing = set(settings.missing_credentials())
    for name in ("BRAINTREE_MERCHANT_ID", "BRAINTREE_PUBLIC_KEY", "BRAINTREE_PRIVATE_KEY"):
        state = "[red]missing[/red]" if name in missing else "[green]configured[/green]"
        print(f"   {name}: {state}")
    print(f"   BRAINTREE_ENVIRONMENT: {settings.BRAINTREE_ENVIRONMENT}")
    return not missing


async def check_connection(gateway: PaymentGatewayPort) -> bool:
    print("[bold]2. Generating a client token[/bold]")
    started = time.monotonic()
    try:
        async with gateway as client:
            token = await client.generate_client_token()
    except GatewayError as exc:
        print(f"   [red]failed[/red] kind={exc.kind.value} message={exc.message}")
        hints = TIMEOUT_HINTS if exc.kind in (ErrorKind.timeout, ErrorKind.unexpected) else CREDENTIAL_HINTS
        print("[bold]Possible fixes[/bold]")
        for hint in hints:
            print(f"   - {hint}")
        return False

    print(f"   [green]ok[/green] in {time.monotonic() - started:.2f}s token={token[:50]}...")
    return True


def main() -> int:
    if not report_credentials(app_settings):
        print("[red]Missing credentials, check your .env file[/red]")
        return 1
    gateway = BraintreeGatewayAdapter.from_app_settings(app_settings)
    return 0 if asyncio.run(check_connection(gateway)) else 1


if __name__ == "__main__":
    sys.exit(main())
