# main.py
import sys

import uvicorn
from rich import print

from parkpay.adapters.braintree_gateway_adapter import BraintreeGatewayAdapter
from parkpay.adapters.retry_tenacity import TenacityRetryAdapter
from parkpay.adapters.site_info_static_adapter import StaticSiteInfoAdapter
from parkpay.adapters.web.fastapi import create_app
from parkpay.core.config import RetryPolicy
from parkpay.core.logging_config import configure_logging
from parkpay.core.managers.payment_manager import PaymentManager
from parkpay.core.settings import ParkpaySettings, app_settings, logger
from parkpay.utils import get_local_ip_address


# main lives at the outermost layer (not in core)
# Instantiates all the concrete adapters
# Wires dependencies together
# Starts the application

def print_banner(settings: ParkpaySettings, site_info: StaticSiteInfoAdapter) -> None:
    port = settings.PORT
    print()
    print("[bold cyan]Parking Backend API[/bold cyan]")
    print(f"  Port:         {port}")
    print(f"  Environment:  {settings.BRAINTREE_ENVIRONMENT}")
    print(f"  Merchant ID:  {settings.BRAINTREE_MERCHANT_ID}")
    print()
    print("[bold]Access URLs[/bold]")
    print(f"  Localhost:         http://localhost:{port}")
    print(f"  Android emulator:  http://10.0.2.2:{port}")
    print(f"  iOS simulator:     http://localhost:{port}")
    print(f"  Local network:     http://{get_local_ip_address()}:{port}")
    print()
    print("[bold]Endpoints[/bold]")
    for name, route in site_info.get_endpoints().items():
        print(f"  {route:<36} {name}")
    print()


def main():
    # Central logging configuration BEFORE anything logs so uvicorn adopts level/format
    configure_logging(app_settings.PARKPAY_LOG_LEVEL)

    missing = app_settings.missing_credentials()
    if missing:
        logger.error("Missing Braintree credentials: %s", ", ".join(missing))
        sys.exit(1)

    app_settings.print_settings(logger)

    # Instantiate infrastructure adapters
    gateway = BraintreeGatewayAdapter.from_app_settings(app_settings)
    site_info = StaticSiteInfoAdapter(app_settings)
    policy = RetryPolicy.from_app_settings(app_settings)

    # Factory passed to web adapter keeps composition here
    def payment_manager_factory(client):
        return PaymentManager(
            gateway=client,
            retry_port=TenacityRetryAdapter(policy),
            policy=policy,
        )

    app = create_app(
        payment_manager_factory=payment_manager_factory,
        gateway=gateway,
        site_info=site_info,
        settings=app_settings,
    )

    print_banner(app_settings, site_info)

    # Let uvicorn inherit existing logging (separate sinks & correlation ids)
    uvicorn.run(
        app,
        host=app_settings.PARKPAY_HOST,
        port=app_settings.PORT,
        log_config=None,
        log_level=str(app_settings.PARKPAY_LOG_LEVEL).lower(),
    )


if __name__ == "__main__":
    main()
