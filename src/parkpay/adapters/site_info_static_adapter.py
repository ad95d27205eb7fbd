from typing import Any, Dict

from parkpay.core.interfaces.site_info import SiteInfoPort
from parkpay.core.settings import app_settings
from parkpay.utils import get_local_ip_address

ENDPOINTS: Dict[str, str] = {
    "health": "GET /api/health",
    "config": "GET /api/config",
    "token": "POST /api/token",
    "subscribe": "POST /api/subscribe",
    "subscriptionStatus": "GET /api/subscription/status",
    "cancelSubscription": "POST /api/subscription/cancel",
    "updateSubscription": "PUT /api/subscription/update",
    "parkingPayment": "POST /api/parking-payment",
    "plans": "GET /api/plans",
}


class StaticSiteInfoAdapter(SiteInfoPort):
    def __init__(self, settings=None):
        self._settings = settings or app_settings

    def get_endpoints(self) -> Dict[str, str]:
        return dict(ENDPOINTS)

    def get_site_info(self) -> Dict[str, Any]:
        port = self._settings.PORT
        return {
            "status": "online",
            "message": self._settings.PARKPAY_SITE_MESSAGE,
            "environment": self._settings.BRAINTREE_ENVIRONMENT,
            "version": self._settings.PARKPAY_API_VERSION,
            "subscriptionBased": True,
            "endpoints": self.get_endpoints(),
            "urls": {
                "localhost": f"http://localhost:{port}",
                "networkIp": f"http://{get_local_ip_address()}:{port}",
            },
        }
