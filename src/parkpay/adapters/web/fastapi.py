# parkpay/adapters/web/fastapi.py
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Type, TypeVar

import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from parkpay.adapters.site_info_static_adapter import StaticSiteInfoAdapter
from parkpay.core.exceptions import ErrorKind, GatewayError, error_kind
from parkpay.core.interfaces.payment_gateway import PaymentGatewayPort
from parkpay.core.interfaces.site_info import SiteInfoPort
from parkpay.core.logging_config import correlation_id_var
from parkpay.core.managers.payment_manager import PaymentManager
from parkpay.core.models.requests import (
    ApiRequest,
    CancelSubscriptionRequest,
    ParkingPaymentRequest,
    SubscribeRequest,
    TokenRequest,
    UpdateSubscriptionRequest,
)
from parkpay.core.settings import ParkpaySettings, app_settings, logger
from parkpay.utils import get_local_ip_address

RequestModel = TypeVar("RequestModel", bound=ApiRequest)

TIMEOUT_HINT = (
    "The payment gateway did not respond in time. Please try again in a few moments."
)

# Statuses for failures that are not generic server errors
_STATUS_BY_KIND: Dict[ErrorKind, int] = {
    ErrorKind.not_found: 404,
    ErrorKind.timeout: 504,
    ErrorKind.validation: 400,
}


class InvalidRequestBody(Exception):
    """Request body failed validation; carries the ready-made 400 payload."""

    def __init__(self, payload: Dict[str, Any]):
        self.payload = payload
        super().__init__(payload.get("message", "invalid request"))


# Note: this is a driver adapter. It depends on the core (PaymentManager and
# the ports) but the core never depends on it.
def create_app(
    payment_manager_factory: Callable[[PaymentGatewayPort], PaymentManager],
    gateway: PaymentGatewayPort,
    site_info: SiteInfoPort | None = None,
    settings: ParkpaySettings | None = None,
) -> FastAPI:
    """Create the FastAPI app.

    The gateway adapter and the manager factory are assembled outside (see
    `main`) so this module stays focused on HTTP concerns and lifecycle.
    """
    settings = settings or app_settings
    site_info = site_info or StaticSiteInfoAdapter(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        async with gateway as client:
            app.state.payment_manager = payment_manager_factory(client)
            yield

    app = FastAPI(
        title="Parking Payments API",
        version=settings.PARKPAY_API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Correlation ID middleware: assigns per-request id (header override) and exposes it to logging
    @app.middleware("http")
    async def correlation_id_middleware(request: Request, call_next):
        cid = request.headers.get("x-request-id") or uuid.uuid4().hex[:12]
        correlation_id_var.set(cid)
        try:
            response = await call_next(request)
        finally:
            # reset so the id does not leak across reused worker tasks
            correlation_id_var.set("-")
        response.headers["X-Request-ID"] = cid
        return response

    def manager() -> PaymentManager:
        return app.state.payment_manager

    def success(status_code: int = 200, **payload: Any) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"success": True, **jsonable_encoder(payload, exclude_none=True)},
        )

    def failure(status_code: int, error: str, **payload: Any) -> JSONResponse:
        return JSONResponse(
            status_code=status_code,
            content={"success": False, "error": error, **jsonable_encoder(payload)},
        )

    def render_gateway_failure(exc: Exception, error: str, **extra: Any) -> JSONResponse:
        """Translate a terminal failure of the retry wrapper into an HTTP response."""
        kind = error_kind(exc) or ErrorKind.internal
        status = _STATUS_BY_KIND.get(kind, 500)
        if kind is ErrorKind.timeout:
            message = TIMEOUT_HINT
        elif isinstance(exc, GatewayError):
            message = exc.message
        else:
            message = str(exc) or "An unexpected error occurred while processing your request."

        log = logger.warning if status < 500 else logger.error
        log("[api] %s status=%s kind=%s error=%s", error, status, kind.value, exc)
        return failure(status, error, kind=kind.value, message=message, **extra)

    async def parse_body(request: Request, model: Type[RequestModel]) -> RequestModel:
        try:
            raw = await request.json()
        except ValueError:
            raw = {}

        try:
            return model.from_raw(raw)
        except ValidationError as ve:
            detail_messages = []
            for err in ve.errors():
                loc = ".".join(str(part) for part in err.get("loc", []))
                msg = err.get("msg", "invalid value")
                detail_messages.append(f"{loc or 'body'}: {msg}")
            raise InvalidRequestBody(
                {
                    "kind": ErrorKind.validation.value,
                    "message": "; ".join(detail_messages) or "Invalid request payload",
                    "required": list(model.REQUIRED),
                }
            )

    @app.exception_handler(InvalidRequestBody)
    async def invalid_body_handler(request: Request, exc: InvalidRequestBody):
        logger.warning("[api] invalid body path=%s detail=%s", request.url.path, exc)
        return failure(400, "Missing or invalid required fields", **exc.payload)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        # Unknown path or unsupported method for a known path
        if exc.status_code in (404, 405):
            return failure(
                404,
                "Endpoint not found",
                availableEndpoints={"home": "GET /", **site_info.get_endpoints()},
            )
        return failure(exc.status_code, str(exc.detail))

    @app.get("/")
    async def landing():
        return JSONResponse(site_info.get_site_info())

    @app.get("/api/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": settings.BRAINTREE_ENVIRONMENT,
        }

    @app.get("/api/config")
    async def runtime_config():
        return success(
            backendUrl=f"http://{get_local_ip_address()}:{settings.PORT}",
            environment=settings.BRAINTREE_ENVIRONMENT,
            port=settings.PORT,
        )

    @app.post("/api/token")
    async def client_token(request: Request):
        body = await parse_body(request, TokenRequest)
        try:
            token = await manager().generate_client_token(body.customerId)
        except Exception as exc:
            return render_gateway_failure(exc, "Error generating client token")
        return success(clientToken=token)

    @app.get("/api/plans")
    async def plans():
        try:
            plan_list = await manager().list_plans()
        except Exception as exc:
            return render_gateway_failure(exc, "Error fetching plans")
        return success(plans=[plan.model_dump() for plan in plan_list])

    @app.post("/api/subscribe")
    async def subscribe(request: Request):
        body = await parse_body(request, SubscribeRequest)
        try:
            subscription = await manager().subscribe(body)
        except Exception as exc:
            return render_gateway_failure(exc, "Error creating subscription")
        return success(
            subscription=subscription.model_dump(),
            message="Subscription created successfully",
        )

    @app.get("/api/subscription/status")
    async def subscription_status(request: Request):
        user_id = (request.query_params.get("userId") or "").strip()
        if not user_id:
            return failure(
                400,
                "userId is required",
                kind=ErrorKind.validation.value,
                message="Query parameter 'userId' is required",
                required=["userId"],
            )
        try:
            state = await manager().subscription_status(user_id)
        except Exception as exc:
            return render_gateway_failure(exc, "Error querying subscription")
        return success(subscription=state.model_dump(exclude_none=True))

    @app.put("/api/subscription/update")
    async def update_subscription(request: Request):
        body = await parse_body(request, UpdateSubscriptionRequest)
        try:
            subscription = await manager().update_subscription(
                body.subscriptionId, body.newPlanId
            )
        except Exception as exc:
            return render_gateway_failure(
                exc, "Error updating subscription", subscriptionId=body.subscriptionId
            )
        return success(
            message="Subscription updated successfully",
            subscription=subscription.model_dump(exclude={"firstBillingDate"}),
        )

    @app.post("/api/subscription/cancel")
    async def cancel_subscription(request: Request):
        body = await parse_body(request, CancelSubscriptionRequest)
        try:
            subscription = await manager().cancel_subscription(body.subscriptionId)
        except Exception as exc:
            return render_gateway_failure(
                exc, "Error cancelling subscription", subscriptionId=body.subscriptionId
            )
        return success(
            message="Subscription cancelled successfully",
            subscription=subscription.model_dump(include={"id", "status"}),
        )

    @app.post("/api/parking-payment")
    async def parking_payment(request: Request):
        body = await parse_body(request, ParkingPaymentRequest)
        try:
            transaction = await manager().charge_parking(body)
        except Exception as exc:
            return render_gateway_failure(exc, "Error processing payment")
        return success(
            transaction=transaction.model_dump(),
            message="Payment processed successfully",
        )

    return app
