"""FastAPI application entry point."""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.base import BaseHTTPMiddleware

from coffeeos.api.routes import api_router
from coffeeos.core.config import settings
from coffeeos.core.errors import PosError
from coffeeos.core.logging_config import configure_logging
from coffeeos.core.rate_limit import limiter
from coffeeos.services.context import resolve_context
from coffeeos.store import DocumentChange, Subscription, build_store

configure_logging(settings)

logger = logging.getLogger(__name__)
request_logger = logging.getLogger("coffeeos.requests")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with its status and duration."""

    async def dispatch(self, request: Request, call_next):
        if request.url.path in ["/health", "/", "/docs", "/openapi.json"]:
            return await call_next(request)

        start_time = time.time()
        client_ip = request.client.host if request.client else "unknown"
        branch = request.headers.get("X-Branch-Id", "-")

        try:
            response = await call_next(request)
        except Exception as e:
            request_logger.error(
                f"Error: {request.method} {request.url.path} - Exception: {e} - "
                f"Time: {time.time() - start_time:.3f}s - Branch: {branch} - Client: {client_ip}"
            )
            raise

        log_level = logging.WARNING if response.status_code >= 400 else logging.INFO
        request_logger.log(
            log_level,
            f"{request.method} {request.url.path} - Status: {response.status_code} - "
            f"Time: {time.time() - start_time:.3f}s - Branch: {branch} - Client: {client_ip}",
        )
        return response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the document store once; tests may install their own beforehand."""
    logger.info("Starting CoffeeOS POS backend")
    if getattr(app.state, "store", None) is None:
        app.state.store = build_store(settings)
    yield
    logger.info("Shutting down CoffeeOS POS backend")


app = FastAPI(
    title="CoffeeOS POS",
    description="Multi-tenant cafe point of sale backend",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# Rate limiting setup
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    """Domain errors keep their message; the code tells clients how to react."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# CORS middleware - added last so it runs first (Starlette LIFO order)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Tenant-Id", "X-Branch-Id"],
    max_age=600,
)

app.include_router(api_router, prefix=settings.api_v1_prefix)


@app.get("/health")
def health_check():
    """Basic liveness check endpoint."""
    return {"status": "healthy", "version": "1.0.0"}


@app.get("/health/ready")
def readiness_check(request: Request):
    """Readiness probe: the document store answers a point read."""
    checks = {"store": "unknown", "forecast": "configured" if settings.forecast_configured else "not configured"}
    try:
        request.app.state.store.get("tenants/_readiness")
        checks["store"] = "healthy"
    except Exception as e:
        logger.error(f"Store health check failed: {e}")
        checks["store"] = "unhealthy"

    ready = checks["store"] == "healthy"
    return JSONResponse(
        status_code=status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"status": "ready" if ready else "not ready", "store_backend": settings.store_backend, "checks": checks},
    )


def _change_message(changes: List[DocumentChange]) -> Dict[str, Any]:
    return {
        "type": "changes",
        "changes": [
            {
                "type": change.type.value,
                "path": change.snapshot.path,
                "id": change.snapshot.id,
                "data": jsonable_encoder(change.snapshot.data),
            }
            for change in changes
        ],
    }


async def _watch_client(websocket: WebSocket, subscription: Subscription) -> None:
    """Answer pings and end the subscription when the client goes away."""
    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()


@app.websocket("/ws/orders/{order_id}")
async def websocket_order(
    websocket: WebSocket,
    order_id: str,
    tenant_id: Optional[str] = Query(None),
    branch_id: Optional[str] = Query(None),
):
    """
    Live view of one order and its line items.

    The first message carries the current state; later messages carry
    added, modified and removed documents.
    """
    store = websocket.app.state.store
    try:
        context = await asyncio.to_thread(resolve_context, store, tenant_id, branch_id)
    except PosError as e:
        logger.warning(f"WebSocket rejected for order {order_id}: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    order_path = context.order_path(order_id)
    order_snap = await asyncio.to_thread(store.get, order_path)
    if not order_snap.exists:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    subscription = store.subscribe(order_path, collections=("items",))
    watcher = asyncio.create_task(_watch_client(websocket, subscription))
    logger.debug(f"WebSocket subscribed to {order_path}")

    try:
        async for changes in subscription.stream(settings.subscription_poll_interval):
            await websocket.send_json(_change_message(changes))
    except WebSocketDisconnect:
        pass
    finally:
        subscription.cancel()
        watcher.cancel()
        logger.debug(f"WebSocket unsubscribed from {order_path}")
