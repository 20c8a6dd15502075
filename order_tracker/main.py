"""
FastAPI Application Entry Point

Sweet Karam Order Tracker - order lifecycle and live dashboard sync.

Endpoints:
    - POST /order: Place an order (storefront)
    - GET /api/orders: Full order collection
    - GET /api/orders/{tracking_id}, GET /track/{tracking_id}: One order
    - POST /update-status: Move an order to its next stage (dashboard)
    - GET /download-excel: The order workbook
    - POST /admin/delete-orders: Clear every order
    - WS /ws: Live updates (all-orders / new-order events)
    - GET /health: System health check

Author: Khalil Bannouri
Version: 1.0.0
"""

import asyncio
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, Request, WebSocket, WebSocketDisconnect, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from order_tracker.core.config import get_settings, setup_logging
from order_tracker.core.exceptions import (
    ExportNotFoundError,
    OrderTrackerError,
    StorageError,
    UnauthorizedError,
)
from order_tracker.schemas import (
    AdminResetRequest,
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    OrderCreateResponse,
    OrderRequest,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from order_tracker.services import (
    LiveUpdateChannel,
    OrderService,
    OrderStore,
    StatusService,
    get_live_channel,
    get_order_service,
    get_status_service,
    get_store,
)
from order_tracker.services.live import SYNC_REQUEST

# Initialize configuration and logging
settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# =============================================================================
# APPLICATION LIFECYCLE
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application startup and shutdown events.
    """
    current = get_settings()
    logger.info("=" * 60)
    logger.info(f"🚀 Starting {current.app_name}")
    logger.info(f"   Version: {current.app_version}")
    logger.info(f"   Environment: {current.env_mode.value}")
    logger.info(f"   Debug: {current.debug}")
    logger.info("=" * 60)

    # Loading once up front runs any pending workbook migration.
    store = get_store()
    try:
        orders = await asyncio.to_thread(store.load_all)
        logger.info(f"✅ Order Store ready: {len(orders)} order(s) in {store.path}")
    except StorageError as e:
        logger.error(f"⚠️ Order Store unreadable at startup: {e}")

    logger.info("=" * 60)
    logger.info("✅ Application ready!")
    logger.info("=" * 60)

    yield  # Application runs

    logger.info("Shutting down...")
    channel = get_live_channel()
    dropped = channel.client_count
    await channel.close()
    logger.info(f"✅ Cleanup complete ({dropped} live client(s) dropped)")


# =============================================================================
# APPLICATION INSTANCE
# =============================================================================

app = FastAPI(
    title=settings.app_name,
    description=(
        "Food ordering backend: order creation, status tracking and "
        "live dashboard updates over WebSockets."
    ),
    version=settings.app_version,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# ROOT & HEALTH ENDPOINTS
# =============================================================================

@app.get("/", tags=["Root"])
async def root() -> dict[str, str]:
    """API root with navigation links."""
    return {
        "message": f"🍬 Welcome to {settings.app_name}",
        "version": settings.app_version,
        "environment": settings.env_mode.value,
        "documentation": "/docs",
        "orders": "/api/orders",
        "live": "/ws",
        "health": "/health",
    }


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["Health"],
    summary="System Health Check",
)
async def health_check(
    store: OrderStore = Depends(get_store),
    channel: LiveUpdateChannel = Depends(get_live_channel),
) -> HealthResponse:
    """Verify the order workbook is readable."""
    storage_status = "healthy"
    try:
        await asyncio.to_thread(store.load_all)
    except StorageError as e:
        storage_status = f"unhealthy: {e.message}"
        logger.error(f"Storage health check failed: {e.message}")

    return HealthResponse(
        status="operational" if storage_status == "healthy" else "degraded",
        storage=storage_status,
        connected_clients=channel.client_count,
        timestamp=datetime.now(),
    )


# =============================================================================
# ORDER API ENDPOINTS
# =============================================================================

@app.post(
    "/order",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Place Order",
)
async def create_order(
    order_data: OrderRequest,
    service: OrderService = Depends(get_order_service),
) -> OrderCreateResponse:
    """
    Place a new order from the storefront.

    The tracking ID in the response is what the customer uses to follow
    the order.
    """
    order = await service.create_order(
        name=order_data.name,
        phone=order_data.phone,
        items=order_data.items,
        address=order_data.address,
    )
    return OrderCreateResponse(
        message="Order placed successfully!",
        order_id=order.tracking_id,
        total_amount=order.total_amount,
    )


@app.get(
    "/api/orders",
    tags=["Orders"],
    summary="List Orders",
)
async def list_orders(
    service: OrderService = Depends(get_order_service),
) -> list[dict[str, Any]]:
    """Full order collection, oldest first."""
    return [order.to_public() for order in await service.list_orders()]


@app.get(
    "/api/orders/{tracking_id}",
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
)
@app.get(
    "/track/{tracking_id}",
    responses={404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Track Order",
)
async def get_order(
    tracking_id: str,
    service: OrderService = Depends(get_order_service),
) -> dict[str, Any]:
    """Get a specific order by tracking ID."""
    order = await service.get_order(tracking_id)
    return order.to_public()


@app.post(
    "/update-status",
    response_model=StatusUpdateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    tags=["Orders"],
    summary="Update Order Status",
)
async def update_status(
    body: StatusUpdateRequest,
    service: StatusService = Depends(get_status_service),
) -> StatusUpdateResponse:
    """Move an order to a later delivery stage."""
    order = await service.update_status(body.tracking_id, body.new_status)
    return StatusUpdateResponse(tracking_id=order.tracking_id, status=order.status.value)


# =============================================================================
# ADMIN ENDPOINTS
# =============================================================================

@app.get("/download-excel", tags=["Admin"])
async def download_excel(store: OrderStore = Depends(get_store)) -> FileResponse:
    """Download the raw order workbook."""
    if not store.exists():
        raise ExportNotFoundError("No orders have been saved yet")
    return FileResponse(store.path, media_type=XLSX_MEDIA_TYPE, filename=store.path.name)


@app.post(
    "/admin/delete-orders",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}},
    tags=["Admin"],
)
async def delete_orders(
    body: AdminResetRequest,
    service: OrderService = Depends(get_order_service),
) -> MessageResponse:
    """Clear every order. Connected dashboards receive an empty snapshot."""
    current = get_settings()
    email_ok = secrets.compare_digest(body.email or "", current.admin_email)
    password_ok = secrets.compare_digest(body.password or "", current.admin_password)
    if not (email_ok and password_ok):
        raise UnauthorizedError("Unauthorized: Admin only")

    await service.clear_orders()
    logger.warning("All orders cleared by admin")
    return MessageResponse(message="All orders cleared by admin")


# =============================================================================
# LIVE UPDATES
# =============================================================================

@app.websocket("/ws")
async def live_updates(
    websocket: WebSocket,
    channel: LiveUpdateChannel = Depends(get_live_channel),
    service: OrderService = Depends(get_order_service),
) -> None:
    """
    Live channel for dashboards and tracking pages.

    Sends an ``all-orders`` snapshot on connect and whenever the client
    sends ``sync``; afterwards relays ``new-order`` and ``all-orders``
    broadcasts.
    """
    try:
        await channel.connect(websocket, service.list_orders)
        while True:
            message = await websocket.receive_text()
            if message.strip().lower() == SYNC_REQUEST:
                if not channel.send_snapshot(websocket, await service.list_orders()):
                    # Dropped for falling behind; it has to reconnect.
                    await websocket.close(code=status.WS_1013_TRY_AGAIN_LATER)
                    break
    except WebSocketDisconnect:
        pass
    except StorageError as e:
        logger.error(f"Closing live client, snapshot unavailable: {e.message}")
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
    finally:
        channel.disconnect(websocket)


# =============================================================================
# ERROR HANDLERS
# =============================================================================

def _show_error_details() -> bool:
    current = get_settings()
    return current.debug or current.is_development


@app.exception_handler(OrderTrackerError)
async def order_tracker_exception_handler(request: Request, exc: OrderTrackerError) -> JSONResponse:
    """Known failures: 400/403/404/500 with a JSON error body."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed JSON bodies are client errors, not 422s."""
    return JSONResponse(
        status_code=400,
        content={
            "success": False,
            "error": "Invalid data",
            "detail": str(exc.errors()) if _show_error_details() else None,
        },
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all exception handler."""
    logger.exception(f"Unhandled exception: {exc}")

    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "Internal Server Error",
            "detail": str(exc) if _show_error_details() else "An unexpected error occurred",
        },
    )
