from fastapi import FastAPI
from fastapi import Request, Response
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from app.config import CORS_ORIGINS
from app.database import get_key_value_collection
from app.middleware.request_logging import request_logging_middleware
from app.routes.notifications import router as notifications_router
from app.routes.customers import router as customers_router
from app.utils.customer_client import CustomerClient
from app.utils.notification_store import NotificationStore
from app.utils.storage import MongoKeyValueStore
from app.workers.expiry_watcher import ExpiryWatcher
import logging
import asyncio

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def create_app(storage=None, customer_session=None) -> FastAPI:
    """
    Build the application.

    Args:
        storage: key-value store for notifications and the customer cache;
            defaults to the Mongo key_value_store collection
        customer_session: requests session used to read the customer listing
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        logger.info("🚀 FastAPI starting up...")

        kv_storage = storage or MongoKeyValueStore(get_key_value_collection())
        store = NotificationStore(kv_storage)
        watcher = ExpiryWatcher(store)
        client = CustomerClient(kv_storage, on_update=watcher.set_customers, session=customer_session)

        app.state.notification_store = store
        app.state.expiry_watcher = watcher
        app.state.customer_client = client

        # Alert from the cached customers straight away, then refresh in the background
        watcher.set_customers(client.customers)
        refresh_task = asyncio.create_task(client.refresh_async())
        logger.info("✅ Certificate expiry watcher started")

        yield

        # Shutdown
        logger.info("🔄 FastAPI shutting down...")
        if not refresh_task.done():
            refresh_task.cancel()
            try:
                await refresh_task
            except asyncio.CancelledError:
                logger.info("Customer refresh cancelled")
        watcher.close()

    app = FastAPI(lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["*"]
    )

    app.middleware("http")(request_logging_middleware)

    app.include_router(notifications_router)
    app.include_router(customers_router)

    @app.get("/")
    def read_root():
        return {"message": "Server is running"}

    @app.get("/health")
    def health_check(request: Request):
        """Health check endpoint"""
        client = getattr(request.app.state, "customer_client", None)
        fetched = client.last_successful_fetch if client else None
        return {
            "status": "healthy",
            "message": "Certificate notifications backend is running",
            "last_customer_fetch": fetched.isoformat() if fetched else None
        }

    @app.head("/healthz")
    def healthz_head():
        """Lightweight liveness probe (HEAD) with no body"""
        return Response(status_code=200)

    return app


app = create_app()
