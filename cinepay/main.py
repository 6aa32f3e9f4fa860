# cinepay/main.py
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cinepay.core.config import settings
from cinepay.core.dispatcher import dispatcher
from cinepay.core.exception_handler import setup_exception_handlers
from cinepay.database import models  # noqa: F401  (registers tables on Base)
from cinepay.database.database import Base, engine
from cinepay.deps.payments import get_gateway
from cinepay.routers import auth_routes, payment_routes

logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
logger = logging.getLogger(__name__)


# Lifespan events (startup/shutdown)
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Ensure DB models/tables exist
    Base.metadata.create_all(bind=engine)
    logger.info("Booking store: %s", settings.BOOKING_STORE)

    gateway = get_gateway()
    if gateway.configured:
        logger.info("Razorpay configured (key_id=%s)", gateway.key_id)
    else:
        logger.warning("Razorpay not configured; order and refund endpoints will return 503")
    if not settings.RAZORPAY_WEBHOOK_SECRET:
        logger.warning("RAZORPAY_WEBHOOK_SECRET not set; webhooks will be accepted unauthenticated")

    yield

    # Shutdown: let in-flight notifications finish, cancel the rest
    try:
        await dispatcher.drain(timeout=2.0)
    except asyncio.CancelledError:
        logger.debug("Shutdown cancelled during notification drain")
    gateway.close()
    logger.info("Graceful shutdown complete")


# Build FastAPI app
app = FastAPI(
    title=settings.PROJECT_NAME,
    description="Payment APIs for the movie booking system",
    version=settings.VERSION,
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

setup_exception_handlers(app)

# Register routers under the /api prefix the frontend expects
app.include_router(auth_routes.router, prefix="/api")
app.include_router(payment_routes.router, prefix="/api")


@app.get("/")
def root():
    return {"message": "CinePay API is running"}
