import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

import config
import db
from processing.processing import processing_router
from services.payment import HttpPaymentGateway, PaymentProvider
from web.api_router import api_router
from web.errors import register_exception_handlers

logger = logging.getLogger(__name__)


def create_app(payment_provider: PaymentProvider | None = None,
               session_maker: async_sessionmaker[AsyncSession] | None = None) -> FastAPI:
    """
    Build the HTTP application.

    Without arguments the app talks to the configured database and payment
    gateway; tests pass their own session maker and a fake provider.
    """
    payment_provider = payment_provider or HttpPaymentGateway(
        config.PAYMENT_API_URL,
        config.PAYMENT_API_KEY,
        config.PAYMENT_API_TIMEOUT_SECONDS,
    )
    session_maker = session_maker or db.session_maker

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await db.create_db_and_tables(session_maker.kw.get("bind") or db.engine)
        await app.state.payment_provider.open()
        logger.info(f"[Startup] Shop API ready (environment {config.RUNTIME_ENVIRONMENT.value}, "
                    f"currency {config.CURRENCY})")

        yield

        # Shutdown
        logger.warning("Shutting down..")
        await app.state.payment_provider.close()
        logger.warning("Bye!")

    app = FastAPI(title="Shop API", lifespan=lifespan)
    app.state.payment_provider = payment_provider
    app.state.session_maker = session_maker

    register_exception_handlers(app)
    app.include_router(api_router)
    app.include_router(processing_router)

    # Health check endpoint (for container monitoring)
    @app.get("/health")
    async def health_check():
        return {"status": "healthy"}

    return app
