"""
Booking Service FastAPI Application

Seat inventory, payment and invoice endpoints plus the hold sweeper.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import anyio
from fastapi import FastAPI
from fastapi.responses import RedirectResponse

from src.platform.app_factory import create_app
from src.platform.config.core_setting import settings
from src.platform.config.di import container
from src.platform.config.wire_modules import WIRE_MODULES
from src.platform.database.db_setting import create_db_and_tables, dispose_engine, get_engine
from src.platform.logging.loguru_io import Logger
from src.platform.observability.tracing import TracingConfig
from src.service.booking.driving_adapter.background.hold_sweeper import create_hold_sweeper


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan: startup and shutdown."""
    Logger.base.info('🚀 [Booking Service] Starting up...')

    tracing = None
    if settings.ENABLE_TRACING:
        tracing = TracingConfig.from_settings()
        tracing.setup()
        tracing.instrument_sqlalchemy(engine=get_engine())
        Logger.base.info('📊 [Booking Service] OpenTelemetry tracing configured')

    container.wire(modules=WIRE_MODULES)
    Logger.base.info('🔌 [Booking Service] Dependency injection wired')

    if settings.AUTO_CREATE_TABLES:
        await create_db_and_tables()
        Logger.base.info('🗄️  [Booking Service] Tables ensured')

    async with anyio.create_task_group() as tg:
        if settings.ENABLE_HOLD_SWEEPER:
            await create_hold_sweeper().start(task_group=tg)

        Logger.base.info('✅ [Booking Service] Ready to serve requests')
        yield

        Logger.base.info('🛑 [Booking Service] Shutting down...')
        tg.cancel_scope.cancel()

    await container.payment_gateway().aclose()
    Logger.base.info('💳 [Booking Service] Payment gateway client closed')

    await dispose_engine()
    Logger.base.info('🗄️  [Booking Service] Database engine disposed')

    if tracing:
        tracing.shutdown()
        Logger.base.info('📊 [Booking Service] Tracing shutdown complete')

    container.unwire()

    Logger.base.info('👋 [Booking Service] Shutdown complete')


app = create_app(lifespan=lifespan)


@app.get('/')
async def root() -> RedirectResponse:
    """Root endpoint - redirect to docs."""
    return RedirectResponse(url='/docs')
