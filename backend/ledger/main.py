"""
Publication Ledger — FastAPI Backend
Tracks products published to social/content channels, their per-channel
listing lifecycle, lead funnel events and campaigns, and serves the
dashboard rollups computed from them.
"""

import logging
from contextlib import asynccontextmanager
from starlette.requests import Request
from starlette.responses import JSONResponse
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from ledger.auth import require_api_key
from ledger.config import get_settings
from ledger.database import create_engine, init_db, check_db_connection
from ledger.dependencies import build_services, get_facade
from ledger.errors import LedgerError
from ledger.facade import QueryFacade
from ledger.routers import reports, products, listings, leads, campaigns

settings = get_settings()

logging.basicConfig(level=settings.log_level.upper())
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Publication Ledger...")
    engine = create_engine(settings)
    app.state.engine = engine
    app.state.services = build_services(engine, settings)
    try:
        await init_db(engine)
        logger.info("Database initialized — all tables ready.")
    except Exception as e:
        logger.error(f"Startup failed (DB/init): {e}", exc_info=True)
        # Still yield so app can serve /api/health (degraded) and logs are visible
    yield
    logger.info("Shutting down...")
    await engine.dispose()


app = FastAPI(
    title="Publication Ledger",
    description="Product publication tracking, lead funnel and dashboard rollups",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError) -> JSONResponse:
    """Every ledger failure leaves as {error, message} with its category's status."""
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed [{exc.category}]: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected [{exc.category}]: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


# ── Register Routers ─────────────────────────────────────────────────
_auth = [Depends(require_api_key)]

# Public storefront reads: feed, headline stats, health
# reports first: /api/products/public must win over /api/products/{product_id}
app.include_router(reports.router, prefix="/api", tags=["Reports"])
# Operator reads and all writes need the API key
app.include_router(reports.operator_router, prefix="/api", tags=["Reports"], dependencies=_auth)
app.include_router(products.router, prefix="/api/products", tags=["Products"], dependencies=_auth)
app.include_router(listings.router, prefix="/api/listings", tags=["Listings"], dependencies=_auth)
app.include_router(leads.router, prefix="/api/leads", tags=["Leads"], dependencies=_auth)
app.include_router(campaigns.router, prefix="/api/campaigns", tags=["Campaigns"], dependencies=_auth)


@app.get("/api/health")
async def health_check(request: Request):
    db_ok = await check_db_connection(getattr(request.app.state, "engine", None))
    return {
        "status": "healthy" if db_ok else "degraded",
        "service": "Publication Ledger",
        "database": "connected" if db_ok else "disconnected",
    }


@app.get("/api/env")
async def environment(facade: QueryFacade = Depends(get_facade)):
    return facade.environment_probe()
