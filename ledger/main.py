"""
FastAPI application and entry point.

This module creates and configures the ledger API:
  1. Lifespan manager — logging setup, ledger service wiring, engine disposal
  2. CORS middleware — allows frontend origins to make cross-origin requests
  3. Exception handlers — maps ledger errors to HTTP responses
  4. Router registration — accounts, transactions/payments, payees

Running locally:
    uvicorn ledger.main:app --reload

No tables are created at startup: the durable store provisions its own
schema the first time a call finds it missing.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ledger.config import settings
from ledger.exceptions import register_exception_handlers
from ledger.logging_config import setup_logging
from ledger.routers import accounts, payees, transactions
from ledger.services.ledger_service import build_ledger_service


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup:
      Configures logging and builds the single LedgerService (and with it the
      one VolatileStore instance) for the lifetime of the process.

    Shutdown:
      Disposes of the database engine, closing all connections cleanly.
    """
    # --- Startup ---
    setup_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    app.state.ledger = build_ledger_service(settings)
    yield
    # --- Shutdown ---
    await app.state.ledger.close()


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Single-entry balance ledger: accounts, credits/debits, payments and payees",
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

register_exception_handlers(app)

# ---------------------------------------------------------------------------
# Routers
# ---------------------------------------------------------------------------

app.include_router(accounts.router, prefix="/accounts", tags=["Accounts"])
app.include_router(transactions.router, tags=["Transactions"])
app.include_router(payees.router, prefix="/payees", tags=["Payees"])


# ---------------------------------------------------------------------------
# Health check
# ---------------------------------------------------------------------------

@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint for deployment probes.

    `storage` reports whether a durable store is configured ("durable") or
    the service runs on process memory only ("volatile").
    """
    ledger = getattr(app.state, "ledger", None)
    storage = ledger.storage_mode if ledger is not None else "unknown"
    return {"status": "ok", "version": settings.APP_VERSION, "storage": storage}
