from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from walletbook.api.routers import api_router
from walletbook.core.config import settings
from walletbook.core.exceptions import WalletbookError
from walletbook.core.logging import get_logger, setup_logging
from walletbook.db.init_db import create_tables, ensure_seed_data
from walletbook.db.session import SessionLocal

setup_logging(settings.log_level)
logger = get_logger(__name__)

app = FastAPI(title="walletbook API")

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api")


@app.exception_handler(WalletbookError)
async def walletbook_error_handler(request: Request, exc: WalletbookError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s %s", request.method, request.url.path, exc.message, exc.details)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.status_code, exc.message)
    return JSONResponse({"detail": exc.message, **exc.details}, status_code=exc.status_code)


@app.on_event("startup")
def on_startup() -> None:
    db = SessionLocal()
    try:
        if settings.auto_create_tables:
            create_tables(db)
        ensure_seed_data(db)
    finally:
        db.close()
