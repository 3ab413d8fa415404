"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlmodel import SQLModel

from core.config import settings
from core.exceptions import (
    AlreadySigned,
    DealError,
    DealLocked,
    DealNotFound,
    InvalidLineItem,
    InvalidOrExpiredToken,
    InvalidSignature,
    InvalidStatusTransition,
    QuoteNumberCollision,
)
from db.session import engine
from routers import deals, pdf, signature

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

ERROR_STATUS = {
    InvalidLineItem: 422,
    InvalidSignature: 400,
    InvalidOrExpiredToken: 401,
    DealNotFound: 404,
    AlreadySigned: 409,
    InvalidStatusTransition: 409,
    DealLocked: 409,
    QuoteNumberCollision: 409,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.environment == "development":
        # Production schemas are managed by Alembic (run_migrations.py)
        SQLModel.metadata.create_all(engine)
    yield


app = FastAPI(title="CRM Quotes API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DealError)
async def deal_error_handler(request: Request, exc: DealError):
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    if status_code >= 500:
        logger.error(f"Unhandled deal error on {request.url.path}: {exc}")
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


app.include_router(deals.router, prefix="/api", tags=["deals"])
app.include_router(pdf.router, prefix="/api", tags=["pdf"])
app.include_router(signature.router, prefix="/api")


@app.get("/health")
async def health():
    return {"status": "ok"}
