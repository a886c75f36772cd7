# Copyright (C) 2024 LeFlow Contributors
# SPDX-License-Identifier: GPL-3.0-or-later

"""LeFlow Server - Main FastAPI application."""

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from leflow_server.config import settings
from leflow_server.database import async_session_maker, init_db
from leflow_server.errors import AppError
from leflow_server.routers import admin, auth, cms, contact, giveaway, user
from leflow_server.services.cms import seed_default_content
from leflow_server.services.email import Mailer, MailerConfig

logger = logging.getLogger(__name__)


def _get_cors_origins() -> list[str]:
    raw = (settings.cors_origins or "*").strip()
    if raw == "*":
        return ["*"]
    return [o.strip() for o in raw.split(",") if o.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    await init_db()
    async with async_session_maker() as db:
        await seed_default_content(db)
        await db.commit()
    logger.info("Email backend: %s", settings.email_backend)
    yield
    # shutdown


app = FastAPI(
    title="LeFlow Server",
    description="Studio LeFlow site API: accounts, monthly giveaway, contact and CMS",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)
app.state.mailer = Mailer(MailerConfig.from_settings(settings))

app.add_middleware(
    CORSMiddleware,
    allow_origins=_get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log method, path, status, and duration for each request (no body or auth headers)."""
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    logger.info("%s %s %s %.1fms", request.method, request.url.path, response.status_code, duration_ms)
    return response


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [{k: v for k, v in e.items() if k != "ctx"} for e in exc.errors()]
    return JSONResponse(
        status_code=400,
        content={"detail": "Validacija nije uspela", "errors": jsonable_encoder(errors)},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Greška na serveru"})


app.include_router(auth.router, prefix="/api")
app.include_router(user.router, prefix="/api")
app.include_router(giveaway.router, prefix="/api")
app.include_router(admin.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(cms.router, prefix="/api")


@app.get("/api/health")
async def health():
    """Health check for load balancers."""
    return {"status": "ok"}
