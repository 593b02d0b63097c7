# ─────────────────────────────────────────────────────────────────
# main.py - Application Entry Point
#
# Run with:  uvicorn main:app --reload
#
# This file only wires things together:
#   - creates the FastAPI app and CORS middleware
#   - on startup creates missing tables and starts the alert email
#     loop; on shutdown cancels it
#   - turns errors into {"error": ...} JSON responses
#   - includes the routers from routes/
# ─────────────────────────────────────────────────────────────────

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

import alerts  # noqa: F401  (configures logging)
from alerts import email_sender
from config import settings
from database import engine, gateway, init_db
from errors import AgroGoError
from routes import data, devices, email, users
from timer import run_distribution_loop

logger = logging.getLogger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db(engine)

    task = None
    if settings.enable_email_scheduler:
        task = asyncio.create_task(
            run_distribution_loop(
                gateway,
                email_sender,
                settings.alert_sender,
                interval=settings.email_distribution_interval,
                batch_size=settings.email_batch_size,
                delay=settings.email_send_delay,
            )
        )
        logger.info(f"⏱️  Email distribution every {settings.email_distribution_interval}s")

    yield

    if task is not None:
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass


app = FastAPI(
    title="AgroGo API",
    description="Backend for the AgroGo IoT gardening platform",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────────
# ERROR HANDLERS
# ─────────────────────────────────────────────────────────────────

@app.exception_handler(AgroGoError)
async def handle_agrogo_error(request: Request, exc: AgroGoError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError):
    problems = "; ".join(
        f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()
    )
    return JSONResponse(status_code=400, content={"error": f"Invalid request: {problems}"})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ─────────────────────────────────────────────────────────────────
# ROUTES
# ─────────────────────────────────────────────────────────────────

app.include_router(data.router)
app.include_router(users.router)
app.include_router(email.router)
app.include_router(devices.router)


@app.get("/")
def root():
    return {
        "message": "AgroGo API is running",
        "version": "1.0.0",
        "docs": "/docs"
    }
