"""
Mneme Sync Server - Main FastAPI Application

This module builds the FastAPI application for the Mneme sync coordinator.
It serves the health, per-project lock and tracked-file endpoints.
"""

import argparse
import logging
from logging.handlers import RotatingFileHandler
from datetime import datetime
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from mneme_server import __version__, runtime
from mneme_server.managers import ServerConfigManager
from mneme_server.file_storage import InitializeStorage
from mneme_server.locks import ResetLeases
from mneme_server.rate_limit import ResetRateLimits

logger = logging.getLogger(__name__)

MAX_BODY_BYTES = 10 * 1024 * 1024  # 10MB


class BodySizeLimitMiddleware:
    """
    Reject request bodies larger than max_bytes with 413

    A declared Content-Length above the cap is refused before the body is
    read. Bodies without one (chunked uploads) are counted as they stream
    in and cut off as soon as they pass the cap.
    """

    def __init__(self, app, max_bytes: int = MAX_BODY_BYTES):
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length")
        if declared and declared.isdigit() and int(declared) > self.max_bytes:
            response = JSONResponse(status_code=413, content={"error": "Request body too large"})
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive():
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    logger.warning(f"Request body passed {self.max_bytes} bytes; rejecting")
                    raise HTTPException(status_code=413, detail="Request body too large")
            return message

        await self.app(scope, limited_receive, send)


def SetupLogging(log_dir: Path, log_level: str = "INFO") -> Path:
    """
    Configure logging to write to both console and a rotating file

    Args:
        log_dir: Directory for log files (created if missing)
        log_level: Logging level name

    Returns:
        Path to the log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)

    # Create log filename with timestamp
    log_filename = log_dir / f"mneme-server-{datetime.now().strftime('%Y-%m-%d')}.log"

    logging.basicConfig(
        level=getattr(logging, str(log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            # Console handler
            logging.StreamHandler(),
            # File handler with rotation (max 10MB per file, keep 10 backup files)
            RotatingFileHandler(
                log_filename,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=10,
                encoding='utf-8'
            )
        ]
    )
    return log_filename


# ==================== Lifespan Events ====================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan event handler for startup and shutdown
    Prepares storage and starts with no leases held
    """
    # Startup
    logger.info("Mneme Sync Server starting up...")

    data_dir = runtime.config_manager.GetDataDir()
    InitializeStorage(data_dir)
    logger.info(f"File storage initialized at {data_dir}")

    ResetLeases()
    ResetRateLimits()

    if runtime.config_manager.GetApiKeys():
        logger.info("API key authentication enabled")
    else:
        logger.warning("No API keys configured - authentication disabled")

    logger.info("Server startup complete")

    yield

    # Shutdown
    logger.info("Mneme Sync Server shutting down...")
    # Leases are in memory only and are dropped here
    logger.info("Shutdown complete")


# ==================== FastAPI Application ====================

def CreateApp(config_manager: Optional[ServerConfigManager] = None) -> FastAPI:
    """
    Build the FastAPI application

    Args:
        config_manager: Loaded configuration (loaded from the server home if omitted)

    Returns:
        FastAPI application
    """
    if config_manager is None:
        config_manager = ServerConfigManager()
        config_manager.LoadConfig()
    runtime.config_manager = config_manager

    app = FastAPI(
        title="Mneme Sync Server",
        description="Lease and file coordinator for Mneme memory sync",
        version=__version__,
        lifespan=lifespan
    )

    # ==================== CORS Middleware ====================

    allowed_origins = config_manager.GetAllowedOrigins()
    if allowed_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=allowed_origins,
            allow_credentials=False,
            allow_methods=["GET", "POST", "PUT", "DELETE"],
            allow_headers=["Authorization", "Content-Type", "X-Client-Id"],
        )

    # ==================== Request Body Limit ====================

    app.add_middleware(BodySizeLimitMiddleware, max_bytes=MAX_BODY_BYTES)

    # ==================== Error Responses ====================

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None)
        )

    # ==================== Include Routers ====================

    from mneme_server.routes import status, locks, files

    app.include_router(status.router)
    app.include_router(locks.router)
    app.include_router(files.router)

    return app


# ==================== Main Entry Point ====================

def main():
    """
    Run the server using uvicorn
    """
    parser = argparse.ArgumentParser(description='Mneme Sync Server - memory sync coordinator')
    parser.add_argument('--host', help='Bind address (overrides config)')
    parser.add_argument('--port', type=int, help='Port (overrides config)')
    args = parser.parse_args()

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port

    config_manager = ServerConfigManager(overrides=overrides)
    config_manager.LoadConfig()

    log_file = SetupLogging(config_manager.home / "logs", config_manager.Get("log_level", "INFO"))
    logger.info(f"Starting Mneme Sync Server... (log file: {log_file})")

    app = CreateApp(config_manager)

    # reload=False: the app object is built here, not imported by uvicorn
    uvicorn.run(
        app,
        host=config_manager.Get("host", "0.0.0.0"),
        port=int(config_manager.Get("port", 3847)),
        reload=False,
        log_level=str(config_manager.Get("log_level", "INFO")).lower()
    )


if __name__ == "__main__":
    main()
