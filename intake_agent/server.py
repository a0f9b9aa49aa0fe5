"""FastAPI server for the financial application intake agent.

Run with:
    uvicorn intake_agent.server:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

import logging
import uuid
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from intake_agent.api.routes import router
from intake_agent.config import CORS_ORIGINS, DYNAMODB_TABLE, SERVER_HOST, SERVER_PORT
from intake_agent.errors import IntakeError
from intake_agent.extraction import LLMExtractor
from intake_agent.services.llm_client import build_chat_llm, build_extraction_llm
from intake_agent.services.session_store import create_session_store

# ── Logging ──────────────────────────────────────────────────────────
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-8s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan: initialise / tear-down shared resources ────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Start-up: build the session store and model clients once.

    These are stateless clients; per-session state always comes from the
    store, never from app state.
    """
    logger.info("Initialising session store and LLM clients…")
    application.state.store = create_session_store(DYNAMODB_TABLE)
    application.state.chat_llm = build_chat_llm()
    application.state.extractor = LLMExtractor(build_extraction_llm())
    logger.info("Intake agent ready.")
    yield


# ── FastAPI application ──────────────────────────────────────────────
app = FastAPI(
    title="Financial Application Intake Agent",
    description=(
        "Conversational intake for financial applications — collects "
        "personal, educational, professional and family details."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# ── CORS (open by default for the chat front-end) ───────────────────
_allow_all = "*" in CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if _allow_all else CORS_ORIGINS,
    allow_credentials=not _allow_all,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request-ID middleware ────────────────────────────────────────────
@app.middleware("http")
async def add_request_id(request: Request, call_next) -> Response:
    """Attach a unique request ID to every request for log correlation.

    The ID is echoed in the ``X-Request-ID`` response header so the client
    can quote it when reporting a problem.
    """
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    request.state.request_id = request_id
    logger.info("[%s] %s %s", request_id, request.method, request.url.path)
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


# ── Error envelope: {"error": ..., "timestamp": ...} ─────────────────

def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


@app.exception_handler(IntakeError)
async def handle_intake_error(request: Request, exc: IntakeError) -> JSONResponse:
    request_id = getattr(request.state, "request_id", "?")
    logger.info("[%s] %d %s", request_id, exc.status_code, exc.message)
    return _error_response(exc.status_code, exc.message)


@app.exception_handler(StarletteHTTPException)
async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = sorted({str(err["loc"][-1]) for err in exc.errors() if err.get("loc")})
    message = "Invalid request" + (f": {', '.join(fields)}" if fields else "")
    return _error_response(400, message)


# ── Register routes ──────────────────────────────────────────────────
app.include_router(router)


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "service": "Financial Application Intake Agent",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health",
    }


# ── CLI entry point ──────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("Starting intake API server on %s:%d", SERVER_HOST, SERVER_PORT)
    uvicorn.run(
        "intake_agent.server:app",
        host=SERVER_HOST,
        port=SERVER_PORT,
        reload=True,
    )
