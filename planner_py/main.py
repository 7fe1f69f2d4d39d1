# planner_py/main.py
import logging
import uuid
from contextlib import asynccontextmanager
from time import perf_counter

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

# Load environment variables from .env if present
load_dotenv()

from planner_py.db.session import get_engine, init_db
from planner_py.routes.share_routes import get_share_kv, router as share_router
from planner_py.settings import get_settings

# -----------------------------------------------------------------------------
# Config / Logging
# -----------------------------------------------------------------------------
settings = get_settings()
DEFAULT_DEV_ORIGINS = ["http://localhost:3000", "http://127.0.0.1:3000"]

logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger("planner")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    purged = get_share_kv().purge_expired()
    logger.info({"event": "startup", "expired_shares_purged": purged})
    yield


# -----------------------------------------------------------------------------
# FastAPI app
# -----------------------------------------------------------------------------
app = FastAPI(title="Day Planner Share API", version="1.0", lifespan=lifespan)

app.add_middleware(GZipMiddleware, minimum_size=1024)

allow_origins = (
    [o.strip() for o in settings.ALLOW_ORIGINS.split(",") if o.strip()] if settings.ALLOW_ORIGINS
    else DEFAULT_DEV_ORIGINS
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=86400,
)


# -----------------------------------------------------------------------------
# Structured logging middleware
# -----------------------------------------------------------------------------
@app.middleware("http")
async def _request_logging(request: Request, call_next):
    rid = str(uuid.uuid4())
    start = perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
        response.headers["X-Request-ID"] = rid
        return response
    except Exception:
        logger.exception({"rid": rid, "path": str(request.url.path)})
        raise
    finally:
        dur_ms = int((perf_counter() - start) * 1000)
        logger.info({"rid": rid, "path": str(request.url.path), "status": status, "dur_ms": dur_ms})


# -----------------------------------------------------------------------------
# Global exception envelope
# -----------------------------------------------------------------------------
@app.exception_handler(Exception)
async def _unhandled_ex(request: Request, exc: Exception):
    logger.exception({"path": str(request.url.path)})
    return JSONResponse(status_code=500, content={"error": "internal_error"})


app.include_router(share_router, prefix="/api")


# -----------------------------------------------------------------------------
# Health / Readiness
# -----------------------------------------------------------------------------
@app.get("/healthz")
def healthz():
    return {"ok": True, "service": "Day Planner Share API v1.0"}


@app.get("/readyz")
def readyz():
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"ready": True}
    except Exception as e:
        return JSONResponse(status_code=503, content={"ready": False, "error": str(e)})
