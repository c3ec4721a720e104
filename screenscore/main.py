from fastapi import FastAPI, Request, HTTPException
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from dotenv import load_dotenv
from screenscore.routes import assistant, auth, media, reviews, watchlist
from screenscore.middleware.security import SecurityHeadersMiddleware
from screenscore.services.tmdb_service import get_catalog
from screenscore.utils.security import ensure_session_secret
import os
import logging

# Load environment variables
load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


# ============================================
# Application Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifespan events

    Startup:
    - Refuse to start without a session signing secret
    - Log configuration summary

    Shutdown:
    - Log shutdown
    """
    ensure_session_secret()

    logger.info("=" * 60)
    logger.info("🚀 ScreenScore API Starting...")
    logger.info(f"   Environment: {os.getenv('ENVIRONMENT', 'development')}")
    logger.info(f"   CORS Origins: {len(allowed_origins)} configured")
    logger.info(f"   TMDB key: {'configured' if os.getenv('TMDB_API_KEY') else 'MISSING'}")
    logger.info(f"   LLM key: {'configured' if os.getenv('LLM_API_KEY') else 'MISSING'}")
    logger.info("=" * 60)

    yield

    logger.info("=" * 60)
    logger.info("🛑 ScreenScore API Shutting Down...")
    logger.info("=" * 60)


# Create FastAPI app with lifespan handler
app = FastAPI(
    title="ScreenScore API",
    description="Movie and TV discovery with reviews, watchlists and an AI movie guide, backed by TMDB",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)

# ============================================
# Security Configuration
# ============================================

# CORS - Whitelist allowed origins; credentials on so the session cookie travels
allowed_origins = [
    "http://localhost:3000",
    "http://localhost:3001",
    "http://localhost:5173",
    "http://localhost:9002",
]
if production_url := os.getenv("FRONTEND_URL"):
    allowed_origins.append(production_url)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(SecurityHeadersMiddleware, hsts=os.getenv("ENVIRONMENT") == "production")

# Trusted Hosts - Production only
if os.getenv("ENVIRONMENT") == "production":
    if trusted_hosts := [h for h in os.getenv("TRUSTED_HOSTS", "").split(",") if h]:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)


# ============================================
# Exception Handlers
# ============================================

def _cors_headers(request: Request) -> dict:
    """CORS headers for error responses that bypass the CORS middleware"""
    origin = request.headers.get("origin")
    if origin not in allowed_origins:
        return {}
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Credentials": "true",
    }


def _describe_errors(errors: list) -> str:
    """One readable line from the first validation error"""
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    message = first.get("msg", "Invalid value")
    return f"{'.'.join(location)}: {message}" if location else message


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers={**(exc.headers or {}), **_cors_headers(request)},
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed or missing fields are a 400, not FastAPI's default 422"""
    errors = exc.errors()
    logger.info(f"Validation failed on {request.method} {request.url.path}: {_describe_errors(errors)}")
    return JSONResponse(
        status_code=400,
        content={"detail": _describe_errors(errors), "errors": jsonable_encoder(errors)},
        headers=_cors_headers(request),
    )


@app.exception_handler(ValidationError)
async def model_validation_handler(request: Request, exc: ValidationError):
    """Schemas built inside handlers (e.g. search queries) fail the same way"""
    errors = exc.errors(include_url=False)
    return JSONResponse(
        status_code=400,
        content={"detail": _describe_errors(errors), "errors": jsonable_encoder(errors)},
        headers=_cors_headers(request),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Catch-all: log the traceback, hide details from the client"""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
        headers=_cors_headers(request),
    )


# ============================================
# Routes
# ============================================

@app.get("/", tags=["Health"])
async def root():
    """Basic health check"""
    return {
        "message": "ScreenScore API",
        "version": API_VERSION,
        "status": "healthy",
        "docs": "/docs"
    }

@app.get("/health", tags=["Health"])
async def health_check():
    """Detailed health check for monitoring"""
    return {
        "status": "healthy",
        "api_version": API_VERSION,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "catalog_cache": get_catalog().response_cache.get_stats(),
    }

app.include_router(auth.router)
app.include_router(reviews.router)
app.include_router(watchlist.router)
app.include_router(media.router)
app.include_router(media.people_router)
app.include_router(assistant.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_level="info"
    )
