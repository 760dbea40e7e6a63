"""FastAPI application entrypoint. No business logic; only wiring and middleware."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from formula_access.api.error_handling import register_exception_handlers
from formula_access.api.rate_limit import FixedWindowRateLimiter
from formula_access.api.v1 import router as v1_router
from formula_access.core.config import settings

app = FastAPI(
    title="Formula PM Access API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"] if settings.APP_ENV == "dev" else [],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Replaceable with any object exposing hit(key, limit, window_seconds)
app.state.rate_limiter = FixedWindowRateLimiter()

register_exception_handlers(app)
app.include_router(v1_router, prefix=settings.API_V1_PREFIX)


@app.get("/")
def root() -> dict[str, str]:
    """Root route; minimal payload for discovery."""
    return {"message": "Formula PM Access API"}
