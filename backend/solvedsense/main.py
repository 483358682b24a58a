# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import os
import logging
import sentry_sdk
import uvicorn
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solvedsense import __version__
from solvedsense.dependencies.engine import close_analytics_engine
from solvedsense.middleware.rate_limiter import RateLimitMiddleware
from solvedsense.routers import analytics, users
from solvedsense.utils.cache import get_cache

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Sentry for error monitoring
sentry_dsn = os.getenv("SENTRY_DSN")
if sentry_dsn:
    sentry_sdk.init(
        dsn=sentry_dsn,
        traces_sample_rate=0.1,
        environment=os.getenv("ENVIRONMENT", "development"),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler - runs on startup and shutdown."""
    logger.info("Response cache backend: %s", get_cache().backend)
    logger.info("Explainer backend: %s", os.getenv("EXPLAINER_BACKEND", "template"))

    yield

    logger.info("Shutting down...")
    await close_analytics_engine()


tags_metadata = [
    {
        "name": "analytics",
        "description": "Weakness, progress, difficulty, tier prediction and adaptive recommendations for a solved.ac handle.",
    },
    {
        "name": "users",
        "description": "solved.ac profile with activity averages.",
    },
]

app = FastAPI(
    title="SolvedSense API",
    description="""
## SolvedSense Adaptive Learning Analytics

Turns a competitive programmer's solved.ac history into diagnostics and a study plan.

### Features
- **Weakness Analysis** - Weak tags ranked by accuracy, with severity and time to improve
- **Progress Tracking** - Progress to the next tier, strengths and activity
- **Difficulty Mastery** - Mastery of the current tier and struggling levels
- **Adaptive Recommendations** - Today / this week / this month, tuned by trend and context
- **Tier Prediction** - Time-to-next-tier estimate with confidence and blockers

### Rate Limits
100 requests per 15 minutes per client by default (`RATE_LIMIT_MAX_REQUESTS`,
`RATE_LIMIT_WINDOW_SECONDS`).
    """,
    version=__version__,
    lifespan=lifespan,
    openapi_tags=tags_metadata,
)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:3001",
]

# Allow additional origins from environment (deployments)
extra_origins = os.getenv("CORS_ALLOWED_ORIGINS", "")
if extra_origins:
    ALLOWED_ORIGINS.extend([o.strip() for o in extra_origins.split(",") if o.strip()])

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type", "Accept"],
)

# Rate limiting middleware
app.add_middleware(RateLimitMiddleware)

# Include routers
app.include_router(analytics.router)
app.include_router(users.router)


@app.get("/")
def root():
    return {
        "message": "SolvedSense API",
        "version": __version__,
        "docs": "/docs"
    }


@app.get("/health")
def health_check():
    return {"status": "healthy", "cache": get_cache().backend}


def run() -> None:
    """Serve the API with uvicorn; host and port come from HOST and PORT."""
    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    run()
