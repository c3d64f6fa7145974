from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from datetime import datetime
import logging
import os
import uvicorn

from . import __version__, routers
from .database import init_db, check_db_connection
from .utils.limiter import limiter, rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:3000")

# Initialize FastAPI app
app = FastAPI(
    title="Eventhub API",
    description="Events and capacity-safe RSVPs",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[CLIENT_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Rate limiting: default limit on every /api route
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)


@app.on_event("startup")
async def startup_event():
    """Create tables when the app starts"""
    logger.info("Starting Eventhub API")
    init_db()


# Include routers
app.include_router(routers.auth.router, prefix="/api/auth", tags=["authentication"])
app.include_router(routers.event.router, prefix="/api/events", tags=["events"])
app.include_router(routers.rsvp.router, prefix="/api/rsvp", tags=["rsvp"])


@app.get("/")
@limiter.exempt
def root():
    return {"message": "Welcome to Eventhub API", "status": "running"}


@app.get("/health")
@app.get("/api/health")
@limiter.exempt
def health_check():
    db_status = check_db_connection()
    return {
        "status": "healthy" if db_status["sqlalchemy"] else "degraded",
        "service": "eventhub-api",
        "version": __version__,
        "database": "connected" if db_status["sqlalchemy"] else "disconnected",
        "timestamp": datetime.utcnow().isoformat(),
    }


if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
