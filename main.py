import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from lettertrack.config import settings
from lettertrack.database import close_db, init_db
from lettertrack.middleware import OriginCheckMiddleware, RequestSizeLimitMiddleware
from lettertrack.routes import bureaus, health, intake, letters

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_db()
    if not settings.mistral_api_key:
        logger.warning("MISTRAL_API_KEY not set: scanning letters is disabled")
    if not settings.mail_relay_url:
        logger.warning("MAIL_RELAY_URL not set: letters cannot be emailed")
    yield
    await close_db()


app = FastAPI(
    title="Letter Tracking API",
    description="Log incoming letters, route them to bureaus and dispatch them by email",
    version="0.1.0",
    lifespan=lifespan,
)

# Outermost last: CORS, then origin check, then body size
app.add_middleware(RequestSizeLimitMiddleware)
app.add_middleware(OriginCheckMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(letters.router, prefix="/api/letters", tags=["letters"])
app.include_router(bureaus.router, prefix="/api/bureaus", tags=["bureaus"])
app.include_router(intake.router, prefix="/api/intake", tags=["intake"])
app.include_router(health.router, prefix="/api/health", tags=["health"])
