"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from labx.config import settings
from labx.database import Base, engine
from labx.errors import LabxError

# Import routers
from labx.routers import consultations, users, chat, lab_bookings

# Import all models so Base.metadata knows about them
from labx.models.user import User                     # noqa: F401
from labx.models.consultation import Consultation     # noqa: F401
from labx.models.chat_message import ChatMessage      # noqa: F401
from labx.models.lab_booking import LabBooking        # noqa: F401

# Installs the change-feed session hooks
from labx.services import change_feed                 # noqa: F401

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create database tables on startup (for SQLite dev mode)."""
    if settings.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(
    title="LabX Consultations",
    description="Consultation booking between students and staff, with chat and lab booking",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LabxError)
async def labx_error_handler(request: Request, exc: LabxError):
    """Typed service failures become JSON errors with the class's status code."""
    logger.info("%s on %s %s: %s", type(exc).__name__, request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.to_detail(), "error": type(exc).__name__},
    )


# Register routers
app.include_router(consultations.router, prefix="/api/consultations", tags=["Consultations"])
app.include_router(users.router, prefix="/api/users", tags=["Users"])
app.include_router(chat.router, prefix="/api/chat", tags=["Chat"])
app.include_router(lab_bookings.router, prefix="/api/lab-bookings", tags=["LabBookings"])


@app.get("/api/health")
def health_check():
    return {"status": "ok"}
