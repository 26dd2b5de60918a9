"""
Resort PMS application entry point
Booking and room lifecycle orchestration behind a FastAPI boundary
"""
import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from resortpms import __version__
from resortpms.config import settings
from resortpms.database import init_db
from resortpms.exceptions import DomainError
from resortpms.routers import rooms, bookings, housekeeping, maintenance, orders, payments, guests

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle"""
    configure_logging()
    init_db()

    from resortpms.services.event_handlers import register_event_handlers
    register_event_handlers()

    logger.info(f"{settings.APP_NAME} {__version__} started")
    yield


app = FastAPI(
    title=settings.APP_NAME,
    description="Booking and room lifecycle orchestration for a single resort property",
    version=__version__,
    debug=settings.DEBUG,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    """Typed failures become {"detail", "code"} with the error's HTTP status"""
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(rooms.router)
app.include_router(bookings.router)
app.include_router(housekeeping.router)
app.include_router(maintenance.router)
app.include_router(orders.router)
app.include_router(payments.router)
app.include_router(guests.router)


@app.get("/")
def root():
    return {
        "name": settings.APP_NAME,
        "version": __version__,
        "check_in_time": settings.DEFAULT_CHECK_IN_TIME,
        "check_out_time": settings.DEFAULT_CHECK_OUT_TIME,
    }


@app.get("/health")
def health_check():
    return {"status": "healthy"}
