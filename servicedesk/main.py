import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from servicedesk.db.init_db import create_database
from servicedesk.db.base import Base
from servicedesk.db.session import engine
from servicedesk.core.config import settings
from servicedesk.core.errors import BookingEngineError, status_code_for, STATUS_UNPROCESSABLE
from servicedesk.core.service_day import InvalidTimestampError
from servicedesk.schemas.common import ErrorResponse
from servicedesk.api.v1.router import api_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: Ensure DB exists and create tables
    create_database()
    Base.metadata.create_all(bind=engine)
    yield


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)

# Set all CORS enabled origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(BookingEngineError)
async def booking_engine_error_handler(request: Request, exc: BookingEngineError):
    status_code = status_code_for(exc)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.info("%s %s rejected (%s): %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=exc.code, message=exc.message).model_dump(),
    )


@app.exception_handler(InvalidTimestampError)
async def invalid_timestamp_handler(request: Request, exc: InvalidTimestampError):
    return JSONResponse(
        status_code=STATUS_UNPROCESSABLE,
        content=ErrorResponse(error="invalid_timestamp", message=str(exc)).model_dump(),
    )


app.include_router(api_router, prefix=settings.API_V1_STR)


@app.get("/")
def read_root():
    return {"service": settings.PROJECT_NAME}
