"""
HTTP API over the schedule_entries table.
Failures are returned as {"error": message} with the status code of the
error class: 400 validation, 404 not found, 500 store.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from typing import List

from util.logging import logger

from .schemas import (
    ScheduleEntryCreate,
    ScheduleEntryUpdate,
    ScheduleEntryResponse,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
)
from ..core import dao
from ..core.db import health_check
from ..core.errors import NotFoundError, StoreError, ValidationError
from ..core.config import VERSION, debug_enabled, get_cors_origins

# Initialize the FastAPI application
app = FastAPI(
    title="Schedule Table API",
    version=VERSION,
    description="Weekly schedule entries with change-feed driven views",
    docs_url="/docs" if debug_enabled() else None,
    redoc_url="/redoc" if debug_enabled() else None
)

# Browser origins are opt-in through CORS_ORIGINS
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return _error(400, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    messages = []
    for error in exc.errors():
        field = error.get("loc", ["body"])[-1]
        # Messages raised from field validators carry a "Value error, " prefix
        msg = str(error.get("msg", "invalid value")).replace("Value error, ", "")
        messages.append(f"{field}: {msg}")
    return _error(400, "; ".join(messages) or "Invalid request body")


@app.exception_handler(NotFoundError)
async def not_found_error_handler(request: Request, exc: NotFoundError):
    return _error(404, exc.message)


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError):
    logger.error(f"Store error on {request.method} {request.url.path}: {exc.message}")
    return _error(500, exc.message)


@app.get("/health", response_model=HealthResponse)
def health_check_endpoint():
    """Check system health."""
    db_health = health_check()
    entry_count = dao.count_entries() if db_health else 0

    return HealthResponse(
        status="healthy" if db_health else "unhealthy",
        version=VERSION,
        db_health=db_health,
        entry_count=entry_count
    )


@app.get("/schedule", response_model=List[ScheduleEntryResponse], responses=ERROR_RESPONSES)
def list_schedule():
    """List all entries, newest first."""
    return [ScheduleEntryResponse(**entry.to_dict()) for entry in dao.list_entries(newest_first=True)]


@app.post("/schedule", response_model=ScheduleEntryResponse, responses=ERROR_RESPONSES)
def create_schedule_entry(request: ScheduleEntryCreate):
    """Create one entry and return it with its generated id and timestamp."""
    entry = dao.create_entry(request.model_dump())
    return ScheduleEntryResponse(**entry.to_dict())


@app.get("/schedule/{entry_id}", response_model=ScheduleEntryResponse, responses=ERROR_RESPONSES)
def get_schedule_entry(entry_id: str):
    entry = dao.get_entry(entry_id)
    return ScheduleEntryResponse(**entry.to_dict())


@app.put("/schedule/{entry_id}", response_model=ScheduleEntryResponse, responses=ERROR_RESPONSES)
def update_schedule_entry(entry_id: str, request: ScheduleEntryUpdate):
    """Apply a partial update. Only fields present in the body are changed."""
    entry = dao.update_entry(entry_id, request.model_dump(exclude_unset=True))
    return ScheduleEntryResponse(**entry.to_dict())


@app.delete("/schedule/{entry_id}", response_model=DeleteResponse, responses=ERROR_RESPONSES)
def delete_schedule_entry(entry_id: str):
    dao.delete_entry(entry_id)
    return DeleteResponse(success=True)
