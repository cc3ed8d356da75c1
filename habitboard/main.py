import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from habitboard.chat.router import router as chat_router
from habitboard.config import settings
from habitboard.db import engine
from habitboard.tracker.errors import NotFoundError, StorageError, ValidationError
from habitboard.tracker.habits_router import router as habits_router
from habitboard.tracker.schema import ensure_schema
from habitboard.tracker.tracking_router import router as tracking_router
from habitboard.tracker.trends_router import router as trends_router

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("habitboard")


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.auto_create_schema:
        await ensure_schema(engine)
    yield


app = FastAPI(title="HabitBoard", version="0.1.0", lifespan=lifespan)
app.include_router(habits_router)
app.include_router(tracking_router)
app.include_router(trends_router)
app.include_router(chat_router)


@app.exception_handler(ValidationError)
async def validation_error(_: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_error(_: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error(_: Request, exc: StorageError) -> JSONResponse:
    logger.error("Storage failure: %s (cause: %r)", exc, exc.__cause__)
    return JSONResponse(status_code=503, content={"detail": "Storage unavailable"})


@app.get("/")
async def root() -> dict:
    return {
        "status": "ok",
        "docs": "/docs",
        "health": "/health",
        "habits": {
            "list": "/habits",
            "detail": "/habits/{id}",
            "deactivate": "/habits/{id}/deactivate",
            "palette": "/habits/palette",
        },
        "tracking": {
            "today": "/today",
            "day": "/tracking/{date}",
            "instance": "/tracking/{date}/habits/{id}",
        },
        "scores": {
            "day": "/scores/{date}",
            "finalize": "/scores/{date}/finalize",
            "note": "/scores/{date}/note",
        },
        "trends": {
            "daily": "/trends/daily",
            "habit": "/trends/habits/{id}",
            "streaks": "/trends/streaks",
        },
        "chat": {"send": "/chat", "history": "/chat/history"},
    }


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}
