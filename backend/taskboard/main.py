"""FastAPI application entrypoint for the Taskboard backend.

Sets up the application, middleware, error handlers and routes and provides
a lifespan context manager that initializes the database on startup and
disposes the engine on shutdown.
"""

import asyncio
from contextlib import asynccontextmanager

import uvicorn
from api.routes.auth import router as auth_router
from api.routes.tasks import router as tasks_router
from config.config import settings
from core.errors import (
    AppError,
    app_error_handler,
    http_exception_handler,
    unhandled_error_handler,
    validation_error_handler,
)
from core.logging import logger
from db.session import engine, initialize_database
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

DB_INIT_ATTEMPTS = 5
DB_INIT_RETRY_SECONDS = 2


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan context to run startup and shutdown routines.

    On startup this creates the metadata tables, retrying a few times if the
    database isn't ready yet.

    Yields:
        None: Control is returned to FastAPI while the app is running.
    """

    logger.info("Starting up (environment={})", settings.ENVIRONMENT)

    for attempt in range(DB_INIT_ATTEMPTS):
        try:
            await initialize_database()
            break
        except Exception as e:
            # NOTE: the database container may still be starting.
            if attempt < DB_INIT_ATTEMPTS - 1:
                logger.warning(
                    "Database connection attempt {} failed: {}. Retrying..",
                    attempt + 1,
                    e,
                )
                await asyncio.sleep(DB_INIT_RETRY_SECONDS)
            else:
                logger.exception(
                    "Failed to create database tables after {} attempts",
                    DB_INIT_ATTEMPTS,
                )
                raise

    yield

    logger.info("Shutting down")
    await engine.dispose()


app = FastAPI(title="Taskboard API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(AppError, app_error_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_error_handler)
app.add_exception_handler(Exception, unhandled_error_handler)


@app.get("/")
async def root():
    """Return a simple health check / landing response."""

    return JSONResponse({"success": True, "message": "Taskboard API is running"})


app.include_router(auth_router, prefix="/api")
app.include_router(tasks_router, prefix="/api")


if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
