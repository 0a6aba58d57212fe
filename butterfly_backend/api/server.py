"""
Butterfly Ratings: HTTP API Server
==================================

JSON-over-HTTP binding for the ButterflyBackend.

Endpoints:
- GET  /                       -> Liveness message
- GET  /health                 -> Backend status
- GET  /butterflies            -> All butterflies
- GET  /butterflies/{id}       -> One butterfly, ratings ordered
- POST /butterflies            -> Create butterfly
- POST /butterflies/addRating  -> Merge a user's rating into butterfly + user
- GET  /users                  -> All users
- GET  /users/{id}             -> One user, ratings ordered
- POST /users                  -> Create user

Error mapping: NotFound -> 404, ValidationFailure -> 400,
PersistenceFailure and anything unexpected -> 500, HTTPException -> its status.
Backend calls run on the threadpool, so the store lock serializes writers.
Error bodies are always {"error": "<message>"}.

Usage:
    uvicorn butterfly_backend.api.server:app --reload
"""
import functools
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..contracts.base import NotFound, PersistenceFailure, ValidationFailure
from ..engine import ButterflyBackend, BackendConfig
from ..storage import RecordStoreConfig
from .schemas import validate_butterfly, validate_rating, validate_user

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal Server error"
DEFAULT_DB_PATH = "db.json"


# =============================================================================
# INFRASTRUCTURE SETUP
# =============================================================================

def config_from_env() -> BackendConfig:
    """Backend configuration from BUTTERFLY_* environment variables."""
    return BackendConfig(
        storage=RecordStoreConfig(
            backend_type=os.environ.get("BUTTERFLY_STORAGE_BACKEND", "file"),
            db_path=os.environ.get(
                "BUTTERFLY_DB_PATH", os.path.join(os.getcwd(), DEFAULT_DB_PATH)
            ),
        )
    )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def guarded(endpoint: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
    """Turn unexpected exceptions into a 500 with a generic message."""

    @functools.wraps(endpoint)
    async def wrapper(*args, **kwargs):
        try:
            return await endpoint(*args, **kwargs)
        except (NotFound, ValidationFailure, PersistenceFailure, HTTPException):
            raise
        except Exception:
            logger.exception(f"Unhandled error in {endpoint.__name__}")
            return _error(500, INTERNAL_ERROR_MESSAGE)

    return wrapper


async def _read_json(request: Request) -> Any:
    """Request body as JSON, or None when absent or malformed."""
    body = await request.body()
    if not body:
        return None
    try:
        return await request.json()
    except ValueError:
        return None


def _backend(request: Request) -> ButterflyBackend:
    backend = getattr(request.app.state, "backend", None)
    if backend is None:
        raise HTTPException(status_code=503, detail="Backend not initialized")
    return backend


def create_app(
    config: Optional[BackendConfig] = None,
    backend: Optional[ButterflyBackend] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    A ready backend may be passed in (tests); otherwise one is created
    from `config` (or the environment) when the app starts up.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "backend", None) is None:
            backend_config = config or config_from_env()
            logger.info(
                f"Initializing record store ({backend_config.storage.backend_type}) "
                f"at: {backend_config.storage.db_path}"
            )
            try:
                app.state.backend = ButterflyBackend(backend_config)
            except Exception as e:
                logger.error(f"FAILED to initialize backend: {e}")
                raise
            logger.info("Backend initialized successfully.")

        yield

        logger.info("Shutting down backend.")
        app.state.backend = None

    app = FastAPI(
        title="Butterfly Ratings API",
        version="1.0.0",
        description="Butterflies, users and the ratings between them",
        lifespan=lifespan
    )
    app.state.backend = backend

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # =========================================================================
    # ERROR MAPPING
    # =========================================================================

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return _error(404, exc.message)

    @app.exception_handler(ValidationFailure)
    async def validation_failure_handler(request: Request, exc: ValidationFailure):
        return _error(400, exc.message)

    @app.exception_handler(PersistenceFailure)
    async def persistence_failure_handler(request: Request, exc: PersistenceFailure):
        logger.error(f"Persistence failure on {request.url.path}: {exc.message}")
        return _error(500, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    # =========================================================================
    # ENDPOINTS
    # =========================================================================

    @app.get("/")
    async def root():
        return {"message": "Server is running!"}

    @app.get("/health")
    async def health_check(request: Request):
        """System status."""
        _backend(request)
        return {"status": "online"}

    # ----- BUTTERFLIES -----

    @app.get("/butterflies")
    @guarded
    async def list_butterflies(request: Request):
        return await run_in_threadpool(_backend(request).list_butterflies)

    @app.post("/butterflies/addRating")
    @guarded
    async def add_rating(request: Request):
        """Attach a user's rating (and optional review) to a butterfly."""
        submission = validate_rating(await _read_json(request))
        return await run_in_threadpool(
            _backend(request).submit_rating,
            butterfly_id=submission.id,
            user_id=submission.userId,
            rating=submission.rating,
            review=submission.review,
        )

    @app.get("/butterflies/{butterfly_id}")
    @guarded
    async def get_butterfly(butterfly_id: str, request: Request):
        return await run_in_threadpool(_backend(request).get_butterfly, butterfly_id)

    @app.post("/butterflies")
    @guarded
    async def create_butterfly(request: Request):
        fields = validate_butterfly(await _read_json(request))
        return await run_in_threadpool(
            _backend(request).create_butterfly,
            common_name=fields.commonName,
            species=fields.species,
            article=fields.article,
        )

    # ----- USERS -----

    @app.get("/users")
    @guarded
    async def list_users(request: Request):
        return await run_in_threadpool(_backend(request).list_users)

    @app.get("/users/{user_id}")
    @guarded
    async def get_user(user_id: str, request: Request):
        return await run_in_threadpool(_backend(request).get_user, user_id)

    @app.post("/users")
    @guarded
    async def create_user(request: Request):
        fields = validate_user(await _read_json(request))
        return await run_in_threadpool(_backend(request).create_user, username=fields.username)

    return app


app = create_app()
