import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from taskai import errors
from taskai.config import CORS_ORIGINS, HOST, LOG_LEVEL, PORT
from taskai.database import Store
from taskai.routers import auth, dashboard, tasks
from taskai.suggestions import TaskSuggester

logger = logging.getLogger(__name__)

# Status code per domain error; subclasses are checked before their bases
ERROR_STATUS = [
    (errors.EmailAlreadyRegisteredError, 400),
    (errors.ValidationError, 422),
    (errors.NotFoundError, 404),
    (errors.AuthenticationRequiredError, 401),
    (errors.UpstreamUnavailableError, 503),
]


def _status_for(exc: errors.TaskAIError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


def create_app(store: Store = None, suggester: TaskSuggester = None) -> FastAPI:
    """Build the application; the store and suggester default to the configured ones."""
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    store = store or Store()
    suggester = suggester or TaskSuggester.from_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store.open()
        yield
        store.close()

    app = FastAPI(title="TaskAI", lifespan=lifespan)
    app.state.store = store
    app.state.suggester = suggester

    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # API routers
    app.include_router(auth.router)
    app.include_router(tasks.router)
    app.include_router(dashboard.router)

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.exception_handler(errors.TaskAIError)
    async def domain_exception_handler(request, exc: errors.TaskAIError):
        status_code = _status_for(exc)
        headers = None
        if status_code == 401:
            headers = {"WWW-Authenticate": "Bearer"}
        if status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
        return JSONResponse(status_code=status_code, content={"detail": exc.detail}, headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request, exc: RequestValidationError):
        # Rejected input may hold values JSON cannot carry (NaN, Infinity)
        details = [
            {key: value for key, value in error.items() if key not in ("input", "ctx")}
            for error in exc.errors()
        ]
        return JSONResponse(status_code=422, content={"detail": jsonable_encoder(details)})

    # Generic error handler to return JSON errors for unexpected exceptions
    @app.exception_handler(Exception)
    async def generic_exception_handler(request, exc):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    return app


app = create_app()


def run():
    uvicorn.run(
        "taskai.main:app",
        host=HOST,
        port=PORT,
    )


if __name__ == "__main__":
    run()
