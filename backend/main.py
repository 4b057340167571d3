from fastapi import FastAPI, Request, HTTPException, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from contextlib import asynccontextmanager
import logging
import time
import uuid

from api_app_info import router as app_info_router
from api_categories import node_categories_router, edge_categories_router
from api_edges import router as edges_router
from api_layers import router as layers_router
from api_nodes import router as nodes_router
from api_trees import router as trees_router
from api_json_schemas import router as json_schemas_router
from api_types import node_types_router, edge_types_router
from config import CORS_ORIGINS, INIT_DB_ON_STARTUP, LOG_LEVEL, TREE_STORE_BACKEND
from db_postgres import PostgresDatabase, init_postgres_db
from dependencies import build_node_repository
from observability import structured_log_line
from tree_errors import TreeStructureError, ParentNotFoundError

# Configure logging
logging.basicConfig(level=LOG_LEVEL, format="%(message)s")
logger = logging.getLogger("treegraph")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.
    Creates the schema on startup and closes the connection pool on shutdown.
    """
    # Startup
    if INIT_DB_ON_STARTUP:
        try:
            init_postgres_db(app.state.db)
            logger.info(structured_log_line({"event": "startup_init_db", "status": "ok"}))
        except Exception as e:
            # The memory node store still works without a database.
            logger.error(f"Error initialising Postgres schema: {e}", exc_info=True)
            if TREE_STORE_BACKEND == "postgres":
                raise

    yield  # App runs here

    # Shutdown
    app.state.db.close()


app = FastAPI(
    title="Tree Graph Backend",
    description="Trees of nodes stored as nested-set intervals, with typed edges, layers and categories.",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.db = PostgresDatabase()
app.state.node_repository = build_node_repository(app.state.db)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(trees_router)
app.include_router(nodes_router)
app.include_router(node_categories_router)
app.include_router(edge_categories_router)
app.include_router(layers_router)
app.include_router(edges_router)
app.include_router(node_types_router)
app.include_router(edge_types_router)
app.include_router(json_schemas_router)
app.include_router(app_info_router)


@app.middleware("http")
async def request_observability(request: Request, call_next):
    start = time.perf_counter()
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    request.state.request_id = request_id

    response = None
    try:
        response = await call_next(request)
    finally:
        latency_ms = int((time.perf_counter() - start) * 1000)
        status_code = getattr(response, "status_code", 500)

        logger.info(
            structured_log_line(
                {
                    "event": "request",
                    "request_id": request_id,
                    "route": request.url.path,
                    "method": request.method,
                    "status": status_code,
                    "latency_ms": latency_ms,
                    "store": TREE_STORE_BACKEND,
                }
            )
        )

    if isinstance(response, Response):
        response.headers["x-request-id"] = request_id
    return response


# Centralized error handling
@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """
    Handle HTTP exceptions (4xx, 5xx).
    Logs the error with appropriate level and returns JSON response.
    """
    # Log 4xx errors at WARNING level, 5xx at ERROR level
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code} error on {request.method} {request.url.path}",
            extra={
                "status_code": exc.status_code,
                "method": request.method,
                "path": request.url.path,
                "detail": exc.detail,
            },
            exc_info=True,
        )
    else:
        logger.warning(
            f"HTTP {exc.status_code} error on {request.method} {request.url.path}: {exc.detail}",
            extra={
                "status_code": exc.status_code,
                "method": request.method,
                "path": request.url.path,
                "detail": exc.detail,
            },
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(TreeStructureError)
async def tree_structure_exception_handler(request: Request, exc: TreeStructureError):
    """
    Structural violations (cycles, self references, bad patches) are client errors.
    A missing parent is reported as 404.
    """
    status_code = 404 if isinstance(exc, ParentNotFoundError) else 400
    logger.warning(
        f"HTTP {status_code} {type(exc).__name__} on {request.method} {request.url.path}: {exc}",
        extra={
            "status_code": status_code,
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        },
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    Handle request validation errors (422).
    These are client errors, so log at WARNING level.
    """
    logger.warning(
        f"Validation error on {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "errors": exc.errors(),
        },
    )
    return JSONResponse(
        status_code=422,
        content={"detail": exc.errors()},
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """
    Catch-all handler for unhandled exceptions.
    Logs full stack trace but returns sanitized error message to client.
    """
    logger.exception(
        f"Unhandled exception on {request.method} {request.url.path}",
        extra={
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
            "exception_message": str(exc),
        },
    )

    # Return sanitized error message (don't leak internal details)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


@app.get("/")
def read_root():
    return {"status": "ok", "message": "Tree Graph backend is running", "store": TREE_STORE_BACKEND}
