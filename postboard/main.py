import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from postboard import __version__
from postboard.authentication import JsonLoginMiddleware
from postboard.cache import cache
from postboard.logger import configure_logging
from postboard.middleware import TimingMiddleware
from postboard.routers import auth, posts
from postboard.schemas import validation_details

configure_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup; the app works without Redis
    await cache.connect()
    yield
    # Shutdown
    await cache.disconnect()


app = FastAPI(
    title="Postboard API",
    description="Blog backend: signup and owner-scoped post CRUD",
    version=__version__,
    lifespan=lifespan,
)

# Middleware (last added runs first)
app.add_middleware(JsonLoginMiddleware)
app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Error handlers
# ---------------------------------------------------------------------------

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(
        {"error": "Validation failed", "details": validation_details(exc.errors())},
        status_code=status.HTTP_400_BAD_REQUEST,
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        {"error": "Internal server error"},
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )


# Routers
app.include_router(auth.router)
app.include_router(posts.router)


@app.get("/health")
async def health():
    return {"status": "healthy", "version": __version__, "cache": cache.stats}
