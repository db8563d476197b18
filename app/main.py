import logging
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from fastapi.requests import Request

from app.core.config import settings
from app.core.errors import SearchAPIError
from app.api.routers import health
from app.api.routers import search
from app.api.routers import releases
from app.api.routers import data

tags_metadata = [
    {"name": "health", "description": "Cluster health probe."},
    {
        "name": "search",
        "description": "Content search and search index creation.",
    },
    {"name": "releases", "description": "Release calendar search."},
    {"name": "data", "description": "Document lookup by URI and timeseries lookup by CDID."},
]

# Public base path the API is exposed under (e.g. /api behind the load balancer).
# This keeps the OpenAPI "Try it out" requests pointed at the right prefix.
public_api_base = settings.API_BASE_PATH.rstrip("/") or "/"

app = FastAPI(
    title="ONS Search API",
    version="2025",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    openapi_tags=tags_metadata,
    swagger_ui_parameters={"defaultModelsExpandDepth": -1},
    servers=[{"url": public_api_base}],
)
log = logging.getLogger("uvicorn.error")


@app.middleware("http")
async def add_api_marker(request: Request, call_next):
    resp = await call_next(request)
    resp.headers["x-ons-search-api"] = "Python FastAPI"
    resp.headers["x-ons-search-api-version"] = "2025"
    return resp


# CORS (Settings expects JSON array in .env)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include all routers
app.include_router(health.router)
app.include_router(search.router)
app.include_router(releases.router)
app.include_router(data.router)


@app.get("/")
def root():
    return {"ok": True}


# clients match on these one-line messages, so they are returned as plain text
@app.exception_handler(SearchAPIError)
async def search_api_errors(request: Request, exc: SearchAPIError):
    if exc.status_code >= 500:
        log.error(
            "%s %s: %s",
            request.method,
            request.url.path,
            exc.message,
            exc_info=exc.cause,
        )
    return PlainTextResponse(exc.message, status_code=exc.status_code)


@app.exception_handler(RequestValidationError)
async def request_errors(request: Request, exc: RequestValidationError):
    log.warning("malformed request on %s: %s", request.url.path, exc.errors())
    return PlainTextResponse("Invalid request parameters", status_code=400)


# return a generic JSON error instead of internal messages/logs and capture the trace in the log
@app.exception_handler(Exception)
async def json_errors(request: Request, exc: Exception):
    log.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "internal_server_error"})
