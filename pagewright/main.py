import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from pagewright.config import get_settings
from pagewright.errors import PagewrightError
from pagewright.routers.preview import router as preview_router
from pagewright.routers.publish import limiter, router as publish_router
from pagewright.services.publisher import build_publisher

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": "INFO", "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="Pagewright – Static Site Publisher",
    description="Validates page documents, renders them to static HTML and publishes immutable site snapshots.",
    version="1.0.0",
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.state.publisher = build_publisher(get_settings())


@app.exception_handler(PagewrightError)
async def domain_error_handler(request: Request, exc: PagewrightError) -> JSONResponse:
    logger.warning("Unmapped %s for %s: %s", exc.code, request.url, exc)
    return JSONResponse(status_code=400, content={"detail": {"code": exc.code, "message": str(exc)}})


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(publish_router)
app.include_router(preview_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "Hello from Pagewright"}
