import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from beacon.api import conversions, pdf_to_ppt
from beacon.config import settings
from beacon.errors import ConversionError

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)

# Suppress noisy third-party loggers
for noisy in ("google_genai", "httpx", "openai", "anthropic", "pypdf", "multipart"):
    logging.getLogger(noisy).setLevel(logging.WARNING)

logger = logging.getLogger(__name__)

VERSION = "0.3.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Auto-create tables on startup (SQLite, no migration step needed)
    from beacon.models.base import init_db
    await init_db()
    logger.info("Database tables created / verified")
    yield


app = FastAPI(
    title="Beacon API",
    description="PDF to slide deck conversion backend",
    version=VERSION,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ConversionError)
async def conversion_error_handler(request: Request, exc: ConversionError):
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} failed: {exc.code}: {exc.message}")
    else:
        logger.warning(f"{request.url.path} rejected: {exc.code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, "code": exc.code})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Failed to convert PDF to PowerPoint", "code": "CONVERSION_FAILED"},
    )


app.include_router(pdf_to_ppt.router, prefix="/api/pdf-to-ppt", tags=["pdf-to-ppt"])
app.include_router(conversions.router, prefix="/api/conversions", tags=["conversions"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "version": VERSION}
