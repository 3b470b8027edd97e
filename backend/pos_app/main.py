from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pos_app.routers import billing, scanner, catalog, customers, receipts
from pos_app.config import settings
from pos_app.exceptions import PosError
from pos_app.services.billing_session import billing_session
import logging
import sys

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    handlers=[
        logging.StreamHandler(sys.stdout)
    ]
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("="*60)
    logger.info(f"Starting {settings.store_name} billing API")
    logger.info("="*60)
    logger.info(f"Directory API: {settings.directory_api_url}")
    logger.info(f"Directory token configured: {bool(settings.directory_api_token)}")
    logger.info(f"Default tax: {settings.default_tax_percent}%")
    logger.info("="*60)
    await billing_session.load_directory()
    yield
    # The camera must not stay held open after shutdown
    billing_session.close()
    logger.info("Billing session closed")


# Receipt tables are managed by Alembic (alembic upgrade head)

app = FastAPI(
    title="POS Billing API",
    description="Barcode-driven billing for a retail point of sale",
    version="1.0.0",
    lifespan=lifespan,
)


def parse_cors_origins(origins_str: str) -> list:
    """Parse CORS origins string into a list."""
    return [origin.strip() for origin in origins_str.split(",") if origin.strip()]


app.add_middleware(
    CORSMiddleware,
    allow_origins=parse_cors_origins(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)

# Include routers
app.include_router(billing.router)
app.include_router(scanner.router)  # Camera and image barcode acquisition
app.include_router(catalog.router)
app.include_router(customers.router)
app.include_router(receipts.router)


@app.get("/")
def root():
    return {"message": "POS Billing API", "version": "1.0.0"}


@app.get("/health")
def health_check():
    return {"status": "healthy"}


@app.exception_handler(PosError)
async def pos_error_handler(request: Request, exc: PosError):
    """Billing and scanning errors are shown to the cashier, never fatal"""
    logger.info(f"{request.method} {request.url.path} rejected [{exc.code}]: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.code, "context": exc.details or None},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Internal server error: {str(exc)}"},
    )
