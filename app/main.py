from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
import logging

# Import database components
from app.database.database import engine, Base

# Import middleware
from app.common.middleware import TenantMiddleware, SecurityHeadersMiddleware
from app.common.exceptions import InvoicingError

# Import routers
from app.modules.company.router import companies_router, company_router
from app.modules.clients.router import router as clients_router
from app.modules.products.router import product_router
from app.modules.invoices.router import router as invoices_router
from app.modules.reports.routers import dashboard_router, financial_router

# Import models for table creation
import app.modules.company.models
import app.modules.clients.models
import app.modules.products.models
import app.modules.invoices.models

from app.core.config import settings

# Configure logging
logging.basicConfig(
    level=logging.INFO if settings.ENVIRONMENT == "production" else logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# FastAPI app
app = FastAPI(
    title="Invoicing API",
    description="Multi-tenant invoicing API: clients, products, invoices, payments and reports",
    version="1.0.0",
    docs_url="/docs" if settings.ENVIRONMENT != "production" else None,
    redoc_url="/redoc" if settings.ENVIRONMENT != "production" else None
)

# Add middleware (order matters!)
app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(TenantMiddleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Add your frontend URLs
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(InvoicingError)
async def invoicing_error_handler(request: Request, exc: InvoicingError):
    logger.info(f"{exc.kind} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# Include routers
app.include_router(companies_router)
app.include_router(company_router)
app.include_router(clients_router)
app.include_router(product_router)
app.include_router(invoices_router)
app.include_router(dashboard_router)
app.include_router(financial_router)


@app.get("/")
async def read_root():
    return {
        "message": "Invoicing API is running",
        "version": "1.0.0",
        "environment": settings.ENVIRONMENT
    }


@app.get("/health")
async def health_check():
    return {"status": "healthy", "environment": settings.ENVIRONMENT}


@app.on_event("startup")
async def startup_event():
    logger.info("Invoicing API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info(f"Debug mode: {settings.DEBUG}")

    # Create database tables (only for development - use migrations elsewhere)
    if settings.ENVIRONMENT == "development":
        Base.metadata.create_all(bind=engine)


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("Invoicing API shutting down...")
