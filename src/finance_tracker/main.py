"""FastAPI application for finance-tracker."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import settings
from .exceptions import register_exception_handlers
from .routers import budgets, savings

app = FastAPI(
    title="Finance Tracker API",
    description="Budgets, savings and the transfers between them",
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(budgets.router, prefix=settings.api_prefix)
app.include_router(savings.router, prefix=settings.api_prefix)


@app.get("/health", tags=["Health"])
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "healthy", "service": "finance-tracker"}


@app.get("/", tags=["Health"])
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Finance Tracker API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }
