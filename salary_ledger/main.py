from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
from salary_ledger.core.config import settings
from salary_ledger.core.database import engine, Base
from salary_ledger.core.error_handlers import register_error_handlers
from salary_ledger.core.logging_config import init_logging
from salary_ledger.core.middleware import add_middleware
from salary_ledger.ledger.aggregator import RateAggregation
from salary_ledger.users.routes import router as users_router
from salary_ledger.ledger.routes import router as salary_router

init_logging(settings.log_level, settings.log_file or None)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Payroll backend for hourly and permanent salaries with an auditable payment history",
    version="1.0.0",
    debug=settings.debug
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register error handlers
register_error_handlers(app)

# Add middleware
add_middleware(app)

# Include routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(salary_router, prefix="/api/v1")


@app.on_event("startup")
async def startup_event():
    """Validate ledger configuration and create database tables on startup."""
    RateAggregation.parse(settings.rate_aggregation)
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created successfully")
    except Exception as e:
        logger.error(f"Error during startup: {e}")
        raise


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown."""
    logger.info("Application shutting down...")


@app.get("/")
async def root():
    """Root endpoint with API information."""
    return {
        "message": "Salary Ledger API",
        "version": "1.0.0",
        "docs": "/docs",
        "endpoints": {
            "users": "/api/v1/users",
            "salary": "/api/v1/salary",
        }
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "message": "API is running"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "salary_ledger.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )
