"""
Loan Engine API Application Factory
"""

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .. import __version__
from ..config import get_config
from ..logging_config import setup_logging
from .earnings import router as earnings_router
from .loans import router as loans_router
from .payments import router as payments_router
from .penalties import router as penalties_router
from .schedules import router as schedules_router


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""
    app = FastAPI(
        title="Loanstar Loan Engine API",
        description="Stateless loan calculations: schedules, penalties, payment allocation and commissions",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc"
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include routers
    app.include_router(loans_router, prefix="/loans", tags=["Loans"])
    app.include_router(schedules_router, prefix="/schedules", tags=["Schedules"])
    app.include_router(penalties_router, prefix="/penalties", tags=["Penalties"])
    app.include_router(payments_router, prefix="/payments", tags=["Payments"])
    app.include_router(earnings_router, tags=["Earnings"])

    # Health check endpoint
    @app.get("/health")
    async def health_check():
        """Health check endpoint"""
        return {
            "status": "healthy",
            "service": "loan_engine_api",
            "version": __version__
        }

    @app.get("/")
    async def get_api_info():
        """Get API information"""
        return {
            "name": "Loanstar Loan Engine API",
            "version": __version__,
            "endpoints": {
                "docs": "/docs",
                "health": "/health",
                "loans": "/loans",
                "schedules": "/schedules",
                "penalties": "/penalties",
                "payments": "/payments",
                "commissions": "/commissions",
                "cashouts": "/earnings/cashouts"
            }
        }

    return app


app = create_app()


def run_server(host: str = None, port: int = None, debug: bool = False):
    """Run the FastAPI server"""
    config = get_config()
    setup_logging(config.log_level, log_format=config.log_format)
    uvicorn.run(
        "loan_engine.api:app",
        host=host or config.api_host,
        port=port or config.api_port,
        reload=debug,
        log_level="info"
    )
