from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import chain, health, orders
from .config import settings
from .logging_config import setup_logging

setup_logging()

app = FastAPI(
    title="XCPFOLIO Marketplace API",
    description="Order composition, fee data and delivery tracking for XCPFOLIO subassets",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, tags=["Health"])
app.include_router(chain.router, tags=["Chain"])
app.include_router(orders.router, tags=["Orders"])


@app.get("/")
async def root():
    """Root endpoint with basic info"""
    return {
        "name": "XCPFOLIO Marketplace API",
        "version": "0.1.0",
        "environment": settings.environment,
        "docs": "/docs",
        "health": "/healthz",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "xcpfolio.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.is_development,
        log_level=settings.log_level.lower(),
    )
