"""
Discovery API application entry point
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from discovery.api.v1 import auth, search, lists, social, searches
from discovery.core.config import settings
from discovery.core.database import close_db
from discovery.middleware.rate_limit import setup_rate_limiting
from discovery.middleware.security_headers import SecurityHeadersMiddleware
from discovery.services.cache_service import cache_service
from discovery.services.search_service import search_service

# Configure logging
logging.basicConfig(level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"{settings.APP_NAME} starting ({settings.NODE_ENV})")
    yield
    await search_service.close()
    await cache_service.close()
    await close_db()
    logger.info(f"{settings.APP_NAME} stopped")


app = FastAPI(
    title=settings.APP_NAME,
    description="Library discovery API over Solr, Summon and WorldCat",
    version="1.0.0",
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Type", "Cache-Control", "X-Content-Type-Options"],
)
app.add_middleware(SecurityHeadersMiddleware)
setup_rate_limiting(app)

# API routes
app.include_router(auth.router, prefix="/api/v1/auth", tags=["authentication"])
app.include_router(search.router, prefix="/api/v1", tags=["search"])
app.include_router(lists.router, prefix="/api/v1", tags=["lists"])
app.include_router(social.router, prefix="/api/v1", tags=["tags-and-comments"])
app.include_router(searches.router, prefix="/api/v1", tags=["search-history"])


@app.get("/")
async def root():
    """Root endpoint for health check"""
    return {"message": f"{settings.APP_NAME} is running", "version": "1.0.0"}


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "discovery-api"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "discovery.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_development
    )
