# claimcare/main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager

from claimcare.core.config import settings
from claimcare.core.exceptions import ClaimCareException
from claimcare.core.logging import get_logger

logger = get_logger(__name__)

# ===================
# Lifespan Management
# ===================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application startup and shutdown."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}", environment=settings.ENVIRONMENT)
    yield
    logger.info("Shutting down")

# ===================
# Application Setup
# ===================

app = FastAPI(
    title=settings.APP_NAME,
    description="Insurance claim decisioning: rules, risk scoring, tiered approvals and SLA tracking",
    version=settings.APP_VERSION,
    lifespan=lifespan
)

# ===================
# CORS Middleware
# ===================

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ===================
# Exception Handlers
# ===================

@app.exception_handler(ClaimCareException)
async def claimcare_exception_handler(request: Request, exc: ClaimCareException):
    logger.warning("Request failed", path=request.url.path, error_code=exc.error_code)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# ===================
# Include Routers
# ===================

from claimcare.api.v1.claims import router as claims_router
from claimcare.api.v1.decisions import router as decisions_router
from claimcare.api.v1.approvals import router as approvals_router
from claimcare.api.v1.sla import router as sla_router
from claimcare.api.v1.policies import router as policies_router

app.include_router(claims_router, prefix=f"{settings.API_PREFIX}/claims", tags=["claims"])
app.include_router(decisions_router, prefix=f"{settings.API_PREFIX}/decisions", tags=["decisions"])
app.include_router(approvals_router, prefix=f"{settings.API_PREFIX}/approvals", tags=["approvals"])
app.include_router(sla_router, prefix=f"{settings.API_PREFIX}/sla", tags=["sla"])
app.include_router(policies_router, prefix=f"{settings.API_PREFIX}/policies", tags=["policies"])

# ===================
# Root Endpoints
# ===================

@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
        "endpoints": {
            "claims": f"{settings.API_PREFIX}/claims",
            "decisions": f"{settings.API_PREFIX}/decisions",
            "approvals": f"{settings.API_PREFIX}/approvals",
            "sla": f"{settings.API_PREFIX}/sla",
            "policies": f"{settings.API_PREFIX}/policies"
        }
    }

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": settings.APP_VERSION}

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
