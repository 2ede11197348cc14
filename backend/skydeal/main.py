"""FastAPI application entry point."""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from skydeal.core.config import settings
from skydeal.core.errors import NotFoundError, ValidationError
from skydeal.core.logging import setup_logging
from skydeal.api.routes import billing, deals, flights, health, notifications, users

# Setup logging
setup_logging()

# Create FastAPI app
app = FastAPI(
    title="SkyDeal API",
    description="Flight deal detection and alerts",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.FRONTEND_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# Include routers
app.include_router(health.router, tags=["health"])
app.include_router(deals.router)
app.include_router(flights.router)
app.include_router(notifications.router)
app.include_router(users.router)
app.include_router(billing.router)


@app.get("/")
async def root():
    """Root endpoint."""
    return {"message": "SkyDeal API", "version": "1.0.0"}
