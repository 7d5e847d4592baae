# barbershop/main.py

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from barbershop import config
from barbershop.db import create_db_and_tables
from barbershop.rate_limiter import check_rate_limit, client_ip
from barbershop.routers import (
    achievements_routes,
    analytics_routes,
    auth_routes,
    barber_rewards_routes,
    barbers_routes,
    clients_routes,
    loyalty_routes,
    reports_routes,
    reservations_routes,
    rewards_routes,
    scanner_routes,
    services_routes,
    transformations_routes,
    users_routes,
    visits_routes,
)

# Configure logging
logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Application starting up...")
    create_db_and_tables()
    yield
    logger.info("Application shutting down...")


app = FastAPI(title="Barbershop Loyalty API", version="1.0.0", lifespan=lifespan)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error for {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=422, content={"detail": exc.errors()})


@app.middleware("http")
async def global_rate_limit(request: Request, call_next):
    if config.RATE_LIMIT_ENABLED and request.url.path != "/health":
        key = f"global:{client_ip(request)}"
        is_allowed, _, ttl = check_rate_limit(key, config.RATE_LIMIT_REQUESTS, config.RATE_LIMIT_WINDOW_SECONDS)
        if not is_allowed:
            logger.warning(f"Global rate limit exceeded for {key}")
            return JSONResponse(
                status_code=429,
                content={"detail": "Too many requests. Please try again later."},
                headers={"Retry-After": str(ttl)},
            )
    return await call_next(request)


@app.get("/health")
def health_check():
    return {"status": "ok"}


app.include_router(auth_routes.router)
app.include_router(users_routes.router)
app.include_router(clients_routes.router)
app.include_router(visits_routes.router)
app.include_router(loyalty_routes.router)
app.include_router(rewards_routes.router)
app.include_router(services_routes.router)
app.include_router(reservations_routes.router)
app.include_router(barbers_routes.router)
app.include_router(achievements_routes.router)
app.include_router(barber_rewards_routes.router)
app.include_router(scanner_routes.router)
app.include_router(analytics_routes.router)
app.include_router(reports_routes.router)
app.include_router(transformations_routes.router)
