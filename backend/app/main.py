"""FastAPI application entry point"""
import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError

from app.core.config import settings
from app.core.errors import ServiceError, error_response, service_error_handler, request_validation_handler
from app.core.logging import setup_logging
from app.core.middleware import setup_cors_middleware, access_log_middleware, global_exception_handler
from app.db.session import Database
from app.services.identity_service import FirebaseIdentityProvider, IdentityProviderError
from app.services.plan_service import seed_plans

# Import routers
from app.api import auth, users, profiles, plans, testimonials, library, monitoring

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("Initializing database...")
    database = Database(settings.DATABASE_URL)
    try:
        database.init_db()
        logger.info("Database initialized successfully")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        raise
    app.state.database = database

    if settings.SEED_PLANS_ON_STARTUP:
        db = database.session()
        try:
            seed_plans(db)
        finally:
            db.close()

    app.state.identity_provider = FirebaseIdentityProvider.from_settings()
    logger.info(f"Identity provider ready for project '{settings.FIREBASE_PROJECT_ID or '<unset>'}'")

    yield

    # Shutdown
    logger.info("Shutting down...")
    app.state.identity_provider.close()
    database.dispose()


async def identity_provider_error_handler(request: Request, exc: IdentityProviderError):
    logger.error(f"Identity provider call failed on {request.url.path}: {exc.message}")
    return error_response(exc.status_code, exc.message)


# Create FastAPI app
app = FastAPI(
    title="MovieFlix Backend",
    description="Accounts, viewer profiles, plans and watch lists for the MovieFlix streaming app",
    version="1.0.0",
    lifespan=lifespan
)

setup_cors_middleware(app)
app.middleware("http")(access_log_middleware)

app.add_exception_handler(ServiceError, service_error_handler)
app.add_exception_handler(RequestValidationError, request_validation_handler)
app.add_exception_handler(IdentityProviderError, identity_provider_error_handler)
app.add_exception_handler(Exception, global_exception_handler)

# Include routers
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(profiles.router)
app.include_router(plans.router)
app.include_router(testimonials.router)
app.include_router(library.my_list_router)
app.include_router(library.watch_history_router)
app.include_router(monitoring.router)


if __name__ == "__main__":
    # Use reload=True in development for hot reload
    # Must pass app as import string for reload to work
    config = {
        "host": "0.0.0.0",
        "port": settings.PORT,
        "timeout_graceful_shutdown": 30,
    }

    if settings.ENVIRONMENT == "development":
        config["reload"] = True
        uvicorn.run("app.main:app", **config)
    else:
        uvicorn.run(app, **config)
