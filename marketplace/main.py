from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from marketplace.api.v1 import routes
from marketplace.core.config import settings
from marketplace.core.logging_config import logger
from marketplace.db.errors import DatabaseError
from marketplace.services.lifecycle_closer import create_scheduler


@asynccontextmanager
async def lifespan(app: FastAPI):
    scheduler = None
    if settings.OPPORTUNITY_CLOSER_ENABLED:
        scheduler = create_scheduler()
        scheduler.start()
        logger.info(f"Opportunity closer scheduled every {settings.OPPORTUNITY_CLOSER_INTERVAL_MINUTES} minutes")
    yield
    if scheduler:
        scheduler.shutdown()
        logger.info("Opportunity closer stopped")


app = FastAPI(title="Marketplace", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-User-Id"],
)


@app.exception_handler(DatabaseError)
async def database_error_handler(request: Request, exc: DatabaseError):
    logger.error(f"Database error on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=400, content={"detail": {"database": [exc.message]}})


app.include_router(routes.router)
