import logging

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from healthconnect.config import get_settings
from healthconnect.core.logging import setup_logging
from healthconnect.database import create_tables
from healthconnect.limiter import limiter
from healthconnect.seed import create_initial_data
from healthconnect.routers import auth, consultations, notifications, bank_accounts, dashboard, hospitals, health

logger = logging.getLogger(__name__)

settings = get_settings()

app = FastAPI(title=settings.app_name, version=settings.app_version, debug=settings.debug)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.on_event("startup")
def on_startup():
    setup_logging()
    create_tables()
    if settings.seed_sample_data:
        create_initial_data()
    logger.info(f"{settings.app_name} started ({settings.environment})")


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS", "HEAD"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix="/api/v1")
app.include_router(consultations.router, prefix="/api/v1")
app.include_router(notifications.router, prefix="/api/v1")
app.include_router(bank_accounts.router, prefix="/api/v1")
app.include_router(dashboard.router, prefix="/api/v1")
app.include_router(hospitals.router, prefix="/api/v1")
app.include_router(health.router, prefix="/api/v1")


@app.post("/token", include_in_schema=False)
async def token_redirect():
    return RedirectResponse(url="/api/v1/auth/token", status_code=307)


if __name__ == "__main__":
    uvicorn.run("healthconnect.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
