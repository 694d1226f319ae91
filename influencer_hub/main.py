import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware import Middleware

from influencer_hub.core.config import settings
from influencer_hub.core.exceptions import AppError, RateLimitError
from influencer_hub.core.logging_config import setup_logging
from .database import SessionLocal, init_db
from .repositories import build_sql_repositories
from .services import EmailDispatcher, OTPService
from .routers import auth, campaigns, users

logger = logging.getLogger(__name__)


def purge_expired_otps() -> int:
    db = SessionLocal()
    try:
        return OTPService(build_sql_repositories(db).otp, EmailDispatcher()).purge_expired()
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    init_db()
    logger.info("Startup: database tables checked/created")
    logger.info("Startup: removed %d expired OTP challenges", purge_expired_otps())
    yield


middleware = [
    Middleware(TrustedHostMiddleware, allowed_hosts=settings.ALLOWED_HOSTS),
    Middleware(CORSMiddleware,
               allow_origins=settings.CORS_ORIGINS,
               allow_credentials=True,
               allow_methods=["*"],
               allow_headers=["*"]),

    Middleware(GZipMiddleware, minimum_size=1000)
]

app = FastAPI(
    title=f"{settings.APP_NAME} API",
    description="Creator and brand accounts, email verification and campaign applications",
    version="1.0.0",
    lifespan=lifespan,
    middleware=middleware
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.__cause__ or exc)
    headers = None
    if exc.status_code == 401:
        headers = {"WWW-Authenticate": "Bearer"}
    elif isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.wait_seconds)}
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        f"{'.'.join(str(part) for part in error['loc'] if part != 'body')}: {error['msg']}"
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={"error": "Missing or invalid fields", "details": details})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    return response


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)
    return response


app.include_router(auth.router, prefix="/auth", tags=["Authentication"])
app.include_router(campaigns.router, prefix="/campaigns", tags=["Campaigns"])
app.include_router(users.router, prefix="/users", tags=["Users"])


@app.get("/")
def health_check():
    return {"status": "ok", "message": "Nice and Healthy"}
