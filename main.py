import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from dotenv import load_dotenv
import uvicorn

from database import check_connection, init_db
from routers import all_routers
from services.scheduler import JobScheduler, build_default_jobs
from utils.errors import AppError
from utils.logger import configure_logging, get_logger

# Load .env
load_dotenv()
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
IS_PRODUCTION = ENVIRONMENT == "production"
SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() == "true"

configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    scheduler = JobScheduler(build_default_jobs())
    app.state.scheduler = scheduler
    if SCHEDULER_ENABLED:
        scheduler.start()
    logger.info("app_started", environment=ENVIRONMENT, scheduler_enabled=SCHEDULER_ENABLED)
    try:
        yield
    finally:
        scheduler.shutdown()


# App instance
app = FastAPI(title="Bill Mate API", lifespan=lifespan)

# CORS
origins = [o for o in os.getenv("CORS_ORIGINS", "").split(",") if o]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def error_response(status_code: int, message: str, details=None) -> JSONResponse:
    content = {"success": False, "error": message}
    if details is not None and not IS_PRODUCTION:
        content["details"] = jsonable_encoder(details)
    return JSONResponse(status_code=status_code, content=content)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error("app_error", path=request.url.path, error=exc.message)
    return error_response(exc.status_code, exc.message, exc.details)


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(404, "Route not found")
    return error_response(exc.status_code, str(exc.detail))


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(400, "ข้อมูลไม่ถูกต้อง", exc.errors())


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("unhandled_error", path=request.url.path)
    return error_response(500, "เกิดข้อผิดพลาดภายในระบบ", str(exc))


for router in all_routers:
    app.include_router(router)


@app.get("/api/health")
def health():
    database_ok = check_connection()
    return JSONResponse(
        status_code=200 if database_ok else 503,
        content={"status": "ok" if database_ok else "degraded", "database": database_ok, "environment": ENVIRONMENT},
    )


if __name__ == "__main__":
    port = int(os.getenv("PORT", 10000))
    uvicorn.run("main:app", host="0.0.0.0", port=port, reload=True)
