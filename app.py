import logging
from contextlib import asynccontextmanager
from datetime import datetime
from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import modular components
from config.settings import ALLOWED_ORIGINS, LOG_LEVEL
from database.supabase_client import get_supabase
from modules.rota.errors import RotaError
from routes.announcements import router as announcements_router
from routes.approvals import router as approvals_router
from routes.attendance import router as attendance_router
from routes.auth import router as auth_router
from routes.availability import router as availability_router
from routes.contacts import router as contacts_router
from routes.history import router as history_router
from routes.messages import router as messages_router
from routes.notifications import router as notifications_router
from routes.payroll import router as payroll_router
from routes.profile import router as profile_router
from routes.realtime import router as realtime_router
from routes.reports import router as reports_router
from routes.schedules import router as schedules_router
from routes.users import router as users_router
from services.realtime_service import get_notifier


# Configure logging
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Rota API starting")
    yield
    await get_notifier().close_all()
    logger.info("Rota API stopped")


# Initialize FastAPI
app = FastAPI(
    title="Rota API",
    description="Shift scheduling, availability and approvals for small teams",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ===== ERROR HANDLERS =====

@app.exception_handler(RotaError)
async def rota_error_handler(request: Request, exc: RotaError):
    logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.message}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "message": exc.detail, "detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


def _jsonable_errors(errors):
    return [
        {"loc": list(e.get("loc", [])), "msg": e.get("msg"), "type": e.get("type")}
        for e in errors
    ]


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = f"{field}: {first.get('msg')}" if field else "Invalid request"
    return JSONResponse(
        status_code=422,
        content={"success": False, "message": message, "detail": _jsonable_errors(errors)}
    )


# ===== ROUTES =====
app.include_router(auth_router)
app.include_router(users_router)
app.include_router(profile_router)
app.include_router(schedules_router)
app.include_router(availability_router)
app.include_router(approvals_router)
app.include_router(announcements_router)
app.include_router(payroll_router)
app.include_router(attendance_router)
app.include_router(history_router)
app.include_router(reports_router)
app.include_router(contacts_router)
app.include_router(messages_router)
app.include_router(notifications_router)
app.include_router(realtime_router)


@app.get("/")
async def root():
    return {
        "message": "Rota API v1.0",
        "status": "running"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    try:
        result = get_supabase().table("staff").select("id").limit(1).execute()
        db_status = "connected" if result.data is not None else "disconnected"

        return {
            "status": "healthy",
            "database": db_status,
            "realtime_connections": get_notifier().connection_count(),
            "timestamp": datetime.utcnow().isoformat()
        }
    except Exception as e:
        logger.error(f"Health check failed: {e}")
        return {
            "status": "unhealthy",
            "database": "disconnected",
            "error": str(e)
        }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
