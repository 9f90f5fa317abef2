"""
FastAPI app assembly: logging, middleware, error envelope and router wiring.
"""
import logging
import os
import time
from datetime import datetime, UTC

from fastapi import FastAPI, APIRouter
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request
from starlette.responses import JSONResponse

# Configure logging
LOG_LEVEL_NAME = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_LEVEL = getattr(logging, LOG_LEVEL_NAME, logging.INFO)
logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)
logger.setLevel(LOG_LEVEL)
logger.info("app_startup: log_level=%s", LOG_LEVEL_NAME)


from innerview.db.database import init_sqlite_schema
from innerview.api.auth_routes import router as auth_router
from innerview.api.users import router as users_router
from innerview.api.schools import router as schools_router, network_router as school_networks_router
from innerview.api.students import router as students_router
from innerview.api.assessments import router as assessments_router
from innerview.api.interventions import router as interventions_router
from innerview.api.learning_difficulties import router as learning_difficulties_router
from innerview.api.base_interventions import router as base_interventions_router
from innerview.api.intervention_protocols import router as intervention_protocols_router
from innerview.api.screening_instruments import router as screening_instruments_router
from innerview.api.screenings import router as screenings_router
from innerview.api.screening_results import router as screening_results_router
from innerview.api.teams import router as teams_router
from innerview.api.meetings import router as meetings_router
from innerview.api.referrals import router as referrals_router
from innerview.api.communications import router as communications_router
from innerview.api.notifications import router as notifications_router
from innerview.api.dashboard import router as dashboard_router
from innerview.api.webhooks import router as webhooks_router
from innerview.api.lms import google_router, microsoft_router
from innerview.api.lti import router as lti_router
from innerview.api.integrations import router as integrations_router
from innerview.api.audits import router as audits_router

# Postgres schema is managed by Alembic migrations.
init_sqlite_schema()

app = FastAPI(
    title="Innerview RTI Service",
    description="API for Response-to-Intervention school management: students, screenings, interventions and teams.",
    version="1.0.0",
)

origins = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Middleware: one access line per request
@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = int((time.perf_counter() - started) * 1000)
    logger.info(
        "%s %s %s %dms %s - %s %s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        response.headers.get("content-length", "-"),
        request.client.host if request.client else "-",
        request.headers.get("user-agent", ""),
    )
    return response


def _error_envelope(request: Request, status_code: int, detail) -> dict:
    message = detail if isinstance(detail, str) else "Request failed"
    return {
        "statusCode": status_code,
        "timestamp": datetime.now(UTC).isoformat(),
        "path": request.url.path,
        "method": request.method,
        "message": message,
        "detail": detail,
    }


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.detail)
    else:
        logger.warning("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.detail)
    return JSONResponse(
        jsonable_encoder(_error_envelope(request, exc.status_code, exc.detail)),
        status_code=exc.status_code,
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("%s %s -> 422: %d validation errors", request.method, request.url.path, len(exc.errors()))
    errors = [{"loc": list(e["loc"]), "msg": e["msg"], "type": e["type"]} for e in exc.errors()]
    envelope = _error_envelope(request, 422, errors)
    envelope["message"] = "Validation failed"
    return JSONResponse(envelope, status_code=422)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(_error_envelope(request, 500, "Internal server error"), status_code=500)


api = APIRouter(prefix="/api")


@api.get("/health")
def health_check():
    return {"status": "ok", "service": "innerview"}


api.include_router(auth_router)
api.include_router(users_router)
api.include_router(school_networks_router)
api.include_router(schools_router)
api.include_router(students_router)
api.include_router(assessments_router)
api.include_router(interventions_router)
api.include_router(learning_difficulties_router)
api.include_router(base_interventions_router)
api.include_router(intervention_protocols_router)
api.include_router(screening_instruments_router)
api.include_router(screenings_router)
api.include_router(screening_results_router)
api.include_router(teams_router)
api.include_router(meetings_router)
api.include_router(referrals_router)
api.include_router(communications_router)
api.include_router(dashboard_router)
# Platform routers share the /integrations prefix and must precede /integrations/{id}
api.include_router(webhooks_router)
api.include_router(google_router)
api.include_router(microsoft_router)
api.include_router(lti_router)
api.include_router(integrations_router)
api.include_router(audits_router)

app.include_router(api)
app.include_router(notifications_router, prefix="/api/notifications")
