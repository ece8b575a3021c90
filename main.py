import logging
import traceback
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import gridfs
from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo import MongoClient
from pymongo.errors import PyMongoError
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from database import connect, ensure_indexes, ping
from errors import IntakeError, ValidationError
from forms import build_orchestrators
from intake import SubmissionOrchestrator
from logging_setup import init_logging
from mailer import NotificationDispatcher, build_transport
from notifications import MailContext
from settings import Settings, get_settings
from uploads import RESUME_FIELD, GridFSStorage, IncomingFile, LocalDiskStorage, ResumeIntake
from validation import form_fields


logger = logging.getLogger(__name__)

GENERIC_FAILURE = "An unexpected server error occurred."


@dataclass
class AppServices:
    """Collaborators built once per process and shared by every request."""
    db: Any
    orchestrators: Dict[str, SubmissionOrchestrator]
    client: Optional[MongoClient] = None


def build_services(settings: Settings) -> AppServices:
    client, db = connect(settings)
    dispatcher = NotificationDispatcher(build_transport(settings))
    if settings.upload_backend == "gridfs":
        storage = GridFSStorage(gridfs.GridFS(db, collection="resumes"))
    else:
        storage = LocalDiskStorage(settings.upload_dir)
    resume = ResumeIntake(storage, max_bytes=settings.max_upload_bytes)
    ctx = MailContext(
        company=settings.company_name,
        admin_email=settings.admin_email,
        notify_admin_of_subscriptions=settings.newsletter_notify_admin,
    )
    if not settings.admin_email:
        logger.warning("ADMIN_EMAIL not set; admin notifications are disabled")
    return AppServices(db=db, orchestrators=build_orchestrators(db, dispatcher, resume, ctx), client=client)


router = APIRouter()


async def read_submission(request: Request, file_field: Optional[str] = None, max_bytes: int = 0) -> Tuple[Dict[str, Any], Optional[IncomingFile]]:
    """Extract the field map (JSON, urlencoded or multipart) and the optional upload."""
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("application/json"):
        try:
            payload = await request.json()
        except ValueError:
            raise ValidationError("Request body must be valid JSON.") from None
        if not isinstance(payload, dict):
            raise ValidationError("Request body must be a JSON object.")
        return payload, None

    form = await request.form()
    upload = None
    if file_field:
        item = form.get(file_field)
        if isinstance(item, UploadFile) and item.filename:
            # One byte past the limit is enough to tell the file is too large
            data = await item.read(max_bytes + 1)
            upload = IncomingFile(file_field, item.filename, item.content_type or "", data)
    return form_fields(form), upload


async def _submit(request: Request, kind: str, file_field: Optional[str] = None) -> JSONResponse:
    orchestrator = request.app.state.services.orchestrators[kind]
    max_bytes = request.app.state.settings.max_upload_bytes
    fields, upload = await read_submission(request, file_field, max_bytes)
    outcome = await orchestrator.submit(fields, upload)
    status_code, body = orchestrator.kind.respond(outcome)
    return JSONResponse(status_code=status_code, content=body)


@router.get("/")
def read_root():
    return {"message": "Website forms API is running"}


@router.get("/api/test")
def api_test():
    return {"message": "Backend API is live and responsive!"}


@router.get("/health")
async def health(request: Request):
    """Liveness plus database connectivity; 503 when the database is unreachable."""
    connected = await run_in_threadpool(ping, request.app.state.services.db)
    body: Dict[str, Any] = {
        "status": "UP" if connected else "DEGRADED",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "connected" if connected else "disconnected",
    }
    if not connected:
        body["message"] = "Database connection issue."
        return JSONResponse(status_code=503, content=body)
    return body


@router.post("/api/bookings")
async def create_booking(request: Request):
    return await _submit(request, "booking")


@router.post("/api/contact")
async def submit_contact_form(request: Request):
    return await _submit(request, "contact")


@router.post("/api/careers")
async def submit_application(request: Request):
    return await _submit(request, "career", file_field=RESUME_FIELD)


@router.post("/api/newsletter/subscribe")
async def subscribe(request: Request):
    return await _submit(request, "newsletter")


def _diagnostics(settings: Settings, exc: BaseException) -> Dict[str, Any]:
    if settings.is_production:
        return {}
    return {
        "name": type(exc).__name__,
        "message": str(exc),
        "stack": "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    }


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(IntakeError)
    async def intake_error_handler(request: Request, exc: IntakeError):
        if exc.status_code < 500:
            logger.info(
                "%s %s rejected: %s", request.method, request.url.path, exc.message, extra={"error": exc.kind.value}
            )
            return JSONResponse(status_code=exc.status_code, content=exc.to_body())
        logger.error(
            "%s %s failed: %s", request.method, request.url.path, exc.message,
            exc_info=exc, extra={"error": exc.kind.value},
        )
        message = GENERIC_FAILURE if settings.is_production else exc.message
        return JSONResponse(status_code=exc.status_code, content={"message": message, "error": _diagnostics(settings, exc)})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            message = f"Resource not found at {request.method} {request.url.path}"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content={"message": message}, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(
            "unhandled error on %s %s", request.method, request.url.path,
            exc_info=exc, extra={"error": type(exc).__name__},
        )
        message = GENERIC_FAILURE if settings.is_production else (str(exc) or GENERIC_FAILURE)
        return JSONResponse(status_code=500, content={"message": message, "error": _diagnostics(settings, exc)})


def create_app(settings: Optional[Settings] = None, services: Optional[AppServices] = None) -> FastAPI:
    settings = settings or get_settings()
    init_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = app.state.services is None
        if owned:
            app.state.services = build_services(settings)
        try:
            await run_in_threadpool(ensure_indexes, app.state.services.db)
        except PyMongoError as e:
            logger.error("could not create database indexes: %s", e, extra={"error": type(e).__name__})
        yield
        if owned and app.state.services.client is not None:
            app.state.services.client.close()

    app = FastAPI(title="Website Forms Backend", lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app, settings)
    app.include_router(router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
