"""FastAPI application entrypoint.

Builds the app, installs the request logging middleware and the error
handlers that turn service exceptions into the JSON envelope used by
every endpoint:

    {"success": false, "message": "...", "errors": ...}

Route modules live in `routes`; everything is served under `/api/v1`.
"""

import json
import logging
import time
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse, Response
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException

from .config import settings
from .database import create_db_and_tables
from .errors import BusinessRuleError, NotFoundError
from .routes import router

app = FastAPI(title="CampusDesk College Administration API")
logger = logging.getLogger("campusdesk.api")
if not logger.handlers:
    logging.basicConfig(level=settings.LOG_LEVEL)

# Browser frontends on other origins during local development.
if settings.ALLOW_DEV_CORS:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

create_db_and_tables()


def _log_request(level, event: str, request: Request, req_id: str, started: float, status_code=None):
    payload = {
        "request_id": req_id,
        "path": request.url.path,
        "method": request.method,
        "duration_ms": round((time.perf_counter() - started) * 1000.0, 2),
        "client": request.client.host if request.client else "unknown",
    }
    if status_code is not None:
        payload["status_code"] = status_code
    level("%s %s", event, json.dumps(payload, ensure_ascii=True))


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    req_id = request.headers.get("X-Request-ID", uuid.uuid4().hex)
    request.state.request_id = req_id
    started = time.perf_counter()
    response: Response
    try:
        response = await call_next(request)
    except Exception:
        _log_request(logger.exception, "request_failed", request, req_id, started)
        raise
    response.headers["X-Request-ID"] = req_id
    _log_request(logger.info, "request_done", request, req_id, started, response.status_code)
    return response


def _error(status_code: int, message: str, errors=None, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message, "errors": errors},
        headers=headers,
    )


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
    return _error(404, str(exc))


@app.exception_handler(BusinessRuleError)
async def business_rule_handler(request: Request, exc: BusinessRuleError):
    logger.info("business_rule %s", json.dumps({"path": request.url.path, "message": str(exc)}))
    return _error(400, str(exc))


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Request failed"
    errors = None if isinstance(detail, str) else detail
    return _error(exc.status_code, message, errors, headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def validation_handler(request: Request, exc: RequestValidationError):
    return _error(422, "Validation failed", jsonable_encoder(exc.errors()))


app.include_router(router)


@app.get("/", include_in_schema=False)
def index():
    return RedirectResponse(url="/docs")


@app.get("/health")
def health():
    """Lightweight health check for uptime monitoring."""
    return {"status": "ok"}
