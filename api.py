"""
api.py

WHAT THIS FILE IS FOR
---------------------
This module defines the FastAPI application entrypoint for the
Meal Analysis Diagnostics API.

It is responsible for:
- Creating the FastAPI app instance (title/version/description)
- Registering middleware for:
    - Correlation ID propagation (X-Correlation-Id)
    - API version validation (X-API-Version)
- Defining standard error responses using a consistent schema:
    {code, message, subErrors, timestamp, correlationId}
- Registering exception handlers for:
    - RequestValidationError (400 VALIDATION_FAILED)
    - HTTPException passthrough (with standardized envelope)
- Exposing HTTP endpoints:
    - GET  /health and /healthz
    - GET  /api/v1/diagnostics/firebase
    - POST /api/v1/analysis/validations
    - POST /api/v1/analysis/resolutions

DIAGNOSTICS CONTRACT
--------------------
The diagnostics endpoint ALWAYS answers HTTP 200, even when every check
failed. Health is communicated only through the report body
(`status`: healthy | unhealthy), so monitors can parse one envelope shape
regardless of outcome.

The report is converted snake_case -> camelCase at this boundary, except
inside settings.preserve_container_keys (raw env var names under `found`).

DESIGN INTENT
-------------
This file contains ONLY the HTTP layer:
- routing
- middleware
- exception handling
- response formatting

Diagnostics and analysis rules live in:
- functions/diagnostics/*
- functions/analysis/*
"""

from __future__ import annotations

import os
import time
import uuid
from typing import Any, Optional

import structlog
from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from functions.analysis.analysis_validator import (
    is_valid_analysis,
    normalize_analysis_result,
    resolve_analysis,
)
from functions.diagnostics.config_snapshot import ConfigSnapshot
from functions.diagnostics.engine import run_diagnostics
from functions.diagnostics.firebase_initializer import FirebaseAppInitializer
from functions.utils.json_naming_converter import convert_keys_snake_to_camel
from functions.utils.logging_setup import setup_logging
from functions.utils.settings import get_settings
from schemas.analysis_schema import AnalysisResolutionResponse, AnalysisValidationResponse

settings = get_settings()
setup_logging(settings)

logger = structlog.get_logger(__name__)

# Swappable in tests; called with the per-request ConfigSnapshot.
initializer_factory = FirebaseAppInitializer

app = FastAPI(
    title="Meal Analysis Diagnostics",
    version="1.0.0",
    description="Firebase credential diagnostics and meal-analysis record validation.",
)

CORRELATION_HEADER = "X-Correlation-Id"
API_VERSION_HEADER = "X-API-Version"
SUPPORTED_API_VERSIONS = {"1"}


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def _get_or_create_correlation_id(request: Request) -> str:
    incoming = request.headers.get(CORRELATION_HEADER)
    return incoming.strip() if incoming else f"corr_{uuid.uuid4().hex}"


def _get_api_version(request: Request) -> str:
    v = getattr(request.state, "api_version", None)
    return str(v) if v else request.headers.get(API_VERSION_HEADER, "1").strip() or "1"


def _std_error(
    *,
    code: str,
    message: str,
    correlation_id: str,
    http_status: int,
    api_version: str = "1",
    sub_errors: Optional[list[dict[str, Any]]] = None,
) -> JSONResponse:
    payload = {
        "code": code,
        "message": message,
        "subErrors": sub_errors or [],
        "timestamp": int(time.time()),
        "correlationId": correlation_id,
    }
    headers = {
        CORRELATION_HEADER: correlation_id,
        API_VERSION_HEADER: api_version,
    }
    return JSONResponse(status_code=http_status, content=payload, headers=headers)


# -------------------------------------------------------------------
# Middleware
# -------------------------------------------------------------------
@app.middleware("http")
async def api_version_middleware(request: Request, call_next):
    correlation_id = getattr(request.state, "correlation_id", f"corr_{uuid.uuid4().hex}")
    version = request.headers.get(API_VERSION_HEADER, "1").strip() or "1"

    if version not in SUPPORTED_API_VERSIONS:
        return _std_error(
            code="INVALID_FIELD_VALUE",
            message="Invalid API version",
            correlation_id=correlation_id,
            http_status=400,
            sub_errors=[
                {
                    "field": API_VERSION_HEADER,
                    "errors": [{"code": "isIn", "message": "Supported versions: 1"}],
                }
            ],
        )

    request.state.api_version = version
    response = await call_next(request)
    response.headers[API_VERSION_HEADER] = version
    return response


# Registered last so it runs first: the version check above sees the id.
@app.middleware("http")
async def correlation_id_middleware(request: Request, call_next):
    correlation_id = _get_or_create_correlation_id(request)
    request.state.correlation_id = correlation_id
    response = await call_next(request)
    response.headers[CORRELATION_HEADER] = correlation_id
    return response


# -------------------------------------------------------------------
# Exception handlers
# -------------------------------------------------------------------
@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    correlation_id = getattr(request.state, "correlation_id", f"corr_{uuid.uuid4().hex}")
    api_version = _get_api_version(request)

    sub_errors: list[dict[str, Any]] = []
    for err in exc.errors():
        field = ".".join(str(x) for x in err.get("loc", []) if x != "body") or "body"
        sub_errors.append(
            {
                "field": field,
                "errors": [{"code": err.get("type"), "message": err.get("msg")}],
            }
        )

    logger.info(
        "request_validation_failed",
        correlation_id=correlation_id,
        error_count=len(sub_errors),
    )

    return _std_error(
        code="VALIDATION_FAILED",
        message="Validation failed",
        correlation_id=correlation_id,
        http_status=400,
        api_version=api_version,
        sub_errors=sub_errors,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    correlation_id = getattr(request.state, "correlation_id", f"corr_{uuid.uuid4().hex}")
    api_version = _get_api_version(request)

    logger.warning(
        "http_exception",
        correlation_id=correlation_id,
        status_code=exc.status_code,
        detail=str(exc.detail),
    )

    return _std_error(
        code="INTERNAL_ERROR" if exc.status_code >= 500 else "HTTP_ERROR",
        message=str(exc.detail),
        correlation_id=correlation_id,
        http_status=exc.status_code,
        api_version=api_version,
    )


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------
@app.get("/healthz")
@app.get("/health")
async def health():
    return {
        "status": "ok",
        "service": settings.service_name,
        "environment": settings.environment,
    }


@app.get("/api/v1/diagnostics/firebase")
async def firebase_diagnostics(request: Request) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", f"corr_{uuid.uuid4().hex}")

    snapshot = ConfigSnapshot.from_mapping(os.environ)
    report = await run_diagnostics(
        snapshot,
        initializer_factory(snapshot),
        include_stack=settings.include_stack_traces,
    )

    logger.info("firebase_diagnostics_served", correlation_id=correlation_id, status=report.status)

    payload = convert_keys_snake_to_camel(
        report.model_dump(mode="json", exclude_none=True),
        preserve_container_keys=settings.preserve_container_keys,
    )
    return JSONResponse(status_code=200, content=payload)


@app.post("/api/v1/analysis/validations")
async def validate_analysis(candidate: Any = Body(default=None)) -> JSONResponse:
    body = AnalysisValidationResponse(
        is_valid=is_valid_analysis(candidate),
        normalized=normalize_analysis_result(candidate),
    )
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))


@app.post("/api/v1/analysis/resolutions")
async def resolve_analysis_record(request: Request, candidate: Any = Body(default=None)) -> JSONResponse:
    correlation_id = getattr(request.state, "correlation_id", f"corr_{uuid.uuid4().hex}")

    record, used_fallback = resolve_analysis(candidate)
    if used_fallback:
        logger.info("analysis_fallback_used", correlation_id=correlation_id)

    body = AnalysisResolutionResponse(used_fallback=used_fallback, analysis=record)
    return JSONResponse(status_code=200, content=body.model_dump(by_alias=True))
