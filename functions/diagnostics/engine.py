"""
functions/diagnostics/engine.py

WHAT THIS FILE IS FOR
---------------------
This module runs the three-stage Firebase credential diagnostics and
assembles a DiagnosticReport.

CALL FLOW CONTEXT
-----------------
FastAPI (api.py)
  -> ConfigSnapshot.from_mapping(os.environ)
  -> run_diagnostics(snapshot, initializer)
       1) check_environment()       (always)
       2) check_private_key()       (always; independent of step 1)
       3) probe_initialization()    (only if 1 and 2 succeeded)

STEP 1: ENVIRONMENT
-------------------
All seven known variable names are reported as found/missing. That list is
informational. Success is gated only by:
- a project id (either accepted name)
- a private key (either channel)
- the client email

STEP 2: KEY FORMAT
------------------
Resolves the canonical key (direct PEM first, then base64) and runs the PEM
assertions from private_key.py. Failures report the message plus a redacted
preview of the raw configured value.

STEP 3: INITIALIZATION
----------------------
Calls the injected initializer (sync or async), timing it with a monotonic
clock. Skipped, and never invoked, unless steps 1 and 2 both succeeded.

ERROR HANDLING RULES
--------------------
run_diagnostics() never raises. Every failure becomes a CheckResult with
status "error" and details.error set. Stack traces are only attached when
`include_stack` is true (non-production environments).

No retries and no timeouts: if the initializer hangs, so does this call.
"""

from __future__ import annotations

import inspect
import time
import traceback
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Optional, Union

import structlog

from functions.diagnostics import check_builder
from functions.diagnostics.config_snapshot import REQUIRED_VARIABLES, ConfigSnapshot
from functions.diagnostics.errors import InitializationFailure
from functions.diagnostics.private_key import (
    PEM_FOOTER,
    PEM_HEADER,
    assert_private_key,
    redact_key_preview,
    resolve_private_key,
)
from schemas.diagnostic_report_schema import CheckResult, DiagnosticChecks, DiagnosticReport

logger = structlog.get_logger(__name__)

Initializer = Callable[[], Union[Any, Awaitable[Any]]]

SKIP_REASON = "Cannot initialize Firebase due to previous check failures"


def _utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error_message(exc: BaseException, default: str) -> str:
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or default


def check_environment(config: ConfigSnapshot) -> CheckResult:
    found: dict[str, bool] = {}
    missing: list[str] = []
    for name in REQUIRED_VARIABLES:
        if config.is_set(name):
            found[name] = True
        else:
            missing.append(name)

    has_project_id = config.project_id is not None
    has_private_key = config.private_key is not None or config.private_key_base64 is not None
    has_client_email = config.client_email is not None

    build = (
        check_builder.succeeded
        if (has_project_id and has_private_key and has_client_email)
        else check_builder.failed
    )
    result = build(required_vars=list(REQUIRED_VARIABLES), found=found, missing=missing)

    logger.info(
        "diagnostics_env_check",
        status=result.status.value,
        has_project_id=has_project_id,
        has_private_key=has_private_key,
        has_client_email=has_client_email,
        missing=missing,
    )
    return result


def check_private_key(config: ConfigSnapshot) -> CheckResult:
    try:
        key = assert_private_key(resolve_private_key(config))
    except Exception as exc:  # noqa: BLE001
        message = _error_message(exc, "Unknown error during key validation")
        logger.warning("diagnostics_key_check", status="error", error=message)
        return check_builder.failed(
            error=message,
            key_preview=redact_key_preview(config.private_key, config.private_key_base64),
        )

    logger.info("diagnostics_key_check", status="success", key_length=len(key))
    return check_builder.succeeded(
        key_length=len(key),
        format="valid",
        starts_with_header=key.startswith(PEM_HEADER),
        ends_with_footer=key.endswith(PEM_FOOTER),
    )


async def _call_initializer(initializer: Initializer) -> str:
    """
    Run the initializer and return the app's name.

    Raises:
        InitializationFailure: for anything the initializer raised, or a
        result without a `name`. The original error is chained as __cause__.
    """
    try:
        app = initializer()
        if inspect.isawaitable(app):
            app = await app
        return str(app.name)
    except InitializationFailure:
        raise
    except Exception as exc:  # noqa: BLE001
        message = _error_message(exc, "Unknown error during Firebase initialization")
        raise InitializationFailure(message) from exc


async def probe_initialization(
    initializer: Initializer,
    *,
    upstream: tuple[CheckResult, ...],
    include_stack: bool = False,
    clock: Callable[[], float] = time.perf_counter,
) -> CheckResult:
    if not all(check.succeeded for check in upstream):
        logger.info("diagnostics_init_check", status="skipped")
        return check_builder.skipped_after(*upstream, reason=SKIP_REASON)

    start = clock()
    try:
        app_name = await _call_initializer(initializer)
    except InitializationFailure as failure:
        stack: Optional[str] = None
        if include_stack:
            stack = "".join(traceback.format_exception(type(failure), failure, failure.__traceback__))
        logger.warning("diagnostics_init_check", status="error", error=failure.message)
        return check_builder.failed(error=failure.message, stack=stack)

    elapsed_ms = max(0, int(round((clock() - start) * 1000)))
    logger.info("diagnostics_init_check", status="success", app_name=app_name, elapsed_ms=elapsed_ms)
    return check_builder.succeeded(
        app_name=app_name,
        initialized=True,
        initialization_time_ms=elapsed_ms,
    )


async def run_diagnostics(
    config: ConfigSnapshot,
    initializer: Initializer,
    *,
    include_stack: bool = False,
    clock: Callable[[], float] = time.perf_counter,
) -> DiagnosticReport:
    """
    Run all three checks in order and return the composed report.

    Args:
        config:
            Snapshot of the Firebase variables for this run.
        initializer:
            No-arg callable (or coroutine function) returning an object with
            a `name` attribute. Only invoked when steps 1 and 2 succeed.
        include_stack:
            Attach the formatted traceback to initialization errors.
        clock:
            Monotonic seconds source used to time the initializer.
    """
    timestamp = _utc_timestamp()

    env_check = check_environment(config)
    key_check = check_private_key(config)
    init_check = await probe_initialization(
        initializer,
        upstream=(env_check, key_check),
        include_stack=include_stack,
        clock=clock,
    )

    report = DiagnosticReport(
        timestamp=timestamp,
        checks=DiagnosticChecks(
            environment_variables=env_check,
            private_key_validation=key_check,
            firebase_initialization=init_check,
        ),
    )

    logger.info(
        "diagnostics_completed",
        status=report.status,
        environment_variables=env_check.status.value,
        private_key_validation=key_check.status.value,
        firebase_initialization=init_check.status.value,
    )
    return report
