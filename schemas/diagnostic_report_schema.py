# -------------------------------------------------------------------
# schemas/diagnostic_report_schema.py
#
# WHAT THIS FILE IS FOR
# --------------------
# This module defines the **internal report schema** produced by the
# Firebase credential diagnostics engine.
#
# NAMING CONVENTION (IMPORTANT)
# -----------------------------
# All fields use **snake_case**. At the API boundary (api.py) the
# report is converted to camelCase with:
#     convert_keys_snake_to_camel()
#
# The `found` container holds raw environment variable names
# (e.g. NEXT_PUBLIC_FIREBASE_PROJECT_ID) as keys. It is listed in
# settings.preserve_container_keys so those names survive verbatim.
#
# STATUS MODEL
# ------------
# - Each check carries a CheckStatus: pending | success | error | skipped
# - The overall report status is DERIVED (computed field), never set:
#       all three checks success -> "healthy"
#       otherwise                -> "unhealthy"
#
# Instances should be built through functions/diagnostics/check_builder.py,
# which enforces when a check may be "skipped".
# -------------------------------------------------------------------

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from functions.diagnostics.status_normalizer import derive_overall_status


class CheckStatus(str, Enum):
    PENDING = "pending"
    SUCCESS = "success"
    ERROR = "error"
    SKIPPED = "skipped"


class CheckDetails(BaseModel):
    """
    Union of every detail field any check can report.

    Only the fields relevant to the producing check are set; the rest stay
    None and are dropped on serialization (exclude_none=True).
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    # environment check
    found: Optional[Dict[str, bool]] = None
    missing: Optional[List[str]] = None

    # key-format check
    key_length: Optional[int] = None
    format: Optional[str] = None
    starts_with_header: Optional[bool] = None
    ends_with_footer: Optional[bool] = None
    key_preview: Optional[str] = None

    # initialization probe
    app_name: Optional[str] = None
    initialized: Optional[bool] = None
    initialization_time_ms: Optional[int] = None
    stack: Optional[str] = None

    # shared
    error: Optional[str] = None
    reason: Optional[str] = None


class CheckResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    status: CheckStatus = CheckStatus.PENDING
    details: CheckDetails = Field(default_factory=CheckDetails)

    # Only the environment check reports the list it enumerated.
    required_vars: Optional[List[str]] = None

    @property
    def succeeded(self) -> bool:
        return self.status is CheckStatus.SUCCESS


class DiagnosticChecks(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    environment_variables: CheckResult
    private_key_validation: CheckResult
    firebase_initialization: CheckResult

    def ordered(self) -> List[CheckResult]:
        return [
            self.environment_variables,
            self.private_key_validation,
            self.firebase_initialization,
        ]


class DiagnosticReport(BaseModel):
    """
    Result of one diagnostics run.

    `status` is computed from the checks on every access, so a report can
    never claim "healthy" while one of its checks failed.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: str
    checks: DiagnosticChecks

    @computed_field  # type: ignore[misc]
    @property
    def status(self) -> Literal["healthy", "unhealthy"]:
        return derive_overall_status(c.status for c in self.checks.ordered())  # type: ignore[return-value]
