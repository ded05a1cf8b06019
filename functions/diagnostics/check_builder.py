"""
functions/diagnostics/check_builder.py

Constructors for CheckResult values.

The only way to obtain a "skipped" result is `skipped_after()`, which
requires the upstream results and refuses to build one unless at least one
of them did not succeed. A dependent check therefore cannot be skipped
silently while its prerequisites look healthy.
"""

from __future__ import annotations

from typing import Any, List, Optional

from schemas.diagnostic_report_schema import CheckDetails, CheckResult, CheckStatus


def succeeded(required_vars: Optional[List[str]] = None, **details: Any) -> CheckResult:
    return CheckResult(
        status=CheckStatus.SUCCESS,
        details=CheckDetails(**details),
        required_vars=required_vars,
    )


def failed(required_vars: Optional[List[str]] = None, **details: Any) -> CheckResult:
    return CheckResult(
        status=CheckStatus.ERROR,
        details=CheckDetails(**details),
        required_vars=required_vars,
    )


def skipped_after(*upstream: CheckResult, reason: str) -> CheckResult:
    """
    Build a "skipped" result for a check whose prerequisites failed.

    Raises:
        ValueError: no upstream results were given, or all of them succeeded
    """
    if not upstream:
        raise ValueError("skipped_after() needs at least one upstream check")
    if all(check.succeeded for check in upstream):
        raise ValueError("cannot skip a check whose upstream checks all succeeded")

    return CheckResult(status=CheckStatus.SKIPPED, details=CheckDetails(reason=reason))
