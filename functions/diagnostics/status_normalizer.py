"""
functions/diagnostics/status_normalizer.py

WHAT THIS FILE IS FOR
---------------------
The single canonical rule for collapsing per-check statuses into the
public health verdict of a diagnostic report.

PUBLIC CONTRACT RULE
--------------------
- every check "success"          -> "healthy"
- anything else (error/skipped/
  pending, or no checks at all)  -> "unhealthy"

It performs pure, deterministic mapping only: no logging, no raising.
Statuses are compared by value so plain strings and CheckStatus members
behave the same.
"""

from __future__ import annotations

from typing import Iterable

HEALTHY = "healthy"
UNHEALTHY = "unhealthy"


def derive_overall_status(statuses: Iterable[str]) -> str:
    """Report contract: healthy iff every check succeeded."""
    seen = [str(getattr(s, "value", s)) for s in statuses]
    if seen and all(s == "success" for s in seen):
        return HEALTHY
    return UNHEALTHY
