"""
functions/diagnostics/errors.py

Exception taxonomy for the credential diagnostics engine.

Every error raised here is caught inside the engine and converted into a
CheckResult with status "error". None of them reach HTTP callers.

- MissingConfiguration   -> a required variable is not set
- MalformedCredential    -> a PEM structural assertion failed
- DecodeFailure          -> the base64 key channel could not be decoded
- InitializationFailure  -> the external initializer raised
"""

from __future__ import annotations


class DiagnosticsError(RuntimeError):
    """Base class for every failure the diagnostics engine reports."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MissingConfiguration(DiagnosticsError):
    pass


class MalformedCredential(DiagnosticsError):
    pass


class DecodeFailure(DiagnosticsError):
    pass


class InitializationFailure(DiagnosticsError):
    pass
