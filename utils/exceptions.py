"""
Unified exception hierarchy for the StudiaHub quiz pipeline.

All domain exceptions inherit from StudiaError and carry:
- error_code: machine-readable string (e.g. "NO_ENABLED_FILES")
- status_code: HTTP status code
- message: human-readable description
- context: optional structured metadata dict
"""

from typing import Optional, Dict, Any


class StudiaError(Exception):
    """Base exception for all StudiaHub domain errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.context = context or {}
        super().__init__(message)


class ValidationError(StudiaError):
    """400-level validation / bad-request errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "INVALID_REQUEST",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=400, context=context)


class NotFoundError(StudiaError):
    """404 resource-not-found errors."""

    def __init__(
        self,
        message: str,
        error_code: str = "QUIZ_NOT_FOUND",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=404, context=context)


class NoEnabledFilesError(StudiaError):
    """The user has no ready, enabled source files to build a quiz from."""

    def __init__(self, user_id: str):
        super().__init__(
            "Cannot generate quiz because no files are currently enabled. "
            "Please enable at least one file from your uploaded documents.",
            error_code="NO_ENABLED_FILES",
            status_code=400,
            context={"user_id": user_id},
        )


class NoContentFoundError(StudiaError):
    """Vector search / sampling returned nothing usable."""

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, error_code="NO_CONTENT_FOUND", status_code=400, context=context)


class RateLimitError(StudiaError):
    """Too many quiz requests within the current window."""

    def __init__(self, retry_after_seconds: int, context: Optional[Dict[str, Any]] = None):
        self.retry_after_seconds = retry_after_seconds
        ctx = {"retry_after_seconds": retry_after_seconds}
        if context:
            ctx.update(context)
        super().__init__(
            f"Too many quiz requests. Try again in {retry_after_seconds} seconds.",
            error_code="RATE_LIMITED",
            status_code=429,
            context=ctx,
        )


class QueueUnavailableError(StudiaError):
    """Worker queue is not configured or a send failed part way through."""

    def __init__(
        self,
        message: str,
        sent_count: int = 0,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.sent_count = sent_count
        ctx = {"sent_count": sent_count}
        if context:
            ctx.update(context)
        super().__init__(message, error_code="QUEUE_UNAVAILABLE", status_code=503, context=ctx)


class ParseError(StudiaError):
    """Language-model output could not be parsed into valid questions."""

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        rule: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.index = index
        self.rule = rule
        ctx: Dict[str, Any] = {}
        if index is not None:
            ctx["index"] = index
        if rule is not None:
            ctx["rule"] = rule
        if context:
            ctx.update(context)
        super().__init__(message, error_code="INVALID_MODEL_OUTPUT", status_code=502, context=ctx)


class FinalizationError(StudiaError):
    """A quiz reached finalization without any collected questions."""

    def __init__(self, quiz_id: str, message: str = "No questions found for finalization"):
        self.quiz_id = quiz_id
        super().__init__(
            message,
            error_code="FINALIZATION_FAILED",
            status_code=500,
            context={"quiz_id": quiz_id},
        )


class StorageError(StudiaError):
    """500-level database / storage failures."""

    def __init__(
        self,
        message: str,
        error_code: str = "STORAGE_ERROR",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, error_code=error_code, status_code=500, context=context)
