"""
Error taxonomy for the ingestion and brief pipeline.

Pipeline errors carry the failing step and URL so batch jobs can log
enough context to diagnose a skipped item. HTTP helpers at the bottom
turn missing resources into 404s for route handlers.
"""

from typing import TypeVar

from fastapi import HTTPException

T = TypeVar("T")


class PipelineError(Exception):
    """Base class for expected, per-item pipeline failures."""

    step = "pipeline"

    def __init__(self, message: str, step: str | None = None, url: str | None = None):
        super().__init__(message)
        self.message = message
        self.step = step or self.step
        self.url = url

    def __str__(self) -> str:
        if self.url:
            return f"[{self.step}] {self.message} ({self.url})"
        return f"[{self.step}] {self.message}"


class FetchError(PipelineError):
    """Network failure, timeout, or non-2xx HTTP status."""
    step = "fetch"


class ParseError(PipelineError):
    """Malformed feed, HTML, or XML payload."""
    step = "parse"


class ExtractionError(PipelineError):
    """Article page unreachable or not machine-readable."""
    step = "extract"


class GenerationError(PipelineError):
    """Language model call failed, timed out, or returned nothing."""
    step = "generate"


class DeliveryError(PipelineError):
    """Email provider rejected or failed to send a message."""
    step = "deliver"


class ValidationError(Exception):
    """Bad caller input, e.g. a duplicate topic name."""
    pass


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise 404 if resource is None, otherwise return the resource.

    Usage:
        topic = require_resource(db.get_topic(id), "Topic not found")
    """
    if resource is None:
        raise HTTPException(status_code=404, detail=detail)
    return resource


def require_user(user: T | None) -> T:
    """Raise 404 if user is None."""
    return require_resource(user, "User not found")


def require_topic(topic: T | None) -> T:
    """Raise 404 if topic is None."""
    return require_resource(topic, "Topic not found")
