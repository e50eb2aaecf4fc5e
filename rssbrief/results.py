"""
Tagged result values for I/O boundaries.

Each fetch/parse/extract/generate/send step exposes a ``safe_*`` variant
returning ``Ok`` or ``Err`` so batch code handles expected failures
explicitly instead of relying on a catch-all.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from .exceptions import PipelineError

T = TypeVar("T")
E = TypeVar("E", bound=PipelineError)


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful step output."""
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err(Generic[E]):
    """Failed step with the pipeline error that caused it."""
    error: E

    @property
    def ok(self) -> bool:
        return False


Result = Ok[T] | Err[E]
