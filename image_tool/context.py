"""Tracing for the steps of a build assembly.

An assembly runs inside `build_trace` and each of its steps inside
`step_trace`. The active trace is held in a context variable so that
assemblies running concurrently on one event loop record their own steps.
"""

from contextlib import contextmanager
import contextvars
from dataclasses import dataclass, field
import logging
from time import perf_counter
from typing import Generator

_LOGGER = logging.getLogger(__name__)

# No public API
__all__: list[str] = []


@dataclass
class BuildTrace:
    """Completed steps of an assembly with their duration in seconds."""

    name: str
    steps: list[tuple[str, float]] = field(default_factory=list)


_TRACE: contextvars.ContextVar[BuildTrace | None] = contextvars.ContextVar(
    "build_trace", default=None
)


@contextmanager
def build_trace(name: str) -> Generator[BuildTrace, None, None]:
    """Record the steps run within the block."""
    trace = BuildTrace(name)
    token = _TRACE.set(trace)
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", name)
    try:
        yield trace
    finally:
        _TRACE.reset(token)
        _LOGGER.debug("[Trace] < %s (%0.2fs)", name, perf_counter() - start)


@contextmanager
def step_trace(step: str) -> Generator[None, None, None]:
    """Log a step and add it to the enclosing trace once it completes."""
    trace = _TRACE.get()
    label = f"{trace.name} > {step}" if trace else step
    start = perf_counter()
    _LOGGER.debug("[Trace] > %s", label)
    try:
        yield
    finally:
        elapsed = perf_counter() - start
        _LOGGER.debug("[Trace] < %s (%0.2fs)", label, elapsed)
    if trace is not None:
        trace.steps.append((step, elapsed))
