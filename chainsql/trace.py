"""Per-statement diagnostics collected when tracing is enabled."""

import traceback
from typing import Any, Optional

from pydantic import BaseModel, Field


class Trace(BaseModel):
    """One executed statement: its SQL, arguments, duration and call site."""

    query: str
    params: tuple[Any, ...] = ()
    duration: float = 0.0
    """Seconds spent in the driver."""
    stacks: list[str] = Field(default_factory=list)
    """Call stack at execution time, outermost frame first, as ``file:line function``."""
    error: Optional[str] = None


def capture_stacks(skip: int = 2) -> list[str]:
    """Describe the current call stack, dropping the innermost ``skip`` frames."""
    frames = traceback.extract_stack()[:-skip]
    return [f"{frame.filename}:{frame.lineno} {frame.name}" for frame in frames]
