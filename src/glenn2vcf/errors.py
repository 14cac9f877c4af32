from __future__ import annotations

from typing import Optional


class InputError(ValueError):
    """Raised when an input file or the graph cannot support variant calling."""

    def __init__(self, message: str, *, source: Optional[str] = None, line: Optional[int] = None) -> None:
        if source is not None and line is not None:
            message = f"{source}:{line}: {message}"
        elif source is not None:
            message = f"{source}: {message}"
        super().__init__(message)
        self.source = source
        self.line = line


class InternalInvariantViolation(RuntimeError):
    """Raised when a state that construction should have ruled out is reached."""
