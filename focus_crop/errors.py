"""Exceptions raised by the crop pipeline."""

from __future__ import annotations

from typing import Optional


class FocusCropError(Exception):
    """Base class for every failure the pipeline reports."""


class CollaboratorFailure(FocusCropError):
    """The object store, vision service or image codec raised an error."""

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage


class InvalidDimensions(FocusCropError, ValueError):
    """Source or target dimensions are zero, negative or not finite."""


class DegenerateRegion(FocusCropError, ValueError):
    """A region or crop window has no area."""


class InvalidRequest(FocusCropError, ValueError):
    """The invocation payload is missing fields or malformed."""

    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field
