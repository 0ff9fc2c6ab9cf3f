# regionviz/errors.py
"""
Error types for the region printer.

The rendering core is total over well-formed region trees and raises
nothing.  The layers around it (input loading, tree validation, the
external viewer) report problems through this small hierarchy:

    RegionVizError (base)
    ├── LoadError        - malformed input document
    ├── RegionTreeError  - region tree violates the block partition
    └── RenderError      - the external renderer / viewer failed
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union


class RegionVizError(Exception):
    """
    Base exception for all regionviz errors.

    Carries an optional source path and the underlying exception so the
    CLI can print a ``file: message`` line.
    """

    def __init__(
        self,
        message: str,
        path: Optional[Union[str, Path]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.path = str(path) if path is not None else None
        self.cause = cause

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message


class LoadError(RegionVizError):
    """The input document could not be turned into a function and region tree."""


class RegionTreeError(RegionVizError):
    """The region tree does not partition the function's blocks."""

    def __init__(self, message: str, function: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.function = function

    def __str__(self) -> str:
        base = super().__str__()
        if self.function:
            return f"in function '{self.function}': {base}"
        return base


class RenderError(RegionVizError):
    """The external graph renderer or viewer could not be run."""
