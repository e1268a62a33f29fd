"""Exception types.

Everything here is fatal for the current validation run. Edit violations
found in a submission are data and never raised.
"""

from __future__ import annotations

from typing import Sequence


class EditToolsError(Exception):
    """Base class for all package errors."""


class IngestionError(EditToolsError):
    """The submission could not be read or parsed."""


class SchemaResolutionError(EditToolsError, LookupError):
    """A year or field is missing from the schema registry."""


class ErrorStoreError(EditToolsError, RuntimeError):
    """The error store was used outside its write/read phases."""


class ScopeMismatchError(ErrorStoreError):
    """An edit was recorded with a scope other than its bucket's scope."""


class ConfigurationError(EditToolsError, ValueError):
    """Run options are invalid or incomplete."""


class ReferenceDataError(EditToolsError):
    """Geography reference data could not be loaded or queried."""


class StageTimeoutError(EditToolsError):
    """A stage did not finish within its timeout."""


class RunRejectedError(EditToolsError):
    """The scheduler stopped a run after a stage failed.

    Attributes:
        stage: Name of the stage that failed.
        completed_stages: Stages that had finished before the failure.
    """

    def __init__(self, stage: str, message: str, completed_stages: Sequence[str] = ()) -> None:
        super().__init__(f"{stage} stage failed: {message}")
        self.stage = stage
        self.completed_stages = tuple(completed_stages)


__all__ = [
    "EditToolsError",
    "IngestionError",
    "SchemaResolutionError",
    "ErrorStoreError",
    "ScopeMismatchError",
    "ConfigurationError",
    "ReferenceDataError",
    "StageTimeoutError",
    "RunRejectedError",
]
