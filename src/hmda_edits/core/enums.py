"""Core enumerations used across the package."""

from __future__ import annotations

from enum import Enum


class Stage(str, Enum):
    """Edit stages, in their fixed sequential order."""

    SYNTACTICAL = "syntactical"
    VALIDITY = "validity"
    QUALITY = "quality"
    MACRO = "macro"
    SPECIAL = "special"
    TOTALS = "totals"


class Scope(str, Enum):
    """Part of the submission that supplies context for an edit's fields.

    Values match the short names used in the year spec files.
    """

    HEADER = "ts"
    DETAIL = "lar"
    DOCUMENT = "hmda"


class SchedulePolicy(str, Enum):
    """How the scheduler orders stages.

    GROUPED runs the members of each tier concurrently; SEQUENTIAL runs one
    stage at a time to keep peak memory down.
    """

    GROUPED = "all"
    SEQUENTIAL = "then"


__all__ = ["Stage", "Scope", "SchedulePolicy"]
