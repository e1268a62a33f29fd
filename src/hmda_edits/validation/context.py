"""Run options and the per-run context handed to every stage.

A RunContext replaces process-wide state: it owns the document, the error
store and the stage outputs for exactly one validation run.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, TYPE_CHECKING

import yaml

from hmda_edits.core.document import Document
from hmda_edits.core.enums import SchedulePolicy
from hmda_edits.core.errors import ConfigurationError
from hmda_edits.core.schemas import SchemaRegistry
from .config import DEFAULT_STAGE_TIMEOUT
from .store import ErrorStore

if TYPE_CHECKING:  # pragma: no cover
    import pandas as pd

    from .geography import GeographyLookup


TRUE_STRINGS = frozenset({"true", "yes", "y", "1", "on"})
FALSE_STRINGS = frozenset({"false", "no", "n", "0", "off", ""})


def _as_bool(name: str, value: Any) -> bool:
    """Coerce a config flag; strings must be one of the known spellings."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in TRUE_STRINGS:
            return True
        if lowered in FALSE_STRINGS:
            return False
    raise ConfigurationError(f"Invalid value for {name}: {value!r} (expected true or false)")


@dataclass(frozen=True)
class RunOptions:
    """Configuration for one validation run.

    Attributes:
        year: Submission year (selects the spec and the S100 expectation).
        api_url: Geography service base URL, used in remote mode.
        use_local_db: Read geography from ``geography_path`` instead of the service.
        geography_path: CSV with ``state,county,msa`` columns for local mode.
        debug: Verbosity level 0-3.
        policy: Stage scheduling policy.
        stage_timeout: Per-stage timeout in seconds, or None.
    """

    year: int
    api_url: Optional[str] = None
    use_local_db: bool = False
    geography_path: Optional[Path] = None
    debug: int = 0
    policy: SchedulePolicy = SchedulePolicy.GROUPED
    stage_timeout: Optional[float] = DEFAULT_STAGE_TIMEOUT

    def __post_init__(self) -> None:
        try:
            object.__setattr__(self, "year", int(self.year))
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid year: {self.year!r}") from None
        try:
            object.__setattr__(self, "policy", SchedulePolicy(self.policy))
        except ValueError:
            valid = ", ".join(p.value for p in SchedulePolicy)
            raise ConfigurationError(f"Invalid policy: {self.policy!r}. Valid: {valid}") from None
        try:
            debug = int(self.debug or 0)
        except (TypeError, ValueError):
            raise ConfigurationError(f"Invalid debug level: {self.debug!r}") from None
        if not 0 <= debug <= 3:
            raise ConfigurationError(f"Debug level must be between 0 and 3, got {debug}")
        object.__setattr__(self, "debug", debug)
        if self.stage_timeout is not None:
            try:
                stage_timeout = float(self.stage_timeout)
            except (TypeError, ValueError):
                raise ConfigurationError(
                    f"Invalid stage_timeout: {self.stage_timeout!r}"
                ) from None
            if stage_timeout <= 0:
                raise ConfigurationError("stage_timeout must be positive")
            object.__setattr__(self, "stage_timeout", stage_timeout)
        object.__setattr__(self, "use_local_db", _as_bool("use_local_db", self.use_local_db))
        if self.geography_path is not None:
            object.__setattr__(self, "geography_path", Path(self.geography_path))

    def check_reference_source(self) -> None:
        """Ensure the special stage will have geography data to read.

        Raises:
            ConfigurationError: If neither a service URL nor a local file is set.
        """
        if self.use_local_db:
            if self.geography_path is None:
                raise ConfigurationError("Local mode needs a geography reference file")
        elif not self.api_url:
            raise ConfigurationError("Remote mode needs an API URL")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], **overrides: Any) -> "RunOptions":
        """Build options from a mapping; ``overrides`` that are not None win."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ConfigurationError(f"Unknown run options: {', '.join(unknown)}")
        values: Dict[str, Any] = dict(data)
        values.update({k: v for k, v in overrides.items() if v is not None})
        if "year" not in values:
            raise ConfigurationError("A submission year is required")
        return cls(**values)

    @classmethod
    def from_yaml(cls, path: Path, **overrides: Any) -> "RunOptions":
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Failed to read config file {path}: {e}") from e
        if not isinstance(data, Mapping):
            raise ConfigurationError(f"Config file {path} must contain a mapping")
        return cls.from_mapping(data, **overrides)


@dataclass
class RunContext:
    """Everything one validation run shares between its stages.

    Stages read ``document`` and ``options`` and append to ``store``; the
    totals stage fills ``totals``.
    """

    options: RunOptions
    document: Document
    registry: SchemaRegistry = field(default_factory=SchemaRegistry)
    store: ErrorStore = field(default_factory=ErrorStore)
    geography: Optional["GeographyLookup"] = None
    totals: Optional["pd.DataFrame"] = None

    @property
    def year(self) -> int:
        return self.options.year

    @property
    def debug(self) -> int:
        return self.options.debug

    @property
    def api_url(self) -> Optional[str]:
        return self.options.api_url

    @property
    def use_local_db(self) -> bool:
        return self.options.use_local_db


__all__ = ["RunOptions", "RunContext"]
