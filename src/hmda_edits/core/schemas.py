"""Per-year submission layouts and field labels.

Each supported year has a YAML spec under ``core/specs/<year>.yaml`` listing
the transmittal sheet and loan/application register fields in file order.
The registry answers two kinds of questions:

- layout: which field ids make up a record of a given scope, in order
  (used by ingestion and the validity edits);
- labels: the human-readable column label for a field id, resolved against
  the scope-appropriate contexts (used by the edit report).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .enums import Scope
from .errors import SchemaResolutionError

logger = logging.getLogger(__name__)

SPECS_DIR = Path(__file__).parent / "specs"

HEADER_KEY = "transmittalSheet"
DETAIL_KEY = "loanApplicationRegister"
FILE_KEY = "hmdaFile"


class SchemaRegistry:
    """Loads and caches year specs.

    Args:
        specs_dir: Directory holding ``<year>.yaml`` files. Defaults to the
            specs shipped with the package.

    Examples:
        >>> registry = SchemaRegistry()
        >>> registry.resolve_label("loanAmount", 2013, Scope.DETAIL)
        'Loan Amount'
        >>> registry.record_fields(2013, Scope.HEADER)[:3]
        ['recordID', 'respondentID', 'agencyCode']
    """

    def __init__(self, specs_dir: Optional[Path] = None) -> None:
        self.specs_dir = Path(specs_dir) if specs_dir is not None else SPECS_DIR
        self._cache: Dict[int, Dict[str, Any]] = {}

    def available_years(self) -> List[int]:
        years = []
        for path in self.specs_dir.glob("*.yaml"):
            if path.stem.isdigit():
                years.append(int(path.stem))
        return sorted(years)

    def _load(self, year: int) -> Dict[str, Any]:
        year = int(year)
        if year in self._cache:
            return self._cache[year]

        path = self.specs_dir / f"{year}.yaml"
        if not path.exists():
            raise SchemaResolutionError(
                f"No submission spec for year {year}. "
                f"Available years: {', '.join(map(str, self.available_years())) or 'none'}"
            )
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SchemaResolutionError(f"Failed to read spec file {path}: {e}") from e

        for key in (HEADER_KEY, DETAIL_KEY):
            if not isinstance(raw.get(key), list) or not raw[key]:
                raise SchemaResolutionError(f"Spec file {path} has no '{key}' field list")

        header = _index_fields(raw[HEADER_KEY])
        detail = _index_fields(raw[DETAIL_KEY])
        file_spec: Dict[str, Any] = {
            FILE_KEY: {
                HEADER_KEY: header,
                DETAIL_KEY: detail,
                **(raw.get(FILE_KEY) or {}),
            }
        }
        spec = {
            HEADER_KEY: header,
            DETAIL_KEY: detail,
            "file": file_spec,
        }
        logger.debug(
            "Loaded %s spec: %d header fields, %d detail fields",
            year,
            len(header),
            len(detail),
        )
        self._cache[year] = spec
        return spec

    def get_file_spec(self, year: int) -> Dict[str, Any]:
        """Whole-file spec: ``{"hmdaFile": {"transmittalSheet": ..., ...}}``."""
        return self._load(year)["file"]

    def record_fields(self, year: int, scope: Scope) -> List[str]:
        """Field ids for a record scope, in file order."""
        spec = self._load(year)
        if scope == Scope.HEADER:
            return list(spec[HEADER_KEY])
        if scope == Scope.DETAIL:
            return list(spec[DETAIL_KEY])
        raise ValueError(f"Scope {scope} has no record layout")

    def field_spec(self, year: int, scope: Scope, field_id: str) -> Mapping[str, Any]:
        spec = self._load(year)
        key = HEADER_KEY if scope == Scope.HEADER else DETAIL_KEY
        try:
            return spec[key][field_id]
        except KeyError:
            raise SchemaResolutionError(
                f"Field '{field_id}' is not part of the {key} layout for {year}"
            ) from None

    def contexts_for(self, year: int, scope: Scope) -> List[Mapping[str, Any]]:
        """Contexts searched, in order, when resolving a label for ``scope``.

        Header and detail edits look at their own record first and then at
        the whole file. Document edits look at the whole file first and then
        at both record types.
        """
        spec = self._load(year)
        file_spec = spec["file"]
        if scope == Scope.HEADER:
            return [spec[HEADER_KEY], file_spec]
        if scope == Scope.DETAIL:
            return [spec[DETAIL_KEY], file_spec]
        return [file_spec, spec[HEADER_KEY], spec[DETAIL_KEY]]

    def resolve_label(self, field_id: str, year: int, scope: Scope) -> str:
        """Resolve a field id to its display label.

        Raises:
            SchemaResolutionError: If no context knows the field.
        """
        found = resolve_field(field_id, self.contexts_for(year, scope))
        if found is None:
            raise SchemaResolutionError(
                f"Cannot resolve a label for field '{field_id}' ({Scope(scope).name} scope, {year})"
            )
        return str(found["label"])


def resolve_field(
    field_id: str, contexts: Sequence[Mapping[str, Any]]
) -> Optional[Mapping[str, Any]]:
    """Find the first labelled spec entry for a (possibly dotted) field id."""
    parts = field_id.split(".")
    for context in contexts:
        node: Any = context
        for part in parts:
            if not isinstance(node, Mapping) or part not in node:
                node = None
                break
            node = node[part]
        if isinstance(node, Mapping) and "label" in node:
            return node
    return None


def _index_fields(fields: Sequence[Mapping[str, Any]]) -> Dict[str, Dict[str, Any]]:
    indexed: Dict[str, Dict[str, Any]] = {}
    for position, entry in enumerate(fields):
        field_id = entry["id"]
        indexed[field_id] = {
            "label": entry.get("label", field_id),
            "position": position,
            **{k: v for k, v in entry.items() if k not in ("id", "label")},
        }
    return indexed


__all__ = ["SchemaRegistry", "resolve_field", "SPECS_DIR"]
