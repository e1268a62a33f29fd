"""Geography reference data for the special edits.

Answers one question: which MSA/MD, if any, contains a given state and
county. The data comes either from a local CSV file or from the remote
geography service, selected by ``RunOptions.use_local_db``.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Optional, Protocol, Tuple

import httpx
import pandas as pd

from hmda_edits.core.errors import ConfigurationError, ReferenceDataError
from .config import NOT_APPLICABLE
from .context import RunOptions

logger = logging.getLogger(__name__)

REMOTE_TIMEOUT = 10.0


class GeographyLookup(Protocol):
    """Resolves a state/county pair to the MSA/MD that contains it."""

    async def msa_for(self, state: str, county: str) -> Optional[str]:
        """Return the MSA/MD code, or None when the county is not in one."""
        ...

    async def aclose(self) -> None:
        ...


class LocalGeography:
    """Geography read from a CSV with ``state``, ``county`` and ``msa`` columns."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._msa: Optional[Dict[Tuple[str, str], str]] = None

    def _load(self) -> Dict[Tuple[str, str], str]:
        if self._msa is not None:
            return self._msa
        if not self.path.exists():
            raise ReferenceDataError(f"Geography file not found: {self.path}")
        try:
            df = pd.read_csv(self.path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
            raise ReferenceDataError(f"Failed to read geography file {self.path}: {e}") from e

        missing = [c for c in ("state", "county", "msa") if c not in df.columns]
        if missing:
            raise ReferenceDataError(
                f"Geography file {self.path} is missing columns: {', '.join(missing)}"
            )
        df = df[df["msa"].str.strip().ne("") & df["msa"].ne(NOT_APPLICABLE)]
        self._msa = {
            (row.state.strip(), row.county.strip()): row.msa.strip()
            for row in df.itertuples(index=False)
        }
        logger.debug("Loaded %d counties in an MSA/MD from %s", len(self._msa), self.path)
        return self._msa

    async def msa_for(self, state: str, county: str) -> Optional[str]:
        return self._load().get((state, county))

    async def aclose(self) -> None:
        return None


class RemoteGeography:
    """Geography served by the HMDA API.

    Queries ``GET {api_url}/geography/{year}/{state}/{county}``, which answers
    ``{"msa": "<code>"}`` or 404 when the county is outside every MSA/MD.
    Answers are cached per state/county.
    """

    def __init__(
        self,
        api_url: str,
        year: int,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = REMOTE_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.year = year
        self._client = httpx.AsyncClient(base_url=self.api_url, transport=transport, timeout=timeout)
        self._cache: Dict[Tuple[str, str], Optional[str]] = {}

    async def msa_for(self, state: str, county: str) -> Optional[str]:
        key = (state, county)
        if key in self._cache:
            return self._cache[key]
        try:
            response = await self._client.get(f"/geography/{self.year}/{state}/{county}")
            if response.status_code == 404:
                msa = None
            else:
                response.raise_for_status()
                msa = (response.json() or {}).get("msa") or None
        except httpx.HTTPError as e:
            raise ReferenceDataError(f"Geography lookup failed for {state}/{county}: {e}") from e
        except ValueError as e:
            raise ReferenceDataError(f"Invalid geography response for {state}/{county}: {e}") from e
        if msa == NOT_APPLICABLE:
            msa = None
        self._cache[key] = msa
        return msa

    async def aclose(self) -> None:
        await self._client.aclose()


def build_geography_lookup(options: RunOptions) -> GeographyLookup:
    """Pick the local or remote lookup for a run.

    Raises:
        ConfigurationError: If the selected source is not configured.
    """
    options.check_reference_source()
    if options.use_local_db:
        return LocalGeography(options.geography_path)
    if not options.api_url:
        raise ConfigurationError("Remote mode needs an API URL")
    return RemoteGeography(options.api_url, options.year)


__all__ = ["GeographyLookup", "LocalGeography", "RemoteGeography", "build_geography_lookup"]
